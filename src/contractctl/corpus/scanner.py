from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..core.fs import iter_files
from ..core.logging import log_event
from ..schema.registry import RuleDefinitionRegistry, SchemaRegistry
from .extract import RULE_SUFFIX, RuleDocument, read_rule_document

if TYPE_CHECKING:
    from ..core.context import RunContext


@dataclass
class CorpusIndex:
    root: str
    files: list[str] = field(default_factory=list)
    tag_index: dict[str, str] = field(default_factory=dict)
    schemas: SchemaRegistry = field(default_factory=SchemaRegistry)
    rule_definitions: RuleDefinitionRegistry = field(default_factory=RuleDefinitionRegistry)
    warnings: list[str] = field(default_factory=list)


def _display(path: Path, base: Path) -> str:
    resolved = path.resolve()
    try:
        return resolved.relative_to(base.resolve()).as_posix()
    except ValueError:
        return resolved.as_posix()


def _put_schema(index: CorpusIndex, doc: RuleDocument, name: str, schema: dict[str, Any]) -> None:
    previous = index.schemas.put(name, schema, source=doc.path)
    if previous is not None and previous != doc.path:
        index.warnings.append(f"{doc.path}: schema {name} overrides {previous}")


def _merge_preamble(index: CorpusIndex, doc: RuleDocument, preamble: dict[str, Any]) -> None:
    schema_section = preamble.get("schema")
    if isinstance(schema_section, dict):
        for name, schema in schema_section.items():
            if not isinstance(schema, dict):
                index.warnings.append(f"{doc.path}: schema `{name}` is not a mapping")
                continue
            _put_schema(index, doc, str(name), schema)
    elif schema_section is not None:
        index.warnings.append(f"{doc.path}: preamble `schema` is not a mapping")

    definition = preamble.get("definition")
    if isinstance(definition, dict):
        key = definition.get("id") or definition.get("name")
        if key:
            index.rule_definitions.put(str(key), {**definition, "sourceFile": doc.path})
        else:
            index.warnings.append(f"{doc.path}: preamble `definition` has neither id nor name")
    elif definition is not None:
        index.warnings.append(f"{doc.path}: preamble `definition` is not a mapping")


def merge_document(index: CorpusIndex, doc: RuleDocument) -> None:
    """Fold one extracted document into the index; callers merge in sorted path order."""
    index.files.append(doc.path)
    index.warnings.extend(doc.warnings)
    if doc.preamble is not None:
        _merge_preamble(index, doc, doc.preamble)
    for block in doc.blocks:
        name = block.get("title") or f"Schema_{len(index.schemas)}"
        _put_schema(index, doc, str(name), block)
    if doc.tag is None:
        return
    owner = index.tag_index.get(doc.tag)
    if owner is not None and owner != doc.path:
        index.warnings.append(f"{doc.path}: tag {doc.tag} already declared by {owner}")
        return
    index.tag_index[doc.tag] = doc.path
    index.rule_definitions.put_if_absent(
        doc.tag,
        {"id": doc.tag, "sourceFile": doc.path, "description": doc.first_line or "Rule definition"},
    )


def scan_corpus(root: Path, base: Path, jobs: int = 1, ctx: RunContext | None = None) -> CorpusIndex:
    index = CorpusIndex(root=_display(root, base))
    if not root.is_dir():
        index.warnings.append(f"{index.root}: rule corpus root not found")
        if ctx is not None:
            log_event(ctx, "warn", "corpus", "scan", message=index.warnings[-1])
        return index

    paths = iter_files(root, {RULE_SUFFIX})
    displays = [_display(p, base) for p in paths]
    if jobs > 1:
        with ThreadPoolExecutor(max_workers=jobs) as ex:
            docs = list(ex.map(read_rule_document, paths, displays))
    else:
        docs = [read_rule_document(p, d) for p, d in zip(paths, displays)]

    for doc in sorted(docs, key=lambda d: d.path):
        merge_document(index, doc)

    if ctx is not None:
        for warning in index.warnings:
            log_event(ctx, "warn", "corpus", "scan", message=warning)
        log_event(
            ctx,
            "debug",
            "corpus",
            "scan",
            files=len(index.files),
            tags=len(index.tag_index),
            schemas=len(index.schemas),
            rule_definitions=len(index.rule_definitions),
        )
    return index
