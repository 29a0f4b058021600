from __future__ import annotations

import hashlib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..contracts.validate import validate
from ..core.clock import utc_now_iso
from ..core.context import RunContext
from ..core.fs import atomic_write_text
from ..core.git import read_commit_sha
from ..core.logging import log_event
from ..core.serialize import dumps_json, dumps_yaml
from ..corpus.scanner import CorpusIndex, scan_corpus
from ..errors import ScriptError
from ..exit_codes import ERR_BREAKING, ERR_LINT, ERR_USAGE
from ..gen.client import write_client_sdk
from ..gen.docs import write_docs
from ..manifest.loader import load_manifest
from ..manifest.models import Manifest
from .assembler import AssemblyResult, assemble_contract
from .breaking import BreakingChange, detect_breaking_changes, load_prior_contract
from .lint import LintReport, lint_contract

CONTRACT_SCHEMA = "contractctl.contract.v1"
OUTPUT_FORMATS = ("yaml", "json")


@dataclass(frozen=True)
class CompileOptions:
    manifest: Path
    rules: Path
    output: Path | None = None
    output_format: str = "yaml"
    lint_only: bool = False
    detect_breaking: bool = False
    compare_to: Path | None = None
    force: bool = False
    generate_client: bool = False
    client_lang: str = "typescript"
    generate_docs: bool = False
    docs_format: str = "html"
    jobs: int = 1

    def output_path(self, ctx: RunContext) -> Path:
        if self.output is not None:
            return ctx.resolve(self.output)
        return ctx.resolve(f"openapi.{self.output_format}")


@dataclass
class CompileResult:
    manifest: Manifest
    corpus: CorpusIndex
    assembly: AssemblyResult
    lint: LintReport
    breaking: list[BreakingChange] = field(default_factory=list)
    output: Path | None = None
    etag: str | None = None
    extra_outputs: list[Path] = field(default_factory=list)

    @property
    def contract(self) -> dict[str, Any]:
        return self.assembly.contract

    def summary(self, ctx: RunContext) -> dict[str, Any]:
        return {
            "output": ctx.display_path(self.output) if self.output is not None else None,
            "etag": self.etag,
            "paths": len(self.contract.get("paths") or {}),
            "operations": len(self.assembly.source_map),
            "orphans": sum(1 for entry in self.assembly.source_map if entry.orphan),
            "rule_sources": len(self.corpus.tag_index),
            "schemas": len((self.contract.get("components") or {}).get("schemas") or {}),
            "lint_errors": len(self.lint.errors),
            "lint_warnings": len(self.lint.warnings),
            "breaking_changes": [str(change) for change in self.breaking],
            "corpus_warnings": len(self.corpus.warnings),
            "extra_outputs": [ctx.display_path(path) for path in self.extra_outputs],
        }


def serialize_contract(contract: dict[str, Any], output_format: str) -> str:
    if output_format == "json":
        return dumps_json(contract, pretty=True) + "\n"
    return dumps_yaml(contract)


def compute_etag(content: str) -> str:
    return '"' + hashlib.sha256(content.encode("utf-8")).hexdigest() + '"'


def compile_contract(
    ctx: RunContext,
    options: CompileOptions,
    generated_at: str | None = None,
    commit_sha: str | None = None,
) -> CompileResult:
    """Load, scan, assemble and check a contract without writing anything."""
    manifest_path = ctx.resolve(options.manifest)
    rules_root = ctx.resolve(options.rules)
    with ThreadPoolExecutor(max_workers=2) as ex:
        manifest_future = ex.submit(load_manifest, manifest_path)
        corpus_future = ex.submit(scan_corpus, rules_root, ctx.repo_root, options.jobs, ctx)
        manifest = manifest_future.result()
        corpus = corpus_future.result()
    log_event(
        ctx,
        "debug",
        "compile",
        "inputs",
        manifest=ctx.display_path(manifest_path),
        endpoints=len(manifest.endpoints),
        rule_files=len(corpus.files),
    )

    sha = commit_sha if commit_sha is not None else read_commit_sha(ctx.repo_root)
    assembly = assemble_contract(manifest, corpus, sha, generated_at or utc_now_iso())
    for warning in assembly.warnings:
        log_event(ctx, "warn", "compile", "assemble", message=warning)
    for entry in assembly.source_map:
        log_event(ctx, "debug", "compile", "source_map", operation=entry.operation, tier=entry.tier.value, sources=len(entry.sources))

    report = lint_contract(assembly.contract, assembly.unresolved)
    result = CompileResult(manifest=manifest, corpus=corpus, assembly=assembly, lint=report)

    if options.detect_breaking:
        if options.compare_to is None:
            raise ScriptError("--detect-breaking requires --compare-to", ERR_USAGE, kind="usage_error")
        previous = load_prior_contract(ctx.resolve(options.compare_to))
        result.breaking = detect_breaking_changes(assembly.contract, previous)
    return result


def enforce_gates(ctx: RunContext, result: CompileResult, force: bool) -> None:
    for issue in result.lint.warnings:
        log_event(ctx, "warn", "compile", "lint", rule=issue.rule_id, message=issue.message)
    if result.lint.errors:
        details = [str(issue) for issue in result.lint.errors]
        if not force:
            raise ScriptError(
                f"lint failed: {len(details)} error(s)",
                ERR_LINT,
                kind="lint_failed",
                details=details,
            )
        for line in details:
            log_event(ctx, "warn", "compile", "lint", forced=True, message=line)
    if result.breaking:
        details = [str(change) for change in result.breaking]
        if not force:
            raise ScriptError(
                f"breaking changes detected: {len(details)} (use --force to override)",
                ERR_BREAKING,
                kind="breaking_change",
                details=details,
            )
        for line in details:
            log_event(ctx, "warn", "compile", "breaking", forced=True, message=line)


def run_compile(
    ctx: RunContext,
    options: CompileOptions,
    generated_at: str | None = None,
    commit_sha: str | None = None,
) -> CompileResult:
    result = compile_contract(ctx, options, generated_at=generated_at, commit_sha=commit_sha)
    enforce_gates(ctx, result, options.force)
    if options.lint_only:
        log_event(ctx, "info", "compile", "lint_only", errors=len(result.lint.errors), warnings=len(result.lint.warnings))
        return result

    validate(CONTRACT_SCHEMA, result.contract)
    content = serialize_contract(result.contract, options.output_format)
    result.output = atomic_write_text(options.output_path(ctx), content)
    result.etag = compute_etag(content)
    log_event(ctx, "info", "compile", "write", output=ctx.display_path(result.output), etag=result.etag)

    if options.generate_client:
        result.extra_outputs += write_client_sdk(result.contract, ctx.repo_root, options.client_lang)
    if options.generate_docs:
        result.extra_outputs.append(write_docs(result.contract, ctx.repo_root, options.docs_format))
    for path in result.extra_outputs:
        log_event(ctx, "info", "compile", "write", output=ctx.display_path(path))
    return result
