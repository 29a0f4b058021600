"""Semi-structured extraction from a single rule document.

All pattern matching over rule text lives here; the scanner only merges the
typed results.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

TAG_RE = re.compile(r"\[([A-Z]{3}-[A-Z]+-[0-9]{3})\]")
FENCED_JSON_RE = re.compile(r"^```json[ \t]*\r?\n(.*?)\r?\n```", re.DOTALL | re.MULTILINE)
PREAMBLE_DELIMITER = "---"
RULE_SUFFIX = ".md"


@dataclass
class RuleDocument:
    path: str
    tag: str | None = None
    preamble: dict[str, Any] | None = None
    blocks: list[dict[str, Any]] = field(default_factory=list)
    first_line: str = ""
    warnings: list[str] = field(default_factory=list)
    readable: bool = True


def extract_tag(text: str) -> str | None:
    match = TAG_RE.search(text)
    return match.group(1) if match else None


def split_preamble(text: str) -> tuple[str | None, bool]:
    """Preamble body and whether a block was opened; an unclosed block yields (None, True)."""
    lines = text.splitlines()
    if not lines or lines[0].strip() != PREAMBLE_DELIMITER:
        return None, False
    for index in range(1, len(lines)):
        if lines[index].strip() == PREAMBLE_DELIMITER:
            return "\n".join(lines[1:index]), True
    return None, True


def parse_rule_document(path: str, text: str) -> RuleDocument:
    doc = RuleDocument(path=path, tag=extract_tag(text))
    lines = text.splitlines()
    doc.first_line = lines[0] if lines else ""

    body, opened = split_preamble(text)
    if opened and body is None:
        doc.warnings.append(f"{path}: unterminated preamble block")
    elif body is not None:
        try:
            loaded = yaml.safe_load(body)
        except yaml.YAMLError as exc:
            doc.warnings.append(f"{path}: malformed preamble: {exc}")
        else:
            if isinstance(loaded, dict):
                doc.preamble = loaded
            elif loaded is not None:
                doc.warnings.append(f"{path}: preamble is not a mapping")

    for index, match in enumerate(FENCED_JSON_RE.finditer(text)):
        try:
            block = json.loads(match.group(1))
        except json.JSONDecodeError as exc:
            doc.warnings.append(f"{path}: malformed json block #{index}: {exc.msg}")
            continue
        if isinstance(block, dict) and ("type" in block or "$schema" in block):
            doc.blocks.append(block)
    return doc


def read_rule_document(path: Path, display: str) -> RuleDocument:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return RuleDocument(path=display, warnings=[f"{display}: unreadable rule document: {exc}"], readable=False)
    return parse_rule_document(display, text)
