from __future__ import annotations

import copy
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

import yaml

ROOT = Path(__file__).resolve().parents[1]

SAMPLE_MANIFEST: dict[str, Any] = {
    "version": "1.2.0",
    "rules": {
        "header": {
            "schema": {"scope": ["GOV", "SEC", "OPS"]},
            "grep": {"patterns": [r"\[([A-Z]{3}-[A-Z]+-[0-9]{3})\]"]},
        },
        "api": {
            "basePath": "/api/v1",
            "openapi": {"info": {"title": "Governance API", "description": "Rule governance service"}},
            "endpoints": [
                {
                    "path": "/rules/grep",
                    "method": "GET",
                    "summary": "Grep rules",
                    "tags": ["GOV", "GREP"],
                    "parameters": [
                        {"name": "scope", "in": "query", "schema": {"type": "string", "enum": ["placeholder"]}},
                    ],
                    "responses": {
                        "200": {
                            "description": "Matches",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/SearchResult"}}},
                        }
                    },
                },
                {
                    "path": "/sessions/:id",
                    "method": "GET",
                    "summary": "Read a session",
                    "x-source": ["[SEC-AUTH-*]"],
                    "responses": {
                        "200": {
                            "description": "Session",
                            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Session"}}},
                        }
                    },
                },
                {
                    "path": "/cache",
                    "method": "PUT",
                    "summary": "Update cache policy",
                    "x-source": "OPS-CACHE",
                    "x-cache": True,
                    "requestBody": {
                        "content": {"application/json": {"schema": {"$ref": "#/rules/SEC-AUTH-001"}}},
                    },
                    "responses": {"204": {"description": "Updated"}},
                },
                {
                    "path": "/health",
                    "method": "GET",
                    "summary": "Health probe",
                    "responses": {"200": {"description": "ok"}},
                },
            ],
        },
    },
}

RULE_DOCS: dict[str, str] = {
    "rules/gov/gov-header-001.md": "# [GOV-HEADER-001] Every rule file starts with a header\n\nHeaders carry scope and owner.\n",
    "rules/notes/readme.md": "# Notes\n\nNothing tagged here.\n",
    "rules/ops/ops-cache-002.md": (
        "# [OPS-CACHE-002] Cache policy\n"
        "\n"
        "```json\n"
        '{"title": "CachePolicy", "type": "object", "properties": {"ttl": {"type": "integer"}}}\n'
        "```\n"
        "\n"
        "```json\n"
        '{"note": "not a schema"}\n'
        "```\n"
    ),
    "rules/sec/sec-auth-001.md": (
        "---\n"
        "schema:\n"
        "  Session:\n"
        "    type: object\n"
        "    properties:\n"
        "      id: {type: string}\n"
        "      expires: {type: string, format: date-time}\n"
        "definition:\n"
        "  id: SEC-AUTH-001\n"
        "  name: SessionRule\n"
        "  description: Sessions expire\n"
        "  fields:\n"
        "    ttl: {type: integer, required: true}\n"
        "    mode: {enum: [strict, lax]}\n"
        "---\n"
        "# [SEC-AUTH-001] Session rules\n"
    ),
}


def sample_manifest() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_MANIFEST)


def write_manifest(root: Path, data: dict[str, Any] | None = None, name: str = "manifest.yaml") -> Path:
    path = root / name
    path.write_text(yaml.safe_dump(data if data is not None else SAMPLE_MANIFEST, sort_keys=False), encoding="utf-8")
    return path


def write_corpus(root: Path, docs: dict[str, str] | None = None) -> Path:
    for rel, text in (docs if docs is not None else RULE_DOCS).items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root / "rules"


def operation(sources: list[str] | None = None, **extra: Any) -> dict[str, Any]:
    op: dict[str, Any] = {"summary": "op", "responses": {"200": {"description": "ok"}}}
    if sources is not None:
        op["x-source"] = sources
    op.update(extra)
    return op


def run_contractctl(*args: str, cwd: Path) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(ROOT / "src")
    env.setdefault("RUN_ID", "pytest-run")
    return subprocess.run(
        [sys.executable, "-m", "contractctl", *args],
        cwd=cwd,
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
