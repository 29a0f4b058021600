from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from ..core.serialize import load_structured_file
from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG
from ..manifest.models import HTTP_METHODS

REMOVED = "REMOVED"
CHANGED = "CHANGED"


@dataclass(frozen=True)
class BreakingChange:
    kind: str
    path: str
    method: str | None = None
    status: str | None = None

    def __str__(self) -> str:
        if self.method is None:
            return f"{self.kind}: path {self.path}"
        if self.status is None:
            return f"{self.kind}: {self.method.upper()} {self.path}"
        return f"{self.kind}: {self.method.upper()} {self.path} response {self.status} schema"


def load_prior_contract(path: Path) -> dict[str, Any]:
    try:
        data = load_structured_file(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ScriptError(
            f"cannot read comparison target {path}: {exc}",
            ERR_CONFIG,
            kind="compare_target_unreadable",
        ) from exc
    if not isinstance(data, dict):
        raise ScriptError(
            f"comparison target {path} is not a contract mapping",
            ERR_CONFIG,
            kind="compare_target_unreadable",
        )
    return data


def _methods(item: Any) -> dict[str, dict[str, Any]]:
    if not isinstance(item, dict):
        return {}
    return {m: op for m, op in item.items() if m in HTTP_METHODS and isinstance(op, dict)}


def response_schema(response: Any) -> Any:
    """Only the schema part of a response takes part in comparison."""
    if not isinstance(response, dict):
        return None
    content = response.get("content")
    by_media: dict[str, Any] = {}
    if isinstance(content, dict):
        for media, body in sorted(content.items()):
            by_media[media] = body.get("schema") if isinstance(body, dict) else None
    return {"content": by_media, "schema": response.get("schema")}


def detect_breaking_changes(current: dict[str, Any], previous: dict[str, Any]) -> list[BreakingChange]:
    new_paths = current.get("paths") or {}
    old_paths = previous.get("paths") or {}
    changes: list[BreakingChange] = []

    for path in sorted(old_paths):
        if path not in new_paths:
            changes.append(BreakingChange(REMOVED, path))

    for path in sorted(old_paths):
        if path not in new_paths:
            continue
        old_ops = _methods(old_paths[path])
        new_ops = _methods(new_paths[path])
        for method in sorted(old_ops):
            if method not in new_ops:
                changes.append(BreakingChange(REMOVED, path, method))
                continue
            old_responses = old_ops[method].get("responses") or {}
            new_responses = new_ops[method].get("responses") or {}
            for status in sorted(str(code) for code in old_responses):
                if status not in {str(code) for code in new_responses}:
                    continue
                old_schema = response_schema(_by_status(old_responses, status))
                new_schema = response_schema(_by_status(new_responses, status))
                if old_schema != new_schema:
                    changes.append(BreakingChange(CHANGED, path, method, status))
    return changes


def _by_status(responses: dict[Any, Any], status: str) -> Any:
    for code, response in responses.items():
        if str(code) == status:
            return response
    return None
