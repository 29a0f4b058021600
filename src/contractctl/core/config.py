from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG

TOOL_TABLE = "contractctl"

DEFAULTS: dict[str, Any] = {
    "manifest": "manifest.yaml",
    "rules": "rules",
    "output": None,
    "output-format": "yaml",
    "min": 95.0,
    "spec": "openapi.yaml",
}


def load_tool_config(repo_root: Path) -> dict[str, Any]:
    """Project defaults from `[tool.contractctl]` in pyproject.toml, layered over DEFAULTS."""
    merged = dict(DEFAULTS)
    pyproject = repo_root / "pyproject.toml"
    if not pyproject.is_file():
        return merged
    try:
        raw = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ScriptError(f"unreadable {pyproject}: {exc}", ERR_CONFIG, kind="config_unreadable") from exc
    table = raw.get("tool", {}).get(TOOL_TABLE, {})
    if not isinstance(table, dict):
        raise ScriptError(f"[tool.{TOOL_TABLE}] must be a table", ERR_CONFIG, kind="config_unreadable")
    unknown = sorted(set(table) - set(DEFAULTS))
    if unknown:
        raise ScriptError(
            f"unknown keys in [tool.{TOOL_TABLE}]: {', '.join(unknown)}",
            ERR_CONFIG,
            kind="config_unreadable",
        )
    merged.update(table)
    return merged


def pick(cli_value: Any, config: dict[str, Any], key: str) -> Any:
    return cli_value if cli_value is not None else config[key]
