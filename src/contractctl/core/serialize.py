"""Canonical JSON/YAML serialization helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml


class _NoAliasDumper(yaml.SafeDumper):
    """Safe dumper that writes shared sub-trees out in full instead of as anchors."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def dumps_json(payload: Any, pretty: bool = False) -> str:
    if pretty:
        return json.dumps(payload, indent=2, sort_keys=True)
    return json.dumps(payload, sort_keys=True)


def dumps_yaml(payload: Any) -> str:
    return yaml.dump(payload, Dumper=_NoAliasDumper, sort_keys=True, allow_unicode=True, default_flow_style=False)


def loads_structured(text: str) -> Any:
    return yaml.safe_load(text)


def load_structured_file(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return loads_structured(text)
