from __future__ import annotations

import copy
from typing import Any, Iterator

COMPONENT_REF_PREFIX = "#/components/schemas/"
RULE_REF_PREFIX = "#/rules/"

RESERVED_SCHEMAS: dict[str, dict[str, Any]] = {
    "Error": {
        "type": "object",
        "properties": {
            "error": {"type": "string"},
            "message": {"type": "string"},
            "timestamp": {"type": "string", "format": "date-time"},
            "code": {"type": "string"},
        },
    },
    "ValidationResult": {
        "type": "object",
        "properties": {
            "valid": {"type": "boolean"},
            "headers": {"type": "integer"},
            "violations": {"type": "array", "items": {"type": "string"}},
            "timestamp": {"type": "string", "format": "date-time"},
        },
    },
    "SearchResult": {
        "type": "object",
        "properties": {
            "query": {"type": "string"},
            "scope": {"type": "string"},
            "results": {"type": "array", "items": {"type": "object"}},
            "total": {"type": "integer"},
            "cached": {"type": "boolean"},
        },
    },
}


class SchemaRegistry:
    """Named semantic schemas.

    Corpus-discovered names overwrite; reserved built-in names are only
    inserted when nothing has claimed the name yet.
    """

    def __init__(self) -> None:
        self._schemas: dict[str, dict[str, Any]] = {}
        self.sources: dict[str, str] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def get(self, name: str) -> dict[str, Any] | None:
        return self._schemas.get(name)

    def put(self, name: str, schema: dict[str, Any], source: str | None = None) -> str | None:
        """Overwrite `name`; returns the previous source when a definition was replaced."""
        previous = self.sources.get(name) if name in self._schemas else None
        self._schemas[name] = schema
        if source is not None:
            self.sources[name] = source
        return previous

    def put_if_absent(self, name: str, schema: dict[str, Any]) -> bool:
        if name in self._schemas:
            return False
        self._schemas[name] = schema
        return True

    def add_reserved_defaults(self) -> None:
        for name, schema in RESERVED_SCHEMAS.items():
            self.put_if_absent(name, copy.deepcopy(schema))

    def as_dict(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._schemas)

    def copy(self) -> "SchemaRegistry":
        clone = SchemaRegistry()
        clone._schemas = copy.deepcopy(self._schemas)
        clone.sources = dict(self.sources)
        return clone


class RuleDefinitionRegistry:
    def __init__(self) -> None:
        self._rules: dict[str, dict[str, Any]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, name: str) -> dict[str, Any] | None:
        return self._rules.get(name)

    def put(self, name: str, definition: dict[str, Any]) -> None:
        self._rules[name] = definition

    def put_if_absent(self, name: str, definition: dict[str, Any]) -> bool:
        if name in self._rules:
            return False
        self._rules[name] = definition
        return True

    def names(self) -> list[str]:
        return list(self._rules)


def rule_to_schema(rule: dict[str, Any]) -> dict[str, Any]:
    """Contract-schema shape of a rule definition: one typed property per rule field."""
    schema: dict[str, Any] = {
        "type": "object",
        "title": rule.get("name") or rule.get("id"),
        "properties": {},
    }
    if rule.get("description") is not None:
        schema["description"] = rule["description"]
    required: list[str] = []
    fields = rule.get("fields")
    if isinstance(fields, dict):
        for field_name, field_def in fields.items():
            spec = field_def if isinstance(field_def, dict) else {}
            prop: dict[str, Any] = {"type": spec.get("type") or "string"}
            if spec.get("description") is not None:
                prop["description"] = spec["description"]
            if spec.get("enum"):
                prop["enum"] = list(spec["enum"])
            schema["properties"][str(field_name)] = prop
            if spec.get("required") is True:
                required.append(str(field_name))
    if required:
        schema["required"] = required
    return schema
