from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from .nodes import ArrayNode, Node, ObjectNode, RefNode, ScalarNode, from_data, to_data
from .registry import COMPONENT_REF_PREFIX, RULE_REF_PREFIX, RuleDefinitionRegistry, SchemaRegistry, rule_to_schema


@dataclass(frozen=True)
class UnresolvedReference:
    ref: str
    location: str

    def __str__(self) -> str:
        return f"{self.location}: unresolved reference {self.ref}"


class ReferenceResolver:
    """Inlines `#/components/schemas/*` and `#/rules/*` references in place.

    Unknown targets stay in the tree as `$ref` and are collected on
    `unresolved`; a reference back into a target that is already being
    expanded is left as a reference.
    """

    def __init__(self, schemas: SchemaRegistry, rules: RuleDefinitionRegistry) -> None:
        self.schemas = schemas
        self.rules = rules
        self.unresolved: list[UnresolvedReference] = []

    def _lookup(self, ref: str) -> dict[str, Any] | None:
        if ref.startswith(COMPONENT_REF_PREFIX):
            found = self.schemas.get(ref[len(COMPONENT_REF_PREFIX):])
            return copy.deepcopy(found) if found is not None else None
        if ref.startswith(RULE_REF_PREFIX):
            rule = self.rules.get(ref[len(RULE_REF_PREFIX):])
            return rule_to_schema(rule) if rule is not None else None
        return None

    def resolve(self, node: Node, location: str, trail: tuple[str, ...] = ()) -> Node:
        if isinstance(node, ScalarNode):
            return node
        if isinstance(node, ArrayNode):
            for index, item in enumerate(node.items):
                node.items[index] = self.resolve(item, f"{location}[{index}]", trail)
            return node
        if isinstance(node, ObjectNode):
            for key, child in list(node.fields.items()):
                node.fields[key] = self.resolve(child, f"{location}.{key}", trail)
            return node
        if isinstance(node, RefNode):
            return self._resolve_ref(node, location, trail)
        raise TypeError(f"unknown node kind: {type(node).__name__}")

    def _resolve_ref(self, node: RefNode, location: str, trail: tuple[str, ...]) -> Node:
        for key, child in list(node.siblings.items()):
            node.siblings[key] = self.resolve(child, f"{location}.{key}", trail)
        if node.target in trail:
            return node
        target = self._lookup(node.target)
        if target is None:
            self.unresolved.append(UnresolvedReference(ref=node.target, location=location))
            return node
        resolved = self.resolve(from_data(target), location, (*trail, node.target))
        if isinstance(resolved, ObjectNode):
            resolved.fields.update(node.siblings)
        return resolved

    def resolve_data(self, data: Any, location: str) -> Any:
        return to_data(self.resolve(from_data(data), location))
