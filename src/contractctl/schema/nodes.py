"""Tagged-variant tree for contract fragments.

Reference resolution walks this tree instead of untyped dicts so that every
node kind is handled explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass
class ScalarNode:
    value: Any


@dataclass
class ArrayNode:
    items: list["Node"] = field(default_factory=list)


@dataclass
class ObjectNode:
    fields: dict[str, "Node"] = field(default_factory=dict)


@dataclass
class RefNode:
    target: str
    siblings: dict[str, "Node"] = field(default_factory=dict)


Node = Union[ScalarNode, ArrayNode, ObjectNode, RefNode]


def from_data(value: Any) -> Node:
    if isinstance(value, dict):
        ref = value.get("$ref")
        if isinstance(ref, str):
            return RefNode(
                target=ref,
                siblings={str(k): from_data(v) for k, v in value.items() if k != "$ref"},
            )
        return ObjectNode(fields={str(k): from_data(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return ArrayNode(items=[from_data(v) for v in value])
    return ScalarNode(value=value)


def to_data(node: Node) -> Any:
    if isinstance(node, ScalarNode):
        return node.value
    if isinstance(node, ArrayNode):
        return [to_data(item) for item in node.items]
    if isinstance(node, ObjectNode):
        return {key: to_data(child) for key, child in node.fields.items()}
    if isinstance(node, RefNode):
        return {"$ref": node.target, **{key: to_data(child) for key, child in node.siblings.items()}}
    raise TypeError(f"unknown node kind: {type(node).__name__}")
