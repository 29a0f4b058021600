"""Semantic schema registries and reference resolution."""

from .nodes import ArrayNode, Node, ObjectNode, RefNode, ScalarNode, from_data, to_data
from .registry import RESERVED_SCHEMAS, RuleDefinitionRegistry, SchemaRegistry, rule_to_schema
from .resolver import ReferenceResolver, UnresolvedReference

__all__ = [
    "RESERVED_SCHEMAS",
    "ArrayNode",
    "Node",
    "ObjectNode",
    "RefNode",
    "ReferenceResolver",
    "RuleDefinitionRegistry",
    "ScalarNode",
    "SchemaRegistry",
    "UnresolvedReference",
    "from_data",
    "rule_to_schema",
    "to_data",
]
