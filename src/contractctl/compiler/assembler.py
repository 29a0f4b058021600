from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any

from ..corpus.scanner import CorpusIndex
from ..manifest.models import EndpointDeclaration, Manifest
from ..schema.resolver import ReferenceResolver, UnresolvedReference
from .source_map import SourceMapEntry, resolve_sources

OPENAPI_VERSION = "3.1.0"
SCOPE_PLACEHOLDER = "$scope"
SCOPE_PARAMETER = "scope"

DEFAULT_SECURITY_SCHEMES: dict[str, dict[str, Any]] = {
    "cookieAuth": {"type": "apiKey", "in": "cookie", "name": "sessionId"},
    "csrfAuth": {"type": "apiKey", "in": "cookie", "name": "csrfToken"},
}

_COLON_PARAM_RE = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")
_BRACE_PARAM_RE = re.compile(r"\{([^{}/]+)\}")


@dataclass
class AssemblyResult:
    contract: dict[str, Any]
    source_map: list[SourceMapEntry] = field(default_factory=list)
    unresolved: list[UnresolvedReference] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def to_template_path(base_path: str, path: str) -> str:
    """Join base path and endpoint path, rewriting `:id` segments to `{id}`."""
    return _COLON_PARAM_RE.sub(r"{\1}", f"{base_path}{path}")


def _is_scope_placeholder(enum: Any) -> bool:
    return enum == SCOPE_PLACEHOLDER or enum == [SCOPE_PLACEHOLDER]


def apply_scope_enum(parameters: list[Any], scopes: tuple[str, ...]) -> None:
    for param in parameters:
        if not isinstance(param, dict) or not isinstance(param.get("schema"), dict):
            continue
        schema = param["schema"]
        enum = schema.get("enum")
        if _is_scope_placeholder(enum) or (param.get("name") == SCOPE_PARAMETER and isinstance(enum, list)):
            schema["enum"] = list(scopes)


def add_missing_path_parameters(template: str, parameters: list[Any]) -> None:
    declared = {
        param.get("name")
        for param in parameters
        if isinstance(param, dict) and param.get("in") == "path"
    }
    for name in _BRACE_PARAM_RE.findall(template):
        if name in declared:
            continue
        parameters.append({"name": name, "in": "path", "required": True, "schema": {"type": "string"}})
        declared.add(name)


def build_operation(
    endpoint: EndpointDeclaration,
    template: str,
    scopes: tuple[str, ...],
    resolver: ReferenceResolver,
    sources: SourceMapEntry,
) -> dict[str, Any]:
    label = endpoint.label
    parameters = resolver.resolve_data(list(endpoint.parameters), f"{label} parameters")
    apply_scope_enum(parameters, scopes)
    add_missing_path_parameters(template, parameters)

    op: dict[str, Any] = {"summary": endpoint.summary}
    if endpoint.description is not None:
        op["description"] = endpoint.description
    if endpoint.tags:
        op["tags"] = list(endpoint.tags)
    if endpoint.operation_id is not None:
        op["operationId"] = endpoint.operation_id
    if parameters:
        op["parameters"] = parameters
    if endpoint.request_body is not None:
        op["requestBody"] = resolver.resolve_data(endpoint.request_body, f"{label} requestBody")
    op["responses"] = resolver.resolve_data(endpoint.responses, f"{label} responses")
    for key, value in endpoint.extensions.items():
        op[key] = copy.deepcopy(value)
    op["x-source"] = list(sources.sources)
    return op


def build_info(manifest: Manifest, commit_sha: str | None, generated_at: str) -> dict[str, Any]:
    info = copy.deepcopy(manifest.info)
    if commit_sha:
        info["version"] = f"{manifest.version}-{commit_sha[:8]}"
        info["x-commit-sha"] = commit_sha
    else:
        info["version"] = str(info.get("version") or manifest.version)
    info["x-generated-at"] = generated_at
    return info


def assemble_contract(
    manifest: Manifest,
    corpus: CorpusIndex,
    commit_sha: str | None,
    generated_at: str,
) -> AssemblyResult:
    schemas = corpus.schemas.copy()
    schemas.put(
        "Scope",
        {"type": "string", "enum": list(manifest.scopes), "description": "Available governance scopes"},
    )
    schemas.add_reserved_defaults()
    resolver = ReferenceResolver(schemas, corpus.rule_definitions)

    result = AssemblyResult(contract={})
    paths: dict[str, dict[str, Any]] = {}
    for endpoint in manifest.endpoints:
        template = to_template_path(manifest.base_path, endpoint.path)
        entry = resolve_sources(endpoint, corpus.tag_index)
        result.source_map.append(entry)
        item = paths.setdefault(template, {})
        if endpoint.method in item:
            result.warnings.append(f"duplicate operation {endpoint.method.upper()} {template}; last declaration wins")
        item[endpoint.method] = build_operation(endpoint, template, manifest.scopes, resolver, entry)
    result.unresolved = list(resolver.unresolved)

    contract: dict[str, Any] = {
        "openapi": OPENAPI_VERSION,
        "info": build_info(manifest, commit_sha, generated_at),
        "servers": [{"url": manifest.base_path or "/"}],
        "tags": [{"name": scope, "description": f"{scope} Scope"} for scope in manifest.scopes],
        "paths": paths,
        "components": {
            "schemas": schemas.as_dict(),
            "securitySchemes": copy.deepcopy(manifest.security_schemes or DEFAULT_SECURITY_SCHEMES),
        },
    }
    if manifest.security is not None:
        contract["security"] = copy.deepcopy(manifest.security)
    result.contract = contract
    return result
