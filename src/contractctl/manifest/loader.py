from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..errors import ScriptError
from ..exit_codes import ERR_CONFIG
from .models import HTTP_METHODS, EndpointDeclaration, Manifest


def _section(data: Any, *keys: str) -> Any:
    cur = data
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _endpoint_type_errors(index: int, ep: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    method = ep.get("method")
    if method and str(method).lower() not in HTTP_METHODS:
        errors.append(f"Endpoint {index}: unsupported method '{method}'")
    for name in ("tags", "parameters"):
        if ep.get(name) is not None and not isinstance(ep[name], list):
            errors.append(f"Endpoint {index}: '{name}' must be a list")
    for name in ("responses", "requestBody"):
        if ep.get(name) is not None and not isinstance(ep[name], dict):
            errors.append(f"Endpoint {index}: '{name}' must be a mapping")
    hint = ep.get("x-source")
    if hint is not None and not isinstance(hint, (list, str)):
        errors.append(f"Endpoint {index}: 'x-source' must be a list or a string")
    return errors


def validate_manifest_structure(data: Any) -> list[str]:
    """Every structural violation in declaration order; empty when the manifest is usable."""
    if not isinstance(data, dict):
        return ["manifest root must be a mapping"]
    errors: list[str] = []
    if not data.get("version"):
        errors.append("Missing required field: version")

    scope = _section(data, "rules", "header", "schema", "scope")
    if scope is None:
        errors.append("Missing required field: rules.header.schema.scope")
    elif not isinstance(scope, list):
        errors.append("rules.header.schema.scope must be a list")

    if _section(data, "rules", "header", "grep", "patterns") is None:
        errors.append("Missing required field: rules.header.grep.patterns")

    endpoints = _section(data, "rules", "api", "endpoints")
    if endpoints is None:
        errors.append("Missing required field: rules.api.endpoints")
    elif not isinstance(endpoints, list):
        errors.append("rules.api.endpoints must be a list")
    else:
        for index, ep in enumerate(endpoints):
            if not isinstance(ep, dict):
                errors.append(f"Endpoint {index}: must be a mapping")
                continue
            for name in ("path", "method", "summary"):
                if not ep.get(name):
                    errors.append(f"Endpoint {index}: missing required field '{name}'")
            errors.extend(_endpoint_type_errors(index, ep))

    if not _section(data, "rules", "api", "openapi", "info", "title"):
        errors.append("Missing required field: rules.api.openapi.info.title")
    return errors


def parse_manifest(text: str, source: str = "<manifest>") -> Manifest:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ScriptError(
            f"failed to parse manifest {source}",
            ERR_CONFIG,
            kind="manifest_invalid",
            details=[str(exc)],
        ) from exc
    errors = validate_manifest_structure(data)
    if errors:
        raise ScriptError(
            f"manifest validation failed: {source} ({len(errors)} error(s))",
            ERR_CONFIG,
            kind="manifest_invalid",
            details=errors,
        )
    rules = data["rules"]
    api = rules["api"]
    base_path = api.get("basePath") or ""
    schemes = api.get("securitySchemes")
    return Manifest(
        version=str(data["version"]),
        scopes=tuple(str(s) for s in rules["header"]["schema"]["scope"]),
        grep_patterns=rules["header"]["grep"]["patterns"],
        base_path=str(base_path),
        info=dict(api["openapi"]["info"]),
        endpoints=tuple(EndpointDeclaration.from_mapping(ep) for ep in api["endpoints"]),
        security=api.get("security"),
        security_schemes=schemes if isinstance(schemes, dict) else None,
        raw=data,
    )


def load_manifest(path: Path) -> Manifest:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ScriptError(
            f"failed to read manifest {path}: {exc.strerror or exc}",
            ERR_CONFIG,
            kind="manifest_unreadable",
        ) from exc
    return parse_manifest(text, str(path))
