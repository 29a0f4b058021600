from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


@dataclass(frozen=True)
class EndpointDeclaration:
    path: str
    method: str
    summary: str
    description: str | None = None
    tags: tuple[str, ...] = ()
    operation_id: str | None = None
    parameters: tuple[dict[str, Any], ...] = ()
    request_body: dict[str, Any] | None = None
    responses: dict[str, dict[str, Any]] = field(default_factory=dict)
    source_hint: tuple[str, ...] | str | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.method.lower(), self.path)

    @property
    def label(self) -> str:
        return f"{self.method.upper()} {self.path}"

    @classmethod
    def from_mapping(cls, raw: dict[str, Any]) -> "EndpointDeclaration":
        hint = raw.get("x-source")
        source_hint: tuple[str, ...] | str | None
        if isinstance(hint, list):
            source_hint = tuple(str(item) for item in hint)
        elif isinstance(hint, str):
            source_hint = hint
        else:
            source_hint = None
        responses = raw.get("responses") or {}
        return cls(
            path=str(raw["path"]),
            method=str(raw["method"]).lower(),
            summary=str(raw["summary"]),
            description=raw.get("description"),
            tags=tuple(str(tag) for tag in raw.get("tags") or ()),
            operation_id=raw.get("operationId"),
            parameters=tuple(p for p in raw.get("parameters") or () if isinstance(p, dict)),
            request_body=raw.get("requestBody") if isinstance(raw.get("requestBody"), dict) else None,
            responses={str(code): resp for code, resp in responses.items() if isinstance(resp, dict)},
            source_hint=source_hint,
            extensions={
                key: value for key, value in raw.items() if key.startswith("x-") and key != "x-source"
            },
        )


@dataclass(frozen=True)
class Manifest:
    version: str
    scopes: tuple[str, ...]
    grep_patterns: Any
    base_path: str
    info: dict[str, Any]
    endpoints: tuple[EndpointDeclaration, ...]
    security: list[Any] | None = None
    security_schemes: dict[str, Any] | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)
