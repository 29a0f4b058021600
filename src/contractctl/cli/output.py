"""CLI payload output helpers."""

from __future__ import annotations

from ..core.context import RunContext
from ..core.serialize import dumps_json


def emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def build_base_payload(ctx: RunContext, status: str = "ok") -> dict[str, object]:
    return {
        "schema_version": 1,
        "tool": "contractctl",
        "status": status,
        "run_id": ctx.run_id,
        "repo_root": str(ctx.repo_root),
        "format": ctx.output_format,
    }


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error", details: list[str] | None = None) -> str:
    if as_json:
        return dumps_json(
            {
                "schema_name": "contractctl.error.v1",
                "schema_version": 1,
                "tool": "contractctl",
                "status": "error",
                "errors": [{"code": code, "kind": kind, "message": message, "details": list(details or [])}],
            },
            pretty=False,
        )
    lines = [message, *(f"  - {detail}" for detail in details or [])]
    return "\n".join(lines)
