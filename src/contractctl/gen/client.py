from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from ..compiler.lint import iter_operations
from ..core.fs import atomic_write_text
from ..core.serialize import dumps_json

CLIENT_LANGUAGES = ("typescript", "javascript")
EXTENSIONS = {"typescript": "ts", "javascript": "js"}
DEFAULT_BASE_URL = "http://localhost:3000"

_WORD_RE = re.compile(r"[A-Za-z0-9]+")
_PARAM_RE = re.compile(r"\{([^{}/]+)\}")


def _slug(text: str) -> str:
    return "-".join(word.lower() for word in _WORD_RE.findall(text)) or "api"


def method_name(method: str, path: str, operation: dict[str, Any]) -> str:
    op_id = operation.get("operationId")
    if isinstance(op_id, str) and _WORD_RE.fullmatch(op_id.replace("_", "")):
        return op_id
    parts = [method.lower()]
    for segment in path.strip("/").split("/"):
        param = _PARAM_RE.fullmatch(segment)
        if param:
            parts.append("By" + "".join(w.capitalize() for w in _WORD_RE.findall(param.group(1))))
        else:
            parts.extend(word.capitalize() for word in _WORD_RE.findall(segment))
    return "".join(parts)


def _path_expression(path: str) -> str:
    return "`" + _PARAM_RE.sub(lambda m: "${encodeURIComponent(String(params['" + m.group(1) + "']))}", path) + "`"


def _operation_methods(contract: dict[str, Any], typed: bool) -> list[str]:
    seen: dict[str, int] = {}
    out: list[str] = []
    for path, method, op in iter_operations(contract):
        name = method_name(method, path, op)
        seen[name] = seen.get(name, 0) + 1
        if seen[name] > 1:
            name = f"{name}{seen[name]}"
        summary = str(op.get("summary") or f"{method.upper()} {path}").replace("*/", "* /")
        if typed:
            signature = f"async {name}(params: Record<string, unknown> = {{}}, body?: unknown): Promise<unknown>"
        else:
            signature = f"async {name}(params = {{}}, body) "
        out += [
            f"  /** {summary} */",
            f"  {signature.rstrip()} {{",
            "    const init = body === undefined ? {} : { body: JSON.stringify(body) };",
            f"    return this.request('{method.upper()}', {_path_expression(path)}, init);",
            "  }",
            "",
        ]
    return out


def render_client(contract: dict[str, Any], language: str) -> str:
    if language not in CLIENT_LANGUAGES:
        raise ValueError(f"unsupported client language: {language}")
    typed = language == "typescript"
    info = contract.get("info") or {}
    servers = contract.get("servers") or [{}]
    base_url = str(servers[0].get("url") or DEFAULT_BASE_URL)
    lines = [f"// Generated {language} client for {info.get('title', 'API')} {info.get('version', '')}".rstrip(), ""]
    if typed:
        lines += [
            "export interface ApiConfig {",
            "  baseUrl?: string;",
            "  apiKey?: string;",
            "}",
            "",
            "export class ApiClient {",
            "  private baseUrl: string;",
            "  private apiKey?: string;",
            "",
            "  constructor(config: ApiConfig = {}) {",
        ]
    else:
        lines += ["export class ApiClient {", "  constructor(config = {}) {"]
    lines += [
        f"    this.baseUrl = config.baseUrl || '{base_url}';",
        "    this.apiKey = config.apiKey;",
        "  }",
        "",
    ]
    if typed:
        lines += [
            "  private async request<T>(method: string, path: string, options: RequestInit = {}): Promise<T> {",
            "    const headers: Record<string, string> = {",
            "      'Content-Type': 'application/json',",
            "      ...(options.headers as Record<string, string>),",
            "    };",
        ]
    else:
        lines += [
            "  async request(method, path, options = {}) {",
            "    const headers = { 'Content-Type': 'application/json', ...options.headers };",
        ]
    lines += [
        "    if (this.apiKey) {",
        "      headers['X-API-Key'] = this.apiKey;",
        "    }",
        "    const response = await fetch(`${this.baseUrl}${path}`, { ...options, method, headers });",
        "    if (!response.ok) {",
        "      throw new Error(`API Error: ${response.status} ${response.statusText}`);",
        "    }",
        "    return response.json();",
        "  }",
        "",
    ]
    lines += _operation_methods(contract, typed)
    while lines and lines[-1] == "":
        lines.pop()
    lines.append("}")
    return "\n".join(lines) + "\n"


def package_manifest(contract: dict[str, Any], language: str) -> dict[str, Any]:
    info = contract.get("info") or {}
    title = str(info.get("title") or "API")
    return {
        "name": f"{_slug(title)}-client-{language}",
        "version": str(info.get("version") or "0.0.0"),
        "description": f"Client SDK for {title}",
        "main": "client.js",
        "type": "module",
    }


def write_client_sdk(contract: dict[str, Any], out_root: Path, language: str = "typescript") -> list[Path]:
    sdk_dir = out_root / f"client-sdk-{language}"
    client = atomic_write_text(sdk_dir / f"client.{EXTENSIONS[language]}", render_client(contract, language))
    package = atomic_write_text(sdk_dir / "package.json", dumps_json(package_manifest(contract, language), pretty=True) + "\n")
    return [client, package]
