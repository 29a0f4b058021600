from __future__ import annotations

import html
from pathlib import Path
from typing import Any

from ..compiler.lint import iter_operations
from ..core.fs import atomic_write_text

DOCS_FORMATS = ("html", "markdown")
DOCS_DIR = "api-docs"


def render_markdown(contract: dict[str, Any]) -> str:
    info = contract.get("info") or {}
    lines = [f"# {info.get('title', 'API')}", "", f"**Version:** {info.get('version', '')}", ""]
    if info.get("description"):
        lines += [str(info["description"]), ""]
    lines += ["## Endpoints", ""]
    for path, method, op in iter_operations(contract):
        lines += [f"### {method.upper()} {path}", "", str(op.get("summary") or "No summary available"), ""]
        if op.get("description"):
            lines += [str(op["description"]), ""]
        lines.append("**Responses:**")
        for code, response in (op.get("responses") or {}).items():
            desc = response.get("description") if isinstance(response, dict) else None
            lines.append(f"- **{code}**: {desc or 'No description'}")
        sources = op.get("x-source") or []
        if sources:
            lines += ["", "**Sources:** " + ", ".join(f"`{src}`" for src in sources)]
        lines += ["", "---", ""]
    return "\n".join(lines)


def render_html(contract: dict[str, Any]) -> str:
    info = contract.get("info") or {}

    def cell(value: Any) -> str:
        return html.escape(str(value))

    blocks = "\n".join(
        f"""  <div class="endpoint">
    <div class="method">{cell(method.upper())}</div>
    <div class="summary">{cell(op.get("summary") or "No summary")}</div>
    <div class="description">{cell(op.get("description") or "")}</div>
    <code>{cell(path)}</code>
  </div>"""
        for path, method, op in iter_operations(contract)
    )
    title = cell(info.get("title", "API"))
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{title} - API Documentation</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 40px; }}
    .endpoint {{ margin: 20px 0; padding: 15px; border: 1px solid #ddd; border-radius: 5px; }}
    .method {{ font-weight: bold; color: #007acc; }}
    .summary {{ font-size: 1.2em; margin: 5px 0; }}
    .description {{ color: #666; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <p><strong>Version:</strong> {cell(info.get("version", ""))}</p>
  <p><strong>Description:</strong> {cell(info.get("description", ""))}</p>
  <h2>Endpoints</h2>
{blocks}
</body>
</html>
"""


def write_docs(contract: dict[str, Any], out_root: Path, fmt: str = "html") -> Path:
    if fmt == "html":
        return atomic_write_text(out_root / DOCS_DIR / "index.html", render_html(contract))
    if fmt == "markdown":
        return atomic_write_text(out_root / DOCS_DIR / "README.md", render_markdown(contract))
    raise ValueError(f"unsupported docs format: {fmt}")
