"""Client SDK and documentation outputs derived from a compiled contract."""

from .client import CLIENT_LANGUAGES, render_client, write_client_sdk
from .docs import DOCS_FORMATS, render_html, render_markdown, write_docs

__all__ = [
    "CLIENT_LANGUAGES",
    "DOCS_FORMATS",
    "render_client",
    "render_html",
    "render_markdown",
    "write_client_sdk",
    "write_docs",
]
