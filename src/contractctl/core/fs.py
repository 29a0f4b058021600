from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable

from ..errors import ScriptError
from ..exit_codes import ERR_ARTIFACT

EXCLUDED_PARTS = {
    ".git",
    ".venv",
    "__pycache__",
    "node_modules",
}


def iter_files(root: Path, suffixes: Iterable[str]) -> list[Path]:
    wanted = set(suffixes)
    out: list[Path] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if any(part in EXCLUDED_PARTS for part in path.relative_to(root).parts):
            continue
        if path.suffix in wanted:
            out.append(path)
    return out


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> Path:
    """Write via a sibling temp file and os.replace so readers never see a partial file."""
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.is_symlink():
            raise ScriptError(f"refusing to replace symlink: {path}", ERR_ARTIFACT, kind="artifact_write_failed")
        with tempfile.NamedTemporaryFile("w", encoding=encoding, delete=False, dir=path.parent, prefix=f".{path.name}.") as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as exc:
        raise ScriptError(f"failed to write {path}: {exc}", ERR_ARTIFACT, kind="artifact_write_failed") from exc
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
    return path
