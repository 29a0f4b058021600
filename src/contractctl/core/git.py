from __future__ import annotations

from pathlib import Path

from .process import run_command


def read_commit_sha(repo_root: Path) -> str | None:
    """Full HEAD sha, or None when git or the repository is unavailable."""
    result = run_command(["git", "rev-parse", "HEAD"], repo_root, timeout_seconds=10)
    if result.code != 0:
        return None
    sha = result.stdout.strip()
    return sha or None
