from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ScriptError(Exception):
    message: str
    code: int
    kind: str = "generic_error"
    details: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return self.message
