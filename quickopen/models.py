"""Core data models shared by indexing, matching and ranking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Tuple


class CharacterClass(Enum):
    LOWER = "lower"
    UPPER = "upper"
    NUMBER = "number"
    SYMBOL = "symbol"


@dataclass(frozen=True)
class MatchWindow:
    """Half-open span ``[start, end)`` over the matched string."""
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass
class MatchResult:
    path: str
    score: int
    window: MatchWindow
    # "name" or "path": which string the window indexes into
    matched_on: str = "name"

    @property
    def matched_text(self) -> str:
        if self.matched_on == "path":
            return self.path
        return self.path.rsplit("/", 1)[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "score": self.score,
            "match_start": self.window.start,
            "match_end": self.window.end,
            "matched_on": self.matched_on,
        }


@dataclass(frozen=True)
class WorkspaceSnapshot:
    """A complete, immutable view of one workspace root and its files."""
    root: Path
    files: Tuple[Path, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.files)
