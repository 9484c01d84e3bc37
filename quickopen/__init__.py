"""Workspace fuzzy file finder: root discovery, subsequence matching, ranking."""

from __future__ import annotations

__version__ = "0.3.0"

from .matcher import exhaustive_match, locate
from .models import CharacterClass, MatchResult, MatchWindow, WorkspaceSnapshot
from .ranker import QuickOpen, QuickOpenError, ResultRanker
from .scoring import bonus_for, char_class, score_positions, score_window
from .workspace import WorkspaceIndexer

__all__ = [
    "CharacterClass",
    "MatchResult",
    "MatchWindow",
    "QuickOpen",
    "QuickOpenError",
    "ResultRanker",
    "WorkspaceIndexer",
    "WorkspaceSnapshot",
    "bonus_for",
    "char_class",
    "exhaustive_match",
    "locate",
    "score_positions",
    "score_window",
]
