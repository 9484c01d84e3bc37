"""Rank workspace files against a query."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from . import config
from .matcher import CASE_MODES, exhaustive_match, is_case_sensitive, locate
from .models import MatchResult, MatchWindow, WorkspaceSnapshot
from .scoring import score_window
from .workspace import WorkspaceIndexer

logger = logging.getLogger(__name__)

FILTER_MODES = ("running_mean", "none", "min_score")
MATCH_TARGETS = ("name", "path")


class QuickOpenError(Exception):
    """Raised when quick open is used out of order."""


class State(Enum):
    IDLE = "idle"
    INDEXED = "indexed"
    MATCHING = "matching"
    RESULTS_READY = "results_ready"


def _is_well_formed(text: str) -> bool:
    # os.fsdecode keeps undecodable bytes as lone surrogates
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class ResultRanker:
    """Score every candidate of a snapshot and keep the competitive ones.

    By default a match is kept only when its score is at least the running
    mean of all scores seen so far in the pass (no-matches count as 0). The
    cutoff therefore depends on enumeration order: a candidate scored early
    faces a lower bar than the same candidate scored late.
    """

    def __init__(
        self,
        match_on: str = "name",
        case: str = "smart",
        filter_mode: str = "running_mean",
        min_score: int = 0,
        exhaustive: bool = False,
        max_recursion: int = config.DEFAULT_MAX_RECURSION,
        max_matches: int = config.DEFAULT_MAX_MATCHES,
    ) -> None:
        if match_on not in MATCH_TARGETS:
            raise ValueError(f"match_on must be one of {MATCH_TARGETS}, got '{match_on}'")
        if case not in CASE_MODES:
            raise ValueError(f"case must be one of {CASE_MODES}, got '{case}'")
        if filter_mode not in FILTER_MODES:
            raise ValueError(f"filter_mode must be one of {FILTER_MODES}, got '{filter_mode}'")
        self.match_on = match_on
        self.case = case
        self.filter_mode = filter_mode
        self.min_score = min_score
        self.exhaustive = exhaustive
        self.max_recursion = max_recursion
        self.max_matches = max_matches

    @classmethod
    def from_settings(cls, settings) -> "ResultRanker":
        """Build a ranker from :class:`~quickopen.config_manager.MatchSettings`."""
        return cls(
            match_on=settings.match_on,
            case=settings.case,
            filter_mode=settings.filter,
            min_score=settings.min_score,
            exhaustive=settings.exhaustive,
            max_recursion=settings.max_recursion,
            max_matches=settings.max_matches,
        )

    def match(self, query: str, text: str) -> Optional[Tuple[MatchWindow, int]]:
        """Return ``(window, score)`` for *query* against *text*, or None."""
        if not query:
            return None
        case_sensitive = is_case_sensitive(query, self.case)
        if self.exhaustive:
            return exhaustive_match(
                query,
                text,
                case_sensitive,
                max_recursion=self.max_recursion,
                max_matches=self.max_matches,
            )
        window = locate(query, text, case_sensitive)
        if window is None:
            return None
        return window, score_window(query, text, window, case_sensitive)

    def _keep(self, score: int, running_mean: int) -> bool:
        if self.filter_mode == "none":
            return True
        if self.filter_mode == "min_score":
            return score >= self.min_score
        return score >= running_mean

    def rank(
        self,
        query: str,
        snapshot: Optional[WorkspaceSnapshot],
        limit: Optional[int] = None,
    ) -> List[MatchResult]:
        """Rank the files of *snapshot* against *query*.

        Args:
            query: Query string; empty yields no results
            snapshot: Workspace to search
            limit: Maximum number of results, None or 0 for all

        Returns:
            Results sorted by descending score, then by path.
        """
        if not query or snapshot is None:
            return []

        results: Dict[str, MatchResult] = {}
        total_score = 0
        result_count = 0

        for item in snapshot.files:
            try:
                rel_path = item.relative_to(snapshot.root).as_posix()
            except ValueError as exc:
                logger.warning("Skipping %s while matching %r: %s", item, query, exc)
                continue

            text = rel_path if self.match_on == "path" else item.name
            if _is_well_formed(text):
                matched = self.match(query, text)
            else:
                logger.debug("Treating malformed file name as unmatched: %r", text)
                matched = None

            score = matched[1] if matched else 0
            result_count += 1
            total_score += score

            if matched is None:
                continue
            if not self._keep(score, total_score // result_count):
                continue

            results[rel_path] = MatchResult(
                path=rel_path,
                score=score,
                window=matched[0],
                matched_on=self.match_on,
            )

        ranked = sorted(results.values(), key=lambda r: (-r.score, r.path))
        if limit:
            ranked = ranked[:limit]
        return ranked


class QuickOpen:
    """A quick-open session: one indexer, one ranker, the latest results."""

    def __init__(
        self,
        indexer: Optional[WorkspaceIndexer] = None,
        ranker: Optional[ResultRanker] = None,
        limit: Optional[int] = None,
    ) -> None:
        self.indexer = indexer or WorkspaceIndexer()
        self.ranker = ranker or ResultRanker()
        self.limit = limit
        self._indexed_root: Optional[Path] = None
        self._state = State.IDLE
        self._results: List[MatchResult] = []

    @classmethod
    def from_settings(cls, settings=None) -> "QuickOpen":
        if settings is None:
            from .config_manager import load_settings

            settings = load_settings()
        return cls(
            indexer=WorkspaceIndexer.from_settings(settings.index),
            ranker=ResultRanker.from_settings(settings.match),
            limit=settings.match.limit or None,
        )

    @property
    def root(self) -> Optional[Path]:
        return self.indexer.root

    @property
    def state(self) -> State:
        self._sync()
        return self._state

    @property
    def results(self) -> List[MatchResult]:
        self._sync()
        return self._results

    def _sync(self) -> None:
        # A snapshot for a new root may land at any time in background mode;
        # results ranked against the old root no longer apply.
        root = self.indexer.root
        if root is not None and root != self._indexed_root:
            self._indexed_root = root
            self._state = State.INDEXED
            self._results = []

    def open(self, starting_file: Path | str) -> Optional[WorkspaceSnapshot]:
        """Resolve the workspace of *starting_file*, re-indexing on a root change."""
        snapshot = self.indexer.refresh(starting_file)
        self._sync()
        return snapshot

    def query(self, text: str, limit: Optional[int] = None) -> List[MatchResult]:
        """Rank the current workspace against *text*."""
        snapshot = self.indexer.snapshot
        if snapshot is None:
            if self.indexer.indexing:
                return []
            raise QuickOpenError("No workspace opened yet; call open() with a file first")

        self._sync()
        self._state = State.MATCHING
        self._results = self.ranker.rank(text, snapshot, limit=limit or self.limit)
        self._state = State.RESULTS_READY
        return self._results

    def find(self, starting_file: Path | str, text: str, limit: Optional[int] = None) -> List[MatchResult]:
        self.open(starting_file)
        return self.query(text, limit=limit)

    def close(self) -> None:
        self.indexer.close()
