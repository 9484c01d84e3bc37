"""Locate the window of a subsequence match inside a candidate string.

Two strategies are available:

- :func:`locate` finds the minimal window anchored at the right-most place
  the query can start. It is linear in the candidate length and is what the
  ranker uses by default.
- :func:`exhaustive_match` backtracks over every alignment and keeps the
  best-scoring one. It is expensive and bounded, and its bounds can turn a
  real match into a reported no-match.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set, Tuple

from . import config
from .models import MatchWindow
from .scoring import chars_equal, score_positions

logger = logging.getLogger(__name__)

CASE_MODES = ("smart", "ignore", "respect")


def is_case_sensitive(query: str, mode: str = "smart") -> bool:
    """Decide case sensitivity for *query*.

    ``smart`` matches case-insensitively unless the query holds an uppercase
    character, ``ignore`` never distinguishes case, ``respect`` always does.
    """
    if mode == "respect":
        return True
    if mode == "ignore":
        return False
    if mode != "smart":
        raise ValueError(f"Unknown case mode '{mode}' (expected one of: {', '.join(CASE_MODES)})")
    return any(ch.isupper() for ch in query)


def locate(query: str, text: str, case_sensitive: bool = True) -> Optional[MatchWindow]:
    """Find the tightest, right-most window of *text* containing *query* in order.

    The first pass walks *text* backwards consuming *query* from its last
    character; where the whole query has been consumed is the right-most
    feasible start. The second pass walks forward from that start consuming
    the query again, which tightens the end of the window.

    >>> locate("ab", "xaxbxab")
    MatchWindow(start=5, end=7)

    Returns None for an empty query or when *query* is not a subsequence.
    """
    if not query:
        return None

    q = len(query) - 1
    start = None
    end = None
    for i in range(len(text) - 1, -1, -1):
        if chars_equal(text[i], query[q], case_sensitive):
            if end is None:
                end = i + 1
            q -= 1
            if q < 0:
                start = i
                break

    if start is None or end is None:
        return None

    q = 0
    for i in range(start, end):
        if chars_equal(text[i], query[q], case_sensitive):
            q += 1
            if q == len(query):
                end = i + 1
                break

    return MatchWindow(start, end)


def exhaustive_match(
    query: str,
    text: str,
    case_sensitive: bool = True,
    max_recursion: int = config.DEFAULT_MAX_RECURSION,
    max_matches: int = config.DEFAULT_MAX_MATCHES,
) -> Optional[Tuple[MatchWindow, int]]:
    """Explore every alignment of *query* in *text* and keep the best score.

    Args:
        query: Query string
        text: Candidate string
        case_sensitive: Whether characters must match exactly
        max_recursion: Longest query explored; longer queries report no-match
        max_matches: Character matches tried before exploration stops

    Returns:
        ``(window, score)`` of the best alignment, or None.

    Hitting either bound silently loses matches: a query longer than
    *max_recursion*, or one whose first complete alignment lies beyond
    *max_matches* attempts, comes back as None even though *text* contains it.
    Ties keep the earliest alignment found.
    """
    if not query:
        return None
    if len(query) > max_recursion:
        logger.debug("Query of length %d exceeds recursion limit %d", len(query), max_recursion)
        return None
    if locate(query, text, case_sensitive) is None:
        return None

    best_positions: List[int] = []
    best_score = -1
    attempts = 0
    exhausted = False
    # (query index, text index) pairs known to lead nowhere
    dead: Set[Tuple[int, int]] = set()
    positions: List[int] = []

    def _search(q_index: int, t_index: int) -> bool:
        nonlocal best_positions, best_score, attempts, exhausted

        if q_index == len(query):
            score = score_positions(text, positions)
            if score > best_score:
                best_score = score
                best_positions = list(positions)
            return True
        if (q_index, t_index) in dead:
            return False

        found = False
        remaining = len(query) - q_index
        for i in range(t_index, len(text) - remaining + 1):
            if not chars_equal(text[i], query[q_index], case_sensitive):
                continue
            if attempts >= max_matches:
                exhausted = True
                return found
            attempts += 1
            positions.append(i)
            if _search(q_index + 1, i + 1):
                found = True
            positions.pop()
            if exhausted:
                return found

        if not found:
            dead.add((q_index, t_index))
        return found

    _search(0, 0)

    if exhausted:
        logger.debug("Match limit %d reached for %r in %r", max_matches, query, text)
    if not best_positions:
        return None
    return MatchWindow(best_positions[0], best_positions[-1] + 1), best_score
