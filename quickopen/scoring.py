"""Scoring of located matches, in the spirit of Sublime's quick open and fzf.

Every aligned query character earns :data:`SCORE_MATCH` plus a bonus that
depends on the character-class transition into it::

    fuzzy_find     "_" -> "f"      boundary bonus
    fuzzyFind      "y" -> "F"      camel bonus
    file2          "e" -> "2"      camel bonus (letter to digit)
    foo.bar        "o" -> "."      symbol bonus

Consecutive aligned characters keep at least :data:`BONUS_CONSECUTIVE`, and
never less than the bonus that started the run. The first query character's
bonus is doubled. Unaligned characters inside the window cost
:data:`SCORE_GAP_START` for the first of a gap and :data:`SCORE_GAP_EXTENSION`
for each one after it.

Classification and bonus rules are plain functions so they can be tested
without running the locator.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

from .models import CharacterClass, MatchWindow

SCORE_MATCH = 30
SCORE_GAP_START = 15
SCORE_GAP_EXTENSION = 10

BONUS_BOUNDARY = SCORE_MATCH // 2
BONUS_SYMBOL = SCORE_MATCH // 2
BONUS_CAMEL = BONUS_BOUNDARY + SCORE_GAP_EXTENSION
BONUS_CONSECUTIVE = SCORE_GAP_START + SCORE_GAP_EXTENSION
BONUS_FIRST_CHAR_MULTIPLIER = 2


def char_class(character: str) -> CharacterClass:
    """Classify a single character. Non-ASCII characters count as symbols."""
    if character.isascii():
        if character.islower():
            return CharacterClass.LOWER
        if character.isupper():
            return CharacterClass.UPPER
        if character.isdigit():
            return CharacterClass.NUMBER
    return CharacterClass.SYMBOL


def bonus_for(previous: CharacterClass, current: CharacterClass) -> int:
    """Bonus for matching a *current*-class character that follows *previous*."""
    # fuzzy_find: "_" precedes "f"
    if previous is CharacterClass.SYMBOL and current is not CharacterClass.SYMBOL:
        return BONUS_BOUNDARY
    # camelCase, letter123
    if (previous is CharacterClass.LOWER and current is CharacterClass.UPPER) or (
        previous is not CharacterClass.NUMBER and current is CharacterClass.NUMBER
    ):
        return BONUS_CAMEL
    if current is CharacterClass.SYMBOL:
        return BONUS_SYMBOL
    return 0


def bonus_table() -> Dict[Tuple[CharacterClass, CharacterClass], int]:
    """Every (previous, current) transition mapped to its bonus."""
    return {(a, b): bonus_for(a, b) for a in CharacterClass for b in CharacterClass}


def chars_equal(a: str, b: str, case_sensitive: bool) -> bool:
    if a == b:
        return True
    return not case_sensitive and a.lower() == b.lower()


def score_positions(text: str, positions: Sequence[int]) -> int:
    """Score an explicit alignment of query characters onto *text*.

    Args:
        text: The candidate string
        positions: Strictly increasing offsets of the aligned characters

    Returns:
        A non-negative integer score, 0 for an empty alignment.
    """
    if not positions:
        return 0

    start = positions[0]
    aligned = set(positions)
    prev_class = char_class(text[start - 1]) if start > 0 else CharacterClass.SYMBOL

    score = 0
    in_gap = False
    consecutive = 0
    first_bonus = 0

    for i in range(start, positions[-1] + 1):
        current_class = char_class(text[i])

        if i in aligned:
            score += SCORE_MATCH
            bonus = bonus_for(prev_class, current_class)

            if consecutive == 0:
                first_bonus = bonus
            else:
                # A boundary inside a run restarts the run's floor
                if bonus == BONUS_BOUNDARY:
                    first_bonus = bonus
                bonus = max(bonus, first_bonus, BONUS_CONSECUTIVE)

            if i == start:
                score += bonus * BONUS_FIRST_CHAR_MULTIPLIER
            else:
                score += bonus

            in_gap = False
            consecutive += 1
        else:
            score -= SCORE_GAP_EXTENSION if in_gap else SCORE_GAP_START
            in_gap = True
            consecutive = 0
            first_bonus = 0

        prev_class = current_class

    return max(score, 0)


def align(
    query: str,
    text: str,
    window: MatchWindow,
    case_sensitive: bool = True,
) -> Optional[Tuple[int, ...]]:
    """Greedily re-align *query* left to right inside *window*.

    Returns the aligned offsets, or None when the query does not fit.
    """
    positions = []
    q = 0
    for i in range(window.start, window.end):
        if q == len(query):
            break
        if chars_equal(text[i], query[q], case_sensitive):
            positions.append(i)
            q += 1
    if q < len(query):
        return None
    return tuple(positions)


def score_window(
    query: str,
    text: str,
    window: Optional[MatchWindow],
    case_sensitive: bool = True,
) -> int:
    """Score a located window; 0 when there is no window or no alignment."""
    if not query or window is None:
        return 0
    positions = align(query, text, window, case_sensitive)
    if positions is None:
        return 0
    return score_positions(text, positions)
