"""Fuzzy subsequence matching for ranking repository names."""

from collections.abc import Callable, Iterable
from typing import TypeVar

from .models import NO_MATCH, MatchResult

T = TypeVar("T")

SEPARATORS = frozenset("-_/. ")

CHAR_SCORE = 16
BOUNDARY_BONUS = 8
CONSECUTIVE_BONUS = 12
FIRST_CHAR_BONUS = 6
GAP_PENALTY = 4
MAX_GAP_PENALTY = 16
LEADING_PENALTY = 1
MAX_LEADING_PENALTY = 10
EMPTY_PATTERN_SCORE = 1
IGNORE_CASE_EXACT_BONUS = 50
EXACT_BONUS = 100


def _fold(text: str) -> str:
    """Lowercase without changing length, so positions index the original."""
    folded = []
    for ch in text:
        low = ch.lower()
        folded.append(low if len(low) == 1 else ch)
    return "".join(folded)


def _is_boundary(candidate: str, pos: int) -> bool:
    if pos == 0:
        return True
    prev = candidate[pos - 1]
    if prev in SEPARATORS:
        return True
    # camelCase hump
    return prev.islower() and candidate[pos].isupper()


def _align(pattern: str, candidate: str, start: int) -> list[int] | None:
    """Leftmost alignment of `pattern` in `candidate` beginning at `start`."""
    positions = [start]
    pos = start
    for ch in pattern[1:]:
        pos = candidate.find(ch, pos + 1)
        if pos < 0:
            return None
        positions.append(pos)
    return positions


def _score(candidate: str, positions: list[int]) -> int:
    score = 0
    for i, pos in enumerate(positions):
        score += CHAR_SCORE
        if _is_boundary(candidate, pos):
            score += BOUNDARY_BONUS
        if i == 0:
            if pos == 0:
                score += FIRST_CHAR_BONUS
            continue
        gap = pos - positions[i - 1] - 1
        if gap == 0:
            score += CONSECUTIVE_BONUS
        else:
            score -= min(gap * GAP_PENALTY, MAX_GAP_PENALTY)
    score -= min(positions[0] * LEADING_PENALTY, MAX_LEADING_PENALTY)
    # Density: unmatched characters cost a little
    score -= (len(candidate) - len(positions)) // 4
    return score


def match(pattern: str, candidate: str) -> MatchResult:
    """Score `candidate` against `pattern`, returning matched positions.

    Pattern characters must occur in the candidate in order, ignoring case.
    Every occurrence of the first pattern character is tried as a starting
    point and the best-scoring alignment wins; ties keep the earliest start.
    """
    if not pattern:
        return MatchResult(score=EMPTY_PATTERN_SCORE)
    if len(pattern) > len(candidate):
        return NO_MATCH

    lowered_pattern = _fold(pattern)
    lowered = _fold(candidate)

    best_score = None
    best_positions = None
    start = lowered.find(lowered_pattern[0])
    while start >= 0:
        positions = _align(lowered_pattern, lowered, start)
        if positions is None:
            break
        score = _score(candidate, positions)
        if best_score is None or score > best_score:
            best_score, best_positions = score, positions
        start = lowered.find(lowered_pattern[0], start + 1)

    if best_positions is None:
        return NO_MATCH

    if lowered == lowered_pattern:
        best_score += IGNORE_CASE_EXACT_BONUS
        if candidate == pattern:
            best_score += EXACT_BONUS
    return MatchResult(score=max(best_score, 1), highlight_positions=tuple(best_positions))


def rank(
    pattern: str,
    candidates: Iterable[T],
    key: Callable[[T], str] = str,
) -> list[tuple[T, MatchResult]]:
    """Match each candidate and order the matches by score, best first.

    Non-matching candidates are dropped; equal scores keep input order.
    """
    scored = []
    for candidate in candidates:
        result = match(pattern, key(candidate))
        if result.matched:
            scored.append((candidate, result))
    scored.sort(key=lambda item: -item[1].score)
    return scored
