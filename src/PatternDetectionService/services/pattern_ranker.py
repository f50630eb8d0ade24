"""Merging, de-duplication and ranking of pattern candidates."""

from typing import Iterable

from models.patterns import PatternType

# Higher ranks first among candidates with equal completion
TYPE_IMPORTANCE = {
    PatternType.HEAD_AND_SHOULDERS: 10,
    PatternType.INVERSE_HEAD_AND_SHOULDERS: 10,
    PatternType.DOUBLE_TOP: 9,
    PatternType.DOUBLE_BOTTOM: 9,
    PatternType.ASCENDING_TRIANGLE: 8,
    PatternType.DESCENDING_TRIANGLE: 8,
    PatternType.BULLISH_PENNANT: 8,
    PatternType.BEARISH_PENNANT: 8,
    PatternType.SYMMETRICAL_TRIANGLE: 7,
    PatternType.RISING_WEDGE: 7,
    PatternType.FALLING_WEDGE: 7,
    PatternType.BULLISH_RECTANGLE: 6,
    PatternType.BEARISH_RECTANGLE: 6,
}
DEFAULT_IMPORTANCE = 5


def importance(candidate) -> int:
    return TYPE_IMPORTANCE.get(candidate.pattern_type, DEFAULT_IMPORTANCE)


def merge_candidates(*groups: Iterable) -> list:
    """Concatenate candidate lists, keeping the first of any with the same type and points."""
    seen = set()
    merged = []
    for group in groups:
        for candidate in group:
            key = (candidate.pattern_type, candidate.constituent_indices())
            if key in seen:
                continue
            seen.add(key)
            merged.append(candidate)
    return merged


def rank_classic(candidates: Iterable, cap: int = 5) -> list:
    """Sort by completion, then type importance (both descending) and keep the top `cap`."""
    ranked = sorted(merge_candidates(candidates), key=lambda c: (-c.completion, -importance(c)))
    return ranked[:cap]


def rank_harmonic(candidates: Iterable, complete_cap: int = 2, partial_cap: int = 3) -> list:
    """
    Sort by completion, then recency of the latest constituent swing, and
    return the top complete matches followed by the top developing ones.
    """
    ranked = sorted(merge_candidates(candidates), key=lambda c: (-c.completion, -c.latest_index()))
    complete = [c for c in ranked if c.completion == 100][:complete_cap]
    partial = [c for c in ranked if c.completion < 100][:partial_cap]
    return complete + partial
