"""Edit-distance similarity used as the typo-tolerance signal of relevance scoring."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

EXACT_MATCH_BONUS = 5.0
SIMILARITY_THRESHOLD = 0.7


def levenshtein(a: str, b: str) -> int:
    """Minimum number of single-character insertions, deletions or substitutions turning a into b."""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """1 - distance / longest length, in [0, 1]. Two empty strings are identical (1.0)."""
    if not a and not b:
        return 1.0
    return Levenshtein.normalized_similarity(a, b)


def fuzzy_score(text: str, query: str) -> float:
    """
    Bonus for near-matches. Callers lower-case both sides.
    Identical -> EXACT_MATCH_BONUS; similarity above the threshold -> similarity * 2; else 0.
    """
    if text == query:
        return EXACT_MATCH_BONUS
    ratio = similarity(text, query)
    return ratio * 2 if ratio > SIMILARITY_THRESHOLD else 0.0
