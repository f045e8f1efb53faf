from __future__ import annotations

import pytest

from catalog_search.fuzzy import EXACT_MATCH_BONUS, fuzzy_score, levenshtein, similarity

WORDS = ["", "a", "kit", "kitten", "sitting", "city kit", "design system pro", "ui"]


def test_levenshtein_known_distances():
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("flaw", "lawn") == 2
    assert levenshtein("city", "cty") == 1


def test_levenshtein_empty_strings():
    """Distance to an empty string is the other string's length."""
    assert levenshtein("", "") == 0
    assert levenshtein("", "abc") == 3
    assert levenshtein("abcd", "") == 4


@pytest.mark.parametrize("a", WORDS)
@pytest.mark.parametrize("b", WORDS)
def test_levenshtein_symmetric(a, b):
    assert levenshtein(a, b) == levenshtein(b, a)


@pytest.mark.parametrize("a", WORDS)
def test_levenshtein_identity(a):
    assert levenshtein(a, a) == 0


def test_similarity_range():
    assert similarity("", "") == 1.0
    assert similarity("abc", "xyz") == 0.0
    assert similarity("city", "cty") == pytest.approx(0.75)


def test_fuzzy_score_exact_match_bonus():
    assert fuzzy_score("blaster kit", "blaster kit") == EXACT_MATCH_BONUS


def test_fuzzy_score_near_match():
    """Similarity above 0.7 earns similarity * 2."""
    assert fuzzy_score("city", "cty") == pytest.approx(1.5)


def test_fuzzy_score_below_threshold_is_zero():
    assert fuzzy_score("city kit commercial", "city") == 0.0
    assert fuzzy_score("abcdefghij", "abcdefwxyz") == 0.0


@pytest.mark.parametrize("a", WORDS)
@pytest.mark.parametrize("b", WORDS)
def test_similarity_is_one_minus_normalised_distance(a, b):
    longest = max(len(a), len(b))
    expected = 1.0 if longest == 0 else 1 - levenshtein(a, b) / longest
    assert similarity(a, b) == pytest.approx(expected)
