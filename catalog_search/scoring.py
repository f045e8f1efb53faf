"""Relevance scoring: additive field-weighted substring signals plus a fuzzy title bonus."""

from __future__ import annotations

from typing import Iterable

from catalog_search.fuzzy import fuzzy_score
from catalog_search.models import Product

TITLE_WEIGHT = 10
TITLE_PREFIX_BONUS = 5
DESCRIPTION_WEIGHT = 3
SHORT_DESCRIPTION_WEIGHT = 2
CATEGORY_WEIGHT = 4
TAG_WEIGHT = 2
AUTHOR_WEIGHT = 3
COMPATIBLE_WEIGHT = 2
FILE_TYPE_WEIGHT = 1

NO_QUERY_SCORE = 1.0


def _any_contains(values: Iterable[str], query: str) -> bool:
    return any(query in value.lower() for value in values)


def calculate_search_score(product: Product, query: str | None) -> float:
    """Score one product against a free-text query. Empty query scores every product 1."""
    if not query:
        return NO_QUERY_SCORE

    q = query.lower()
    title = product.title.lower()
    score = 0.0

    if q in title:
        score += TITLE_WEIGHT
        if title.startswith(q):
            score += TITLE_PREFIX_BONUS
    if product.description and q in product.description.lower():
        score += DESCRIPTION_WEIGHT
    if product.short_description and q in product.short_description.lower():
        score += SHORT_DESCRIPTION_WEIGHT
    if _any_contains((c.name for c in product.categories), q):
        score += CATEGORY_WEIGHT
    if _any_contains((t.name for t in product.tags), q):
        score += TAG_WEIGHT
    if product.author is not None and q in product.author.name.lower():
        score += AUTHOR_WEIGHT
    if _any_contains(product.compatible_with, q):
        score += COMPATIBLE_WEIGHT
    if _any_contains(product.file_types, q):
        score += FILE_TYPE_WEIGHT

    score += fuzzy_score(title, q)
    return score


def score_products(products: Iterable[Product], query: str | None) -> list[Product]:
    """Return copies of products with search_score attached; inputs are left untouched."""
    return [
        product.model_copy(update={"search_score": calculate_search_score(product, query)})
        for product in products
    ]
