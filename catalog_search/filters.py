"""Structural filters over catalog products. Dimensions combine with AND; multi-valued ones with OR."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from catalog_search.models import Product, SearchFilters
from catalog_search.scoring import score_products
from catalog_search.sorting import effective_price, effective_timestamp, parse_iso_datetime


def _lowered(values: Iterable[str]) -> set[str]:
    return {v.lower() for v in values}


def filter_by_query(products: list[Product], query: str) -> list[Product]:
    """Annotate with search_score, drop non-matches, best matches first."""
    scored = [p for p in score_products(products, query) if (p.search_score or 0) > 0]
    return sorted(scored, key=lambda p: p.search_score or 0.0, reverse=True)


def _matches_author(product: Product, author: str) -> bool:
    if product.author is None:
        return False
    if product.author.slug and product.author.slug == author:
        return True
    return author.lower() in product.author.name.lower()


def _created_within(product: Product, start: datetime, end: datetime) -> bool:
    ts = effective_timestamp(product)
    return ts is not None and start <= ts <= end


def apply_filters(products: Iterable[Product], filters: SearchFilters) -> list[Product]:
    """
    Keep products satisfying every present filter dimension.
    Text search runs first and yields the score-annotated set the other filters narrow.
    """
    result = list(products)

    if filters.query:
        result = filter_by_query(result, filters.query)

    if filters.categories:
        wanted = set(filters.categories)
        result = [p for p in result if any(c.slug and c.slug in wanted for c in p.categories)]

    if filters.featured is not None:
        result = [p for p in result if p.featured == filters.featured]

    if filters.freebie is not None:
        result = [p for p in result if p.freebie == filters.freebie]

    if filters.price_range is not None:
        min_price, max_price = filters.price_range
        result = [p for p in result if min_price <= effective_price(p) <= max_price]

    if filters.author:
        result = [p for p in result if _matches_author(p, filters.author)]

    if filters.file_types:
        wanted = _lowered(filters.file_types)
        result = [p for p in result if any(t.lower() in wanted for t in p.file_types)]

    if filters.compatible_with:
        wanted = _lowered(filters.compatible_with)
        result = [p for p in result if any(s.lower() in wanted for s in p.compatible_with)]

    if filters.min_rating is not None:
        result = [p for p in result if p.stats.rating >= filters.min_rating]

    if filters.date_range is not None:
        start = parse_iso_datetime(filters.date_range[0])
        end = parse_iso_datetime(filters.date_range[1])
        # An unparseable bound disables the dimension rather than emptying the result.
        if start is not None and end is not None:
            result = [p for p in result if _created_within(p, start, end)]

    return result
