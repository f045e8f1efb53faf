"""
Sort strategies for filtered (and possibly score-annotated) products.
Every strategy is a key-function sort, so orderings are total and stable;
missing numeric fields count as 0 and missing timestamps as the epoch.
"""
from __future__ import annotations

import locale
from datetime import datetime, timezone
from typing import Callable, Iterable

from catalog_search.models import Product

TRENDING_DOWNLOADS_WEIGHT = 0.3
TRENDING_RATING_WEIGHT = 2


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_iso_datetime(value: str | None) -> datetime | None:
    """Parse an ISO date or datetime string; None when it cannot be parsed."""
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def effective_price(product: Product) -> float:
    """Sale price if set, else list price."""
    return product.sale_price if product.sale_price is not None else product.price


def effective_timestamp(product: Product) -> datetime | None:
    """Creation time, falling back to last update."""
    value = product.created_at or product.updated_at
    return as_utc(value) if value is not None else None


def _timestamp(product: Product) -> float:
    value = effective_timestamp(product)
    return value.timestamp() if value is not None else 0.0


def trend_score(product: Product) -> float:
    stats = product.stats
    return stats.downloads * TRENDING_DOWNLOADS_WEIGHT + stats.rating * TRENDING_RATING_WEIGHT


def _title_key(product: Product) -> tuple[str, str]:
    return (locale.strxfrm(product.title.casefold()), product.title)


_STRATEGIES: dict[str, tuple[Callable[[Product], object], bool]] = {
    "newest": (_timestamp, True),
    "oldest": (_timestamp, False),
    "price_low": (effective_price, False),
    "price_high": (effective_price, True),
    "popular": (lambda p: p.stats.downloads, True),
    "downloads": (lambda p: p.stats.downloads, True),
    "rating": (lambda p: (p.stats.rating, p.stats.reviews), True),
    "trending": (trend_score, True),
    "alphabetical": (_title_key, False),
}


def _relevance_without_query(product: Product) -> tuple:
    return (not product.featured, -product.stats.rating, -product.stats.downloads)


def _default_order(product: Product) -> tuple:
    return (not product.featured, -_timestamp(product))


def apply_sorting(
    products: Iterable[Product],
    sort_by: str | None,
    query: str | None = None,
) -> list[Product]:
    """Return a new list ordered by the named strategy. Unknown names use featured-then-newest."""
    items = list(products)

    if sort_by == "relevance":
        if query:
            return sorted(items, key=lambda p: p.search_score or 0.0, reverse=True)
        return sorted(items, key=_relevance_without_query)

    strategy = _STRATEGIES.get(sort_by or "")
    if strategy is None:
        return sorted(items, key=_default_order)
    key, descending = strategy
    return sorted(items, key=key, reverse=descending)
