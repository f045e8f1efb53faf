"""
Response cache tests. No network.
- get after set returns an equal envelope marked cached.
- TTL expiry -> miss, entry removed.
- Capacity bound evicts the least recently used entry.
- Keys ignore the order of multi-valued filters.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from catalog_search.cache import ResultCache, build_cache_key, has_significant_change
from catalog_search.config import get_settings
from catalog_search.models import Product, SearchFilters, SearchMeta, SearchResultEnvelope


def _envelope(*ids: str) -> SearchResultEnvelope:
    return SearchResultEnvelope(
        data=[Product(id=i, title=f"Product {i}", price=1) for i in ids],
        meta=SearchMeta(page=1, limit=20, total=len(ids), total_pages=1),
    )


def test_set_then_get_returns_cached_copy():
    cache = ResultCache()
    filters = SearchFilters(query="kit")
    cache.set(filters, 1, _envelope("a", "b"))
    hit = cache.get(filters, 1)
    assert hit is not None
    assert hit.data == _envelope("a", "b").data
    assert hit.meta.model_copy(update={"cached": None, "cache_timestamp": None}) == _envelope("a", "b").meta
    assert [p.id for p in hit.data] == ["a", "b"]
    assert hit.meta.cached is True
    assert hit.meta.cache_timestamp is not None


def test_miss_for_other_page_or_filters():
    cache = ResultCache()
    cache.set(SearchFilters(query="kit"), 1, _envelope("a"))
    assert cache.get(SearchFilters(query="kit"), 2) is None
    assert cache.get(SearchFilters(query="font"), 1) is None


def test_returned_copies_are_isolated():
    cache = ResultCache()
    filters = SearchFilters()
    original = _envelope("a")
    cache.set(filters, 1, original)
    original.data.clear()
    first = cache.get(filters, 1)
    first.data.clear()
    second = cache.get(filters, 1)
    assert [p.id for p in second.data] == ["a"]
    assert original.meta.cached is None


@patch("catalog_search.cache.time")
def test_ttl_expiry(mock_time):
    cache = ResultCache(ttl_seconds=300)
    filters = SearchFilters(query="kit")
    mock_time.time.return_value = 1000.0
    cache.set(filters, 1, _envelope("a"))

    mock_time.time.return_value = 1299.0
    assert cache.get(filters, 1) is not None

    mock_time.time.return_value = 1300.0
    assert cache.get(filters, 1) is None
    assert len(cache) == 0


def test_lru_eviction():
    cache = ResultCache(max_entries=2)
    a, b, c = SearchFilters(query="a"), SearchFilters(query="b"), SearchFilters(query="c")
    cache.set(a, 1, _envelope("a"))
    cache.set(b, 1, _envelope("b"))
    assert cache.get(a, 1) is not None  # a is now most recently used
    cache.set(c, 1, _envelope("c"))
    assert len(cache) == 2
    assert cache.get(b, 1) is None
    assert cache.get(a, 1) is not None
    assert cache.get(c, 1) is not None


def test_from_settings(monkeypatch):
    monkeypatch.setenv("CATALOG_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("CATALOG_CACHE_MAX_ENTRIES", "5")
    cache = ResultCache.from_settings(get_settings())
    assert (cache.ttl_seconds, cache.max_entries) == (60, 5)


def test_invalid_capacity():
    with pytest.raises(ValueError):
        ResultCache(max_entries=0)


def test_key_ignores_list_order():
    one = SearchFilters(categories=("icons", "fonts"), file_types=("PSD", "PNG"))
    two = SearchFilters(categories=("fonts", "icons"), file_types=("PNG", "PSD"))
    assert build_cache_key(one, 1) == build_cache_key(two, 1)
    assert build_cache_key(one, 1) != build_cache_key(one, 2)
    assert build_cache_key(one) != build_cache_key(SearchFilters(categories=("icons",)))


def test_clear_and_stats():
    cache = ResultCache()
    assert cache.stats() == {"total_entries": 0, "oldest_entry": None, "newest_entry": None}
    cache.set(SearchFilters(), 1, _envelope("a"))
    cache.set(SearchFilters(), 2, _envelope("b"))
    stats = cache.stats()
    assert stats["total_entries"] == 2
    assert stats["oldest_entry"] <= stats["newest_entry"]
    cache.clear()
    assert len(cache) == 0


def test_significant_change():
    base = SearchFilters(query="kit", categories=("icons", "fonts"))
    assert not has_significant_change(base, SearchFilters(query="kit", categories=("fonts", "icons")))
    assert not has_significant_change(base, base.model_copy(update={"file_types": ("PSD",)}))
    assert has_significant_change(base, base.model_copy(update={"query": "font"}))
    assert has_significant_change(base, base.model_copy(update={"sort_by": "newest"}))
    assert has_significant_change(base, base.model_copy(update={"price_range": (0.0, 10.0)}))
