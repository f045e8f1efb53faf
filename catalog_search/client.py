"""Async client for GET /api/products with a response cache in front of it."""

from __future__ import annotations

import time

import httpx

from catalog_search.analytics import SearchAnalytics
from catalog_search.cache import ResultCache
from catalog_search.models import SearchFilters, SearchResultEnvelope


def _fmt_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def encode_search_params(filters: SearchFilters, page: int = 1, limit: int = 20) -> dict[str, str]:
    """Query-string form of a filter set; the inverse of search_service.parse_search_params."""
    params = {"page": str(page), "limit": str(limit)}
    if filters.query:
        params["query"] = filters.query
    if filters.categories:
        params["categories"] = ",".join(filters.categories)
    if filters.sort_by:
        params["sortBy"] = filters.sort_by
    if filters.featured is not None:
        params["featured"] = "true" if filters.featured else "false"
    if filters.freebie is not None:
        params["freebie"] = "true" if filters.freebie else "false"
    if filters.author:
        params["author"] = filters.author
    if filters.price_range is not None:
        params["priceMin"] = _fmt_number(filters.price_range[0])
        params["priceMax"] = _fmt_number(filters.price_range[1])
    if filters.file_types:
        params["fileTypes"] = ",".join(filters.file_types)
    if filters.compatible_with:
        params["compatibleWith"] = ",".join(filters.compatible_with)
    if filters.min_rating is not None:
        params["minRating"] = _fmt_number(filters.min_rating)
    if filters.date_range is not None:
        params["dateFrom"], params["dateTo"] = filters.date_range
    return params


class CatalogSearchClient:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str = "",
        cache: ResultCache | None = None,
        analytics: SearchAnalytics | None = None,
        page_size: int = 20,
    ) -> None:
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.analytics = analytics
        self.page_size = page_size

    async def search(self, filters: SearchFilters, page: int = 1) -> SearchResultEnvelope:
        """Cached envelope when fresh, else one request. Non-2xx responses raise httpx.HTTPStatusError."""
        t0 = time.perf_counter()
        if self.cache is not None:
            cached = self.cache.get(filters, page)
            if cached is not None:
                self._track(filters, cached, t0, from_cache=True)
                return cached

        r = await self.http_client.get(
            f"{self.base_url}/api/products",
            params=encode_search_params(filters, page, self.page_size),
        )
        r.raise_for_status()
        envelope = SearchResultEnvelope.model_validate(r.json())

        if self.cache is not None:
            self.cache.set(filters, page, envelope)
        self._track(filters, envelope, t0, from_cache=False)
        return envelope

    def _track(self, filters: SearchFilters, envelope: SearchResultEnvelope, t0: float, from_cache: bool) -> None:
        if self.analytics is None or not filters.query:
            return
        self.analytics.track(
            filters.query,
            filters,
            results_count=len(envelope.data),
            duration_ms=(time.perf_counter() - t0) * 1000,
            from_cache=from_cache,
        )
