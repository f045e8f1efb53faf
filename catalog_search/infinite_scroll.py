"""
Infinite-scroll state for a product grid.

The view calls on_sentinel_visible() whenever its sentinel element scrolls
into view. The loading flag is set before the request is awaited and cleared
only once it settles, so overlapping triggers never request the same page
twice and page N is appended only after page N-1.
"""
from __future__ import annotations

import httpx
from pydantic import ValidationError

from catalog_search import logging_utils as logging_utils_module
from catalog_search.cache import has_significant_change
from catalog_search.client import CatalogSearchClient
from catalog_search.models import Product, SearchFilters, SearchResultEnvelope


class InfiniteScrollController:
    def __init__(self, client: CatalogSearchClient) -> None:
        self.client = client
        self.filters = SearchFilters()
        self.items: list[Product] = []
        self.page = 0
        self.has_more = True
        self.loading = False
        self.last_envelope: SearchResultEnvelope | None = None
        self._generation = 0

    async def reset(self, filters: SearchFilters) -> bool:
        """
        Start over with new filters and load page 1. Request errors propagate.
        A significant change clears the list at once; otherwise the current items
        stay visible until page 1 replaces them.
        """
        self._generation += 1
        if has_significant_change(self.filters, filters):
            self.items = []
        self.filters = filters
        self.page = 0
        self.has_more = True
        try:
            return await self._load(1, replace=True)
        except Exception:
            self.items = []
            raise

    async def on_sentinel_visible(self) -> bool:
        """Load and append the next page if there is one and nothing is in flight."""
        if not self.has_more or self.loading:
            return False
        next_page = self.page + 1
        try:
            return await self._load(next_page, replace=False)
        except (httpx.HTTPError, ValidationError) as exc:
            logging_utils_module.log_event("load_more_failed", page=next_page, error=str(exc))
            return False

    async def _load(self, page: int, replace: bool) -> bool:
        generation = self._generation
        self.loading = True
        try:
            envelope = await self.client.search(self.filters, page)
        finally:
            # A newer reset owns the flag now.
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            return False
        if replace:
            self.items = list(envelope.data)
        else:
            self.items.extend(envelope.data)
        self.page = page
        self.has_more = page < envelope.meta.total_pages
        self.last_envelope = envelope
        return True
