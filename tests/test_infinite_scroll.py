"""Infinite-scroll controller against an in-process client (no HTTP)."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from catalog_search.catalog import load_local_catalog
from catalog_search.infinite_scroll import InfiniteScrollController
from catalog_search.models import SearchFilters, SearchRequest
from catalog_search.search_service import search_local

CATALOG = load_local_catalog()
PAGE_SIZE = 10


class _Client:
    """Serves pages of the local catalog; optionally blocks until released or fails."""

    def __init__(self):
        self.calls: list[int] = []
        self.gate: asyncio.Event | None = None
        self.fail_with: Exception | None = None

    async def search(self, filters, page=1):
        self.calls.append(page)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return search_local(CATALOG, SearchRequest(filters, page=page, limit=PAGE_SIZE))


def _ids(items) -> list[str]:
    return [p.id for p in items]


@pytest.mark.asyncio
async def test_pages_append_in_order_until_exhausted():
    client = _Client()
    controller = InfiniteScrollController(client)
    assert await controller.reset(SearchFilters(sort_by="oldest")) is True
    assert controller.page == 1 and controller.has_more is True

    assert await controller.on_sentinel_visible() is True
    assert await controller.on_sentinel_visible() is True
    assert controller.has_more is False
    assert await controller.on_sentinel_visible() is False

    assert client.calls == [1, 2, 3]
    assert len(controller.items) == 30
    expected = _ids(search_local(CATALOG, SearchRequest(SearchFilters(sort_by="oldest"), page=1, limit=30)).data)
    assert _ids(controller.items) == expected


@pytest.mark.asyncio
async def test_trigger_while_loading_is_ignored():
    client = _Client()
    controller = InfiniteScrollController(client)
    await controller.reset(SearchFilters())

    client.gate = asyncio.Event()
    first = asyncio.create_task(controller.on_sentinel_visible())
    await asyncio.sleep(0)
    assert controller.loading is True
    assert await controller.on_sentinel_visible() is False

    client.gate.set()
    assert await first is True
    assert client.calls == [1, 2]
    assert controller.loading is False
    assert len(controller.items) == 20
    assert len(set(_ids(controller.items))) == 20


@pytest.mark.asyncio
async def test_failed_load_more_keeps_state():
    client = _Client()
    controller = InfiniteScrollController(client)
    await controller.reset(SearchFilters())

    client.fail_with = httpx.ConnectError("offline")
    assert await controller.on_sentinel_visible() is False
    assert controller.page == 1
    assert controller.loading is False
    assert len(controller.items) == PAGE_SIZE

    client.fail_with = None
    assert await controller.on_sentinel_visible() is True
    assert controller.page == 2


@pytest.mark.asyncio
async def test_reset_discards_stale_page():
    client = _Client()
    controller = InfiniteScrollController(client)
    await controller.reset(SearchFilters())

    client.gate = asyncio.Event()
    stale = asyncio.create_task(controller.on_sentinel_visible())
    await asyncio.sleep(0)

    reset = asyncio.create_task(controller.reset(SearchFilters(freebie=True)))
    await asyncio.sleep(0)
    client.gate.set()

    assert await stale is False
    assert await reset is True
    assert controller.page == 1
    assert controller.has_more is False
    assert all(p.freebie for p in controller.items)
    assert len(controller.items) == 8
    assert controller.loading is False


@pytest.mark.asyncio
async def test_reset_propagates_errors():
    client = _Client()
    client.fail_with = httpx.ConnectError("offline")
    controller = InfiniteScrollController(client)
    with pytest.raises(httpx.ConnectError):
        await controller.reset(SearchFilters())
    assert controller.loading is False


@pytest.mark.asyncio
async def test_minor_filter_change_keeps_items_until_replaced():
    client = _Client()
    controller = InfiniteScrollController(client)
    await controller.reset(SearchFilters())
    shown = _ids(controller.items)

    client.gate = asyncio.Event()
    task = asyncio.create_task(controller.reset(SearchFilters(file_types=("PNG",))))
    await asyncio.sleep(0)
    assert _ids(controller.items) == shown

    client.gate.set()
    assert await task is True
    assert all("PNG" in p.file_types for p in controller.items)


@pytest.mark.asyncio
async def test_significant_filter_change_clears_items_at_once():
    client = _Client()
    controller = InfiniteScrollController(client)
    await controller.reset(SearchFilters())

    client.gate = asyncio.Event()
    task = asyncio.create_task(controller.reset(SearchFilters(query="kit")))
    await asyncio.sleep(0)
    assert controller.items == []

    client.gate.set()
    assert await task is True
    assert controller.items


@pytest.mark.asyncio
async def test_failed_minor_reset_clears_stale_items():
    client = _Client()
    controller = InfiniteScrollController(client)
    await controller.reset(SearchFilters())

    client.fail_with = httpx.ConnectError("offline")
    with pytest.raises(httpx.ConnectError):
        await controller.reset(SearchFilters(file_types=("PNG",)))
    assert controller.items == []
    assert controller.page == 0
