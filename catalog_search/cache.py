"""
In-memory TTL cache for search responses on the client side.
Key = sha256 of the filter set (sorted keys, sorted multi-value lists) plus page number.
Bounded to max_entries; the least recently used entry is evicted first.
"""
from __future__ import annotations

import hashlib
import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

from catalog_search.config import Settings
from catalog_search.models import SearchFilters, SearchResultEnvelope

# Multi-valued dimensions whose order carries no meaning.
_UNORDERED_FIELDS = ("categories", "file_types", "compatible_with")

# Dimensions whose change makes previously fetched pages irrelevant.
SIGNIFICANT_FIELDS = (
    "query",
    "categories",
    "sort_by",
    "featured",
    "freebie",
    "author",
    "price_range",
    "min_rating",
)


def _normalized(filters: SearchFilters) -> dict[str, Any]:
    payload = filters.model_dump(mode="json", exclude_none=True)
    for name in _UNORDERED_FIELDS:
        if name in payload:
            payload[name] = sorted(payload[name])
    return payload


def build_cache_key(filters: SearchFilters, page: int = 1) -> str:
    """Deterministic key; identical for semantically identical filter sets."""
    raw = json.dumps({"filters": _normalized(filters), "page": page}, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(raw.encode()).hexdigest()[:32]


def has_significant_change(old: SearchFilters, new: SearchFilters) -> bool:
    """True when the filter sets differ on any dimension that invalidates loaded pages."""
    before, after = _normalized(old), _normalized(new)
    return any(before.get(name) != after.get(name) for name in SIGNIFICANT_FIELDS)


@dataclass
class CacheEntry:
    key: str
    envelope: SearchResultEnvelope
    inserted_at: float


class ResultCache:
    """Process-lifetime response cache. Entries are copied in and out; callers never share them."""

    def __init__(self, ttl_seconds: float = 300, max_entries: int = 20) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResultCache":
        return cls(ttl_seconds=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)

    def __len__(self) -> int:
        return len(self._store)

    def get(self, filters: SearchFilters, page: int = 1) -> SearchResultEnvelope | None:
        """Return a copy marked cached=True if present and not expired, else None."""
        key = build_cache_key(filters, page)
        entry = self._store.get(key)
        if entry is None:
            return None
        if time.time() - entry.inserted_at >= self.ttl_seconds:
            del self._store[key]
            return None
        self._store.move_to_end(key)
        hit = entry.envelope.model_copy(deep=True)
        hit.meta.cached = True
        hit.meta.cache_timestamp = entry.inserted_at
        return hit

    def set(self, filters: SearchFilters, page: int, envelope: SearchResultEnvelope) -> None:
        """Store with a fresh timestamp, evicting least recently used entries beyond max_entries."""
        key = build_cache_key(filters, page)
        self._store[key] = CacheEntry(key=key, envelope=envelope.model_copy(deep=True), inserted_at=time.time())
        self._store.move_to_end(key)
        while len(self._store) > self.max_entries:
            self._store.popitem(last=False)

    def clear(self) -> None:
        self._store.clear()

    def stats(self) -> dict[str, Any]:
        timestamps = [e.inserted_at for e in self._store.values()]
        return {
            "total_entries": len(timestamps),
            "oldest_entry": min(timestamps) if timestamps else None,
            "newest_entry": max(timestamps) if timestamps else None,
        }
