"""Client-side search analytics: popular terms, filter usage, latency and cache hit rate."""

from __future__ import annotations

import time
import uuid
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from catalog_search.models import SearchFilters

WEEK_SECONDS = 7 * 24 * 60 * 60
MAX_FILTER_USAGE = 100


@dataclass
class SearchEvent:
    query: str
    filters: dict[str, Any]
    results_count: int
    duration_ms: float
    from_cache: bool
    timestamp: float = field(default_factory=time.time)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class FilterUsage:
    filter_type: str
    filter_value: str
    usage_count: int
    last_used: float


def _day(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date().isoformat()


class SearchAnalytics:
    """Events are kept newest-first up to max_events."""

    def __init__(self, max_events: int = 1000) -> None:
        self._events: deque[SearchEvent] = deque(maxlen=max_events)
        self._terms: dict[str, int] = {}
        self._filter_usage: dict[tuple[str, str], FilterUsage] = {}

    def track(
        self,
        query: str,
        filters: SearchFilters,
        results_count: int,
        duration_ms: float,
        from_cache: bool = False,
    ) -> SearchEvent:
        event = SearchEvent(
            query=query.strip(),
            filters=filters.model_dump(mode="json", by_alias=True, exclude_none=True),
            results_count=results_count,
            duration_ms=duration_ms,
            from_cache=from_cache,
        )
        self._events.appendleft(event)
        if event.query:
            self._terms[event.query] = self._terms.get(event.query, 0) + 1
        self._track_filters(event.filters, event.timestamp)
        return event

    def _track_filters(self, filters: dict[str, Any], now: float) -> None:
        for filter_type, value in filters.items():
            if isinstance(value, list):
                if not value:
                    continue
                value_str = ",".join(str(v) for v in value)
            else:
                value_str = str(value)
            usage = self._filter_usage.get((filter_type, value_str))
            if usage is None:
                self._filter_usage[(filter_type, value_str)] = FilterUsage(filter_type, value_str, 1, now)
            else:
                usage.usage_count += 1
                usage.last_used = now
        if len(self._filter_usage) > MAX_FILTER_USAGE:
            keep = sorted(self._filter_usage.items(), key=lambda kv: kv[1].usage_count, reverse=True)
            self._filter_usage = dict(keep[:MAX_FILTER_USAGE])

    def popular_terms(self, limit: int = 10) -> list[dict[str, Any]]:
        ranked = sorted(self._terms.items(), key=lambda kv: kv[1], reverse=True)
        return [{"term": term, "count": count} for term, count in ranked[:limit]]

    def filter_usage(self, limit: int = 20) -> list[FilterUsage]:
        ranked = sorted(self._filter_usage.values(), key=lambda u: u.usage_count, reverse=True)
        return ranked[:limit]

    def performance(self) -> dict[str, Any]:
        events = list(self._events)
        durations = [e.duration_ms for e in events if e.duration_ms > 0]
        average = sum(durations) / len(durations) if durations else 0.0
        hits = sum(1 for e in events if e.from_cache)
        hit_rate = hits / len(events) * 100 if events else 0.0
        week_ago = time.time() - WEEK_SECONDS
        return {
            "total_searches": len(events),
            "average_search_duration": round(average),
            "cache_hit_rate": round(hit_rate, 1),
            "searches_this_week": sum(1 for e in events if e.timestamp > week_ago),
            "top_search_terms": self.popular_terms(5),
        }

    def daily_trends(self, days: int = 7) -> list[dict[str, Any]]:
        """Search counts per UTC day, oldest first, ending today."""
        counts: dict[str, int] = {}
        for event in self._events:
            day = _day(event.timestamp)
            counts[day] = counts.get(day, 0) + 1
        today = datetime.fromtimestamp(time.time(), tz=timezone.utc).date()
        trend = []
        for offset in range(days - 1, -1, -1):
            day = (today - timedelta(days=offset)).isoformat()
            trend.append({"date": day, "searches": counts.get(day, 0)})
        return trend

    def export(self) -> dict[str, Any]:
        return {
            "performance": self.performance(),
            "filter_usage": [asdict(u) for u in self.filter_usage(MAX_FILTER_USAGE)],
            "events": [asdict(e) for e in self._events],
            "exported_at": datetime.now(tz=timezone.utc).isoformat(),
        }

    def clear(self) -> None:
        self._events.clear()
        self._terms.clear()
        self._filter_usage.clear()
