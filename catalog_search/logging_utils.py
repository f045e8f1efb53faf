"""Structured logging: one JSON line per request or notable event on stdout."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any


SERVICE_NAME = "catalog-search"


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, default=str))


def log_request(
    route: str,
    latency_ms: float,
    status_code: int = 200,
    results: int = 0,
    fallback: bool = False,
    session_id: str | None = None,
    request_id: str | None = None,
) -> None:
    """Emit one JSON line with required fields."""
    _emit(
        {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "route": route,
            "status_code": status_code,
            "results": results,
            "fallback": fallback,
            "latency_ms": round(latency_ms, 2),
            "session_id": session_id,
            "request_id": request_id,
        }
    )


def log_event(event: str, **fields: Any) -> None:
    """Emit one JSON line for an event outside the request line (errors, degraded paths)."""
    payload: dict[str, Any] = {
        "ts": datetime.now(tz=timezone.utc).isoformat(),
        "service": SERVICE_NAME,
        "event": event,
    }
    payload.update(fields)
    _emit(payload)
