"""In-memory metrics since process start (requests_total, search_requests_total, fallback_total, errors_total, avg_latency_ms)."""

from __future__ import annotations

_metrics: dict[str, int | float] = {
    "requests_total": 0,
    "search_requests_total": 0,
    "fallback_total": 0,
    "errors_total": 0,
    "sum_latency_ms": 0.0,
}


def record_request(
    latency_ms: float,
    fallback: bool = False,
    error: bool = False,
    search_performed: bool = False,
) -> None:
    """Record one /api/products request for metrics."""
    _metrics["requests_total"] = _metrics.get("requests_total", 0) + 1
    _metrics["sum_latency_ms"] = _metrics.get("sum_latency_ms", 0.0) + latency_ms
    if search_performed:
        _metrics["search_requests_total"] = _metrics.get("search_requests_total", 0) + 1
    if fallback:
        _metrics["fallback_total"] = _metrics.get("fallback_total", 0) + 1
    if error:
        _metrics["errors_total"] = _metrics.get("errors_total", 0) + 1


def get_metrics() -> dict[str, int | float]:
    """Return current metrics as dict (for /metrics endpoint)."""
    total = _metrics.get("requests_total", 0)
    sum_ms = _metrics.get("sum_latency_ms", 0.0)
    avg = sum_ms / total if total else 0.0
    return {
        "requests_total": total,
        "search_requests_total": _metrics.get("search_requests_total", 0),
        "fallback_total": _metrics.get("fallback_total", 0),
        "errors_total": _metrics.get("errors_total", 0),
        "avg_latency_ms": round(avg, 2),
    }


def reset_metrics() -> None:
    """Reset in-memory counters (for tests only)."""
    _metrics["requests_total"] = 0
    _metrics["search_requests_total"] = 0
    _metrics["fallback_total"] = 0
    _metrics["errors_total"] = 0
    _metrics["sum_latency_ms"] = 0.0
