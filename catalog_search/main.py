from __future__ import annotations

import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from catalog_search import catalog as catalog_module
from catalog_search import content_store as content_store_module
from catalog_search import logging_utils as logging_utils_module
from catalog_search import metrics as metrics_module
from catalog_search import search_service as search_service_module
from catalog_search.config import get_settings


app = FastAPI(title="catalog-search", version="0.1.0")


def _session_request_ids(request: Request) -> tuple[str | None, str | None]:
    """Read x-session-id and x-request-id from headers; default None."""
    session_id = request.headers.get("x-session-id") or None
    request_id = request.headers.get("x-request-id") or None
    return session_id, request_id


@app.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> dict:
    """Lightweight JSON metrics (in-memory since process start)."""
    return metrics_module.get_metrics()


@app.get("/api/products")
async def list_products(request: Request) -> JSONResponse:
    """Search, filter, sort and paginate products; falls back to the local catalog when the content store fails."""
    route = "/api/products"
    session_id, request_id = _session_request_ids(request)
    t0 = time.perf_counter()

    settings = get_settings()
    status_code, body = await search_service_module.run_search(
        request.query_params,
        store=content_store_module.get_content_store(settings),
        local_loader=lambda: catalog_module.load_local_catalog(settings.fallback_path or None),
        settings=settings,
    )

    meta = body.get("meta") or {}
    fallback = bool(meta.get("fallback"))
    latency_ms = (time.perf_counter() - t0) * 1000
    metrics_module.record_request(
        latency_ms=latency_ms,
        fallback=fallback,
        error=status_code >= 500,
        search_performed=bool(meta.get("searchPerformed")),
    )
    logging_utils_module.log_request(
        route=route,
        latency_ms=latency_ms,
        status_code=status_code,
        results=len(body.get("data") or []),
        fallback=fallback,
        session_id=session_id,
        request_id=request_id,
    )
    return JSONResponse(status_code=status_code, content=body)


def main() -> None:
    import uvicorn

    uvicorn.run("catalog_search.main:app", host="0.0.0.0", port=get_settings().port)


if __name__ == "__main__":
    main()
