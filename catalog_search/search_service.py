"""
Query orchestration for GET /api/products.

Remote path: structured query against the content store, in-memory post-filter
for dimensions the store cannot express, client-side re-ranking for text
relevance, then pagination metadata. Any failure there falls back to the local
catalog; if that fails too the caller gets a 500 error envelope. run_search
never raises.
"""
from __future__ import annotations

import math
from typing import Any, Callable, Mapping, Protocol, Sequence

from catalog_search import logging_utils as logging_utils_module
from catalog_search.adapter import sanity_document_to_product
from catalog_search.config import Settings, get_settings
from catalog_search.content_store import ContentStoreError
from catalog_search.filters import apply_filters
from catalog_search.models import (
    SORT_OPTIONS,
    ErrorEnvelope,
    PerformanceMeta,
    Product,
    SearchFilters,
    SearchMeta,
    SearchRequest,
    SearchResultEnvelope,
)
from catalog_search.query_builder import build_query_plan, needs_post_filter
from catalog_search.scoring import score_products
from catalog_search.sorting import apply_sorting, parse_iso_datetime

FALLBACK_ERROR = "Using local catalog due to content store error"


class QueryStore(Protocol):
    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> Any:
        ...


# --- parameter parsing -------------------------------------------------------


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _split_list(value: str | None) -> tuple[str, ...] | None:
    if not value:
        return None
    items = tuple(part.strip() for part in value.split(",") if part.strip())
    return items or None


def _parse_bool(value: str | None) -> bool | None:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _parse_int(value: str | None) -> int | None:
    """Integer prefix semantics: "12" and "12.9" both give 12; garbage gives None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        return None
    return int(number) if math.isfinite(number) else None


def _parse_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_sort(value: str | None) -> str | None:
    if not value:
        return "relevance"
    # Unknown names map to the default (featured, newest) strategy.
    return value if value in SORT_OPTIONS else None


def parse_search_params(params: Mapping[str, str], settings: Settings | None = None) -> SearchRequest:
    """
    Build the filter set and pagination from query-string parameters.
    Malformed values drop their dimension instead of failing the request;
    paired parameters (priceMin/priceMax, dateFrom/dateTo) need both halves.
    """
    settings = settings or get_settings()

    price_min = _parse_int(params.get("priceMin"))
    price_max = _parse_int(params.get("priceMax"))
    price_range = (price_min, price_max) if price_min is not None and price_max is not None else None

    date_from = _text(params.get("dateFrom"))
    date_to = _text(params.get("dateTo"))
    date_range = None
    if date_from and date_to and parse_iso_datetime(date_from) and parse_iso_datetime(date_to):
        date_range = (date_from, date_to)

    filters = SearchFilters(
        query=_text(params.get("query")),
        categories=_split_list(params.get("categories")),
        sort_by=_parse_sort(params.get("sortBy")),
        featured=_parse_bool(params.get("featured")),
        freebie=_parse_bool(params.get("freebie")),
        author=_text(params.get("author")),
        price_range=price_range,
        file_types=_split_list(params.get("fileTypes")),
        compatible_with=_split_list(params.get("compatibleWith")),
        min_rating=_parse_float(params.get("minRating")),
        date_range=date_range,
    )

    page = _parse_int(params.get("page"))
    limit = _parse_int(params.get("limit"))
    if page is None or page < 1:
        page = 1
    if limit is None or limit < 1:
        limit = settings.default_page_limit
    limit = min(limit, settings.max_page_limit)
    return SearchRequest(filters=filters, page=page, limit=limit)


# --- envelope ----------------------------------------------------------------


def build_meta(request: SearchRequest, total: int, results_found: int) -> SearchMeta:
    total_pages = math.ceil(total / request.limit) if request.limit else 0
    filters = request.filters
    return SearchMeta(
        page=request.page,
        limit=request.limit,
        total=total,
        total_pages=total_pages,
        has_next_page=request.page < total_pages,
        has_previous_page=request.page > 1,
        filters=filters,
        search_performed=bool(filters.query),
        performance=PerformanceMeta(
            results_found=results_found,
            search_query=filters.query,
            filters_applied=filters.active_dimensions(),
        ),
    )


# --- local path --------------------------------------------------------------


def search_local(
    products: Sequence[Product],
    request: SearchRequest,
    fallback: bool = False,
) -> SearchResultEnvelope:
    """Filter, sort and paginate an in-memory catalog; totals are exact."""
    filters = request.filters
    ordered = apply_sorting(apply_filters(products, filters), filters.sort_by, filters.query)
    page_items = ordered[request.offset : request.offset + request.limit]
    meta = build_meta(request, total=len(ordered), results_found=len(page_items))
    if fallback:
        meta.fallback = True
        meta.error = FALLBACK_ERROR
    return SearchResultEnvelope(data=page_items, meta=meta)


# --- remote path -------------------------------------------------------------


async def _count_total(store: QueryStore, request: SearchRequest, plan_count: tuple[str, dict], page_len: int) -> int:
    """
    Approximate total. A full page suggests more data, so pay for a count()
    query; a partial page is taken to be the last one and no count is issued.
    The count ignores post-filtered dimensions and may drift if the store's
    ordering changes between calls; it is an estimate, not a guarantee.
    """
    seen = request.offset + page_len
    if page_len < request.limit:
        return seen
    query, params = plan_count
    counted = await store.fetch(query, params)
    if not isinstance(counted, (int, float)):
        raise ContentStoreError("count query returned a non-numeric result")
    return max(int(counted), seen)


async def search_remote(store: QueryStore, request: SearchRequest) -> SearchResultEnvelope:
    filters = request.filters
    plan = build_query_plan(filters, offset=request.offset, limit=request.limit)
    query, params = plan.render()

    documents = await store.fetch(query, params)
    if not isinstance(documents, list):
        raise ContentStoreError("product query returned a non-list result")
    products = [sanity_document_to_product(doc) for doc in documents[: request.limit]]

    if needs_post_filter(filters):
        # The store already matched the text query; only narrow, keeping its order.
        products = apply_filters(products, filters.model_copy(update={"query": None}))

    # Re-rank locally so text relevance does not depend on the store's scoring.
    if filters.query and filters.sort_by == "relevance":
        products = apply_sorting(score_products(products, filters.query), "relevance", filters.query)

    total = await _count_total(store, request, plan.render_count(), len(products))
    meta = build_meta(request, total=total, results_found=len(products))
    return SearchResultEnvelope(data=products, meta=meta)


# --- orchestration -----------------------------------------------------------


async def run_search(
    params: Mapping[str, str],
    store: QueryStore | None,
    local_loader: Callable[[], Sequence[Product]],
    settings: Settings | None = None,
) -> tuple[int, dict[str, Any]]:
    """
    Answer one search request; returns (status_code, JSON body).
    Remote store first (unless local data mode is on), local catalog on failure,
    500 error envelope when the local catalog fails as well.
    """
    settings = settings or get_settings()
    request = parse_search_params(params, settings)

    if settings.use_local_data:
        try:
            return 200, search_local(local_loader(), request).to_json()
        except Exception as exc:
            logging_utils_module.log_event("local_catalog_failed", error=str(exc), error_type=type(exc).__name__)
            return 500, ErrorEnvelope(message=str(exc)).to_json()

    try:
        if store is None:
            raise ContentStoreError("content store is not configured")
        envelope = await search_remote(store, request)
        return 200, envelope.to_json()
    except Exception as exc:
        primary_error = exc
        logging_utils_module.log_event(
            "content_store_error",
            error=str(exc),
            error_type=type(exc).__name__,
            query=request.filters.query,
        )

    try:
        envelope = search_local(local_loader(), request, fallback=True)
        return 200, envelope.to_json()
    except Exception as exc:
        logging_utils_module.log_event("fallback_failed", error=str(exc), error_type=type(exc).__name__)
        return 500, ErrorEnvelope(message=str(primary_error) or type(primary_error).__name__).to_json()
