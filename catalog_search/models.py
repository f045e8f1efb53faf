"""Catalog records, search filter set and response envelopes for GET /api/products."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field


SortBy = Literal[
    "relevance",
    "newest",
    "oldest",
    "popular",
    "downloads",
    "price_low",
    "price_high",
    "rating",
    "trending",
    "alphabetical",
]
SORT_OPTIONS: tuple[str, ...] = get_args(SortBy)


class Category(BaseModel):
    """Category reference on a product."""
    name: str
    slug: str = ""


class Tag(BaseModel):
    name: str


class Author(BaseModel):
    """Creator reference on a product."""
    id: str = ""
    name: str
    slug: str = ""


class ProductStats(BaseModel):
    rating: float = 0.0
    downloads: int = Field(default=0, ge=0)
    reviews: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)


class Product(BaseModel):
    """One catalog item. search_score is transient and only set on search results."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    slug: str = ""
    description: str = ""
    short_description: Optional[str] = Field(default=None, alias="shortDescription")
    price: float = Field(ge=0)
    sale_price: Optional[float] = Field(default=None, alias="salePrice")
    currency: str = "USD"
    categories: list[Category] = Field(default_factory=list)
    tags: list[Tag] = Field(default_factory=list)
    author: Optional[Author] = None
    compatible_with: list[str] = Field(default_factory=list, alias="compatibleWith")
    file_types: list[str] = Field(default_factory=list, alias="fileTypes")
    stats: ProductStats = Field(default_factory=ProductStats)
    featured: bool = False
    freebie: bool = False
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    search_score: Optional[float] = Field(default=None, alias="searchScore")


class SearchFilters(BaseModel):
    """
    Full intent of one search. A field left as None means no constraint on that
    dimension; only sort_by has a default.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: Optional[str] = None
    categories: Optional[tuple[str, ...]] = None
    sort_by: Optional[SortBy] = Field(default="relevance", alias="sortBy")
    featured: Optional[bool] = None
    freebie: Optional[bool] = None
    author: Optional[str] = None
    price_range: Optional[tuple[float, float]] = Field(default=None, alias="priceRange")
    file_types: Optional[tuple[str, ...]] = Field(default=None, alias="fileTypes")
    compatible_with: Optional[tuple[str, ...]] = Field(default=None, alias="compatibleWith")
    min_rating: Optional[float] = Field(default=None, alias="minRating")
    date_range: Optional[tuple[str, str]] = Field(default=None, alias="dateRange")

    def active_dimensions(self) -> int:
        """Number of filter dimensions carrying a constraint (sort order is not a filter)."""
        count = 0
        for name in type(self).model_fields:
            if name == "sort_by":
                continue
            value = getattr(self, name)
            if value is None or value == () or value == "":
                continue
            count += 1
        return count


class PerformanceMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    results_found: int = Field(alias="resultsFound")
    search_query: Optional[str] = Field(default=None, alias="searchQuery")
    filters_applied: int = Field(alias="filtersApplied")


class SearchMeta(BaseModel):
    """Pagination and diagnostics block of a search response."""
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    has_previous_page: bool = Field(default=False, alias="hasPreviousPage")
    filters: Optional[SearchFilters] = None
    search_performed: bool = Field(default=False, alias="searchPerformed")
    performance: Optional[PerformanceMeta] = None
    fallback: Optional[bool] = None
    error: Optional[str] = None
    cached: Optional[bool] = None
    cache_timestamp: Optional[float] = Field(default=None, alias="cacheTimestamp")


class SearchResultEnvelope(BaseModel):
    data: list[Product] = Field(default_factory=list)
    meta: SearchMeta

    def to_json(self) -> dict:
        """Wire shape: camelCase keys, unset optionals omitted."""
        body = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if self.meta.filters is not None:
            # sortBy is always echoed; null selects the default strategy.
            body["meta"]["filters"]["sortBy"] = self.meta.filters.sort_by
        return body


class ErrorMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int = 1
    limit: int = 0
    total: int = 0
    total_pages: int = Field(default=0, alias="totalPages")


class ErrorEnvelope(BaseModel):
    """Body of the HTTP 500 response when no data source could answer."""
    error: str = "Internal server error"
    message: str
    data: list[Product] = Field(default_factory=list)
    meta: ErrorMeta = Field(default_factory=ErrorMeta)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class SearchRequest:
    """Parsed filters plus pagination for one call to the search endpoint."""

    filters: SearchFilters
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
