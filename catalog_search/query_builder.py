"""
Translate a SearchFilters into a content-store (GROQ) query.

The query is assembled from small predicate/ordering nodes and every user
value travels as a bound parameter ($name), so rendering never interpolates
user input into the query text. File types, compatible software and the date
range are not pushed down; callers post-filter for those (needs_post_filter).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

from catalog_search.models import SearchFilters
from catalog_search.scoring import (
    AUTHOR_WEIGHT,
    CATEGORY_WEIGHT,
    DESCRIPTION_WEIGHT,
    SHORT_DESCRIPTION_WEIGHT,
    TAG_WEIGHT,
    TITLE_WEIGHT,
)
from catalog_search.sorting import TRENDING_DOWNLOADS_WEIGHT, TRENDING_RATING_WEIGHT

DOCUMENT_TYPE = "product"
SEARCH_TERM_PARAM = "searchTerm"

_PARAM_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_OPERATORS = {"==", "!=", ">=", "<=", ">", "<"}

# Dereference categories/tags/author so documents carry names and slugs.
PROJECTION_FIELDS = (
    "...",
    '"categories": categories[]->{name, "slug": slug.current}',
    '"tags": tags[]->{name}',
    '"author": author->{"id": _id, name, "slug": slug.current}',
)

MATCH_FIELDS = (
    "title",
    "description",
    "shortDescription",
    "tags[]->name",
    "categories[]->name",
    "author->name",
)

SCORE_WEIGHTS = (
    ("title", TITLE_WEIGHT),
    ("description", DESCRIPTION_WEIGHT),
    ("shortDescription", SHORT_DESCRIPTION_WEIGHT),
    ("categories[]->name", CATEGORY_WEIGHT),
    ("tags[]->name", TAG_WEIGHT),
    ("author->name", AUTHOR_WEIGHT),
)


def _param_ref(name: str) -> str:
    if not _PARAM_NAME.match(name):
        raise ValueError(f"invalid parameter name: {name!r}")
    return f"${name}"


class Predicate(Protocol):
    def render(self) -> str:
        ...


@dataclass(frozen=True)
class Comparison:
    """<expression> <op> $param"""
    expression: str
    op: str
    param: str

    def render(self) -> str:
        if self.op not in _OPERATORS:
            raise ValueError(f"unsupported operator: {self.op!r}")
        return f"{self.expression} {self.op} {_param_ref(self.param)}"


@dataclass(frozen=True)
class AnyIn:
    """True when at least one element of an array expression is in $param."""
    array_expression: str
    param: str

    def render(self) -> str:
        return f"count(({self.array_expression})[@ in {_param_ref(self.param)}]) > 0"


@dataclass(frozen=True)
class Match:
    """Full-text match of $param against any of the fields."""
    fields: tuple[str, ...]
    param: str

    def render(self) -> str:
        ref = _param_ref(self.param)
        return "(" + " || ".join(f"{f} match {ref}" for f in self.fields) + ")"


@dataclass(frozen=True)
class AllOf:
    predicates: tuple["Node", ...]

    def render(self) -> str:
        return " && ".join(p.render() for p in self.predicates)


Node = Union[Comparison, AnyIn, Match, AllOf]


@dataclass(frozen=True)
class Boost:
    expression: str
    param: str
    weight: int

    def render(self) -> str:
        return f"boost({self.expression} match {_param_ref(self.param)}, {self.weight})"


@dataclass(frozen=True)
class Ordering:
    expression: str
    descending: bool = True

    def render(self) -> str:
        return f"{self.expression} {'desc' if self.descending else 'asc'}"


_SORT_ORDERINGS: dict[str, tuple[Ordering, ...]] = {
    "newest": (Ordering("_createdAt"),),
    "oldest": (Ordering("_createdAt", descending=False),),
    "price_low": (Ordering("coalesce(salePrice, price)", descending=False),),
    "price_high": (Ordering("coalesce(salePrice, price)"),),
    "popular": (Ordering("stats.downloads"),),
    "downloads": (Ordering("stats.downloads"),),
    "rating": (Ordering("stats.rating"), Ordering("stats.reviews")),
    "trending": (
        Ordering(
            f"coalesce(stats.downloads, 0) * {TRENDING_DOWNLOADS_WEIGHT}"
            f" + coalesce(stats.rating, 0) * {TRENDING_RATING_WEIGHT}"
        ),
    ),
    "alphabetical": (Ordering("lower(title)", descending=False),),
}
_RELEVANCE_WITH_QUERY = (Ordering("searchScore"),)
_RELEVANCE_WITHOUT_QUERY = (
    Ordering("featured"),
    Ordering("stats.rating"),
    Ordering("stats.downloads"),
)
_DEFAULT_ORDERING = (Ordering("featured"), Ordering("_createdAt"))


def orderings_for(sort_by: str | None, has_query: bool) -> tuple[Ordering, ...]:
    """Server-side order clause mirroring the in-memory sort strategies."""
    if sort_by == "relevance":
        return _RELEVANCE_WITH_QUERY if has_query else _RELEVANCE_WITHOUT_QUERY
    return _SORT_ORDERINGS.get(sort_by or "", _DEFAULT_ORDERING)


@dataclass
class QueryPlan:
    """Intermediate form of one paged product query plus its bound parameters."""

    predicates: list[Node] = field(default_factory=list)
    score_terms: list[Boost] = field(default_factory=list)
    orderings: tuple[Ordering, ...] = ()
    params: dict[str, Any] = field(default_factory=dict)
    offset: int = 0
    limit: int = 20

    def _selection(self) -> str:
        return AllOf(tuple(self.predicates)).render()

    def _projection(self) -> str:
        fields = list(PROJECTION_FIELDS)
        if self.score_terms:
            fields.append('"searchScore": ' + " + ".join(t.render() for t in self.score_terms))
        return "{" + ", ".join(fields) + "}"

    def render(self) -> tuple[str, dict[str, Any]]:
        """Paged query text and params."""
        text = f"*[{self._selection()}]{self._projection()}"
        if self.orderings:
            text += " | order(" + ", ".join(o.render() for o in self.orderings) + ")"
        text += f"[{self.offset}...{self.offset + self.limit}]"
        return text, dict(self.params)

    def render_count(self) -> tuple[str, dict[str, Any]]:
        """count() over the same selection, without projection, order or slice."""
        return f"count(*[{self._selection()}])", dict(self.params)


def build_query_plan(filters: SearchFilters, offset: int = 0, limit: int = 20) -> QueryPlan:
    """Push down every dimension the store can express natively."""
    plan = QueryPlan(offset=offset, limit=limit)
    plan.predicates.append(Comparison("_type", "==", "documentType"))
    plan.params["documentType"] = DOCUMENT_TYPE

    if filters.query:
        plan.predicates.append(Match(MATCH_FIELDS, SEARCH_TERM_PARAM))
        plan.score_terms.extend(Boost(expr, SEARCH_TERM_PARAM, weight) for expr, weight in SCORE_WEIGHTS)
        plan.params[SEARCH_TERM_PARAM] = f"*{filters.query}*"

    if filters.categories:
        plan.predicates.append(AnyIn("categories[]->slug.current", "categories"))
        plan.params["categories"] = list(filters.categories)

    if filters.featured is not None:
        plan.predicates.append(Comparison("featured", "==", "featured"))
        plan.params["featured"] = filters.featured

    if filters.freebie is not None:
        plan.predicates.append(Comparison("freebie", "==", "freebie"))
        plan.params["freebie"] = filters.freebie

    if filters.price_range is not None:
        plan.predicates.append(Comparison("coalesce(salePrice, price)", ">=", "minPrice"))
        plan.predicates.append(Comparison("coalesce(salePrice, price)", "<=", "maxPrice"))
        plan.params["minPrice"], plan.params["maxPrice"] = filters.price_range

    if filters.author:
        plan.predicates.append(Comparison("author->slug.current", "==", "authorSlug"))
        plan.params["authorSlug"] = filters.author

    if filters.min_rating is not None:
        plan.predicates.append(Comparison("stats.rating", ">=", "minRating"))
        plan.params["minRating"] = filters.min_rating

    plan.orderings = orderings_for(filters.sort_by, bool(filters.query))
    return plan


def needs_post_filter(filters: SearchFilters) -> bool:
    """True when a dimension was not pushed down and must be applied in memory."""
    return bool(filters.file_types or filters.compatible_with or filters.date_range)
