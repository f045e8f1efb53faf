"""
Adapter: content-store product document → Product.
Mapping: _id→id, slug.current→slug, _createdAt/_updatedAt→created_at/updated_at,
categories/tags/author come pre-dereferenced by the query projection;
missing stats become zeros and a missing price becomes 0.
"""
from __future__ import annotations

from typing import Any

from catalog_search.models import Author, Category, Product, ProductStats, Tag


def _get(obj: dict[str, Any], key: str, default: Any = None) -> Any:
    return obj.get(key, default)


def _slug(value: Any) -> str:
    """Slugs arrive either as {"current": "..."} or already flattened to a string."""
    if isinstance(value, dict):
        value = value.get("current")
    return str(value) if value else ""


def _string_list(value: Any) -> list[str]:
    if not value:
        return []
    if not isinstance(value, list):
        value = [value]
    return [str(v) for v in value if v is not None]


def _categories(value: Any) -> list[Category]:
    out: list[Category] = []
    for item in value or []:
        if not isinstance(item, dict) or not item.get("name"):
            continue
        out.append(Category(name=str(item["name"]), slug=_slug(item.get("slug"))))
    return out


def _tags(value: Any) -> list[Tag]:
    return [Tag(name=str(t["name"])) for t in value or [] if isinstance(t, dict) and t.get("name")]


def _author(value: Any) -> Author | None:
    if not isinstance(value, dict) or not value.get("name"):
        return None
    return Author(
        id=str(value.get("id") or value.get("_id") or ""),
        name=str(value["name"]),
        slug=_slug(value.get("slug")),
    )


def _stats(value: Any) -> ProductStats:
    stats = value if isinstance(value, dict) else {}
    return ProductStats(
        rating=float(stats.get("rating") or 0),
        downloads=int(stats.get("downloads") or 0),
        reviews=int(stats.get("reviews") or 0),
        likes=int(stats.get("likes") or 0),
    )


def sanity_document_to_product(doc: dict[str, Any]) -> Product:
    """
    Map one projected product document to a Product.
    Raises pydantic.ValidationError when required fields are malformed
    (the caller treats that as a content-store failure).
    """
    sale_price = _get(doc, "salePrice")
    score = _get(doc, "searchScore")
    return Product(
        id=str(_get(doc, "_id") or _get(doc, "id") or ""),
        title=str(_get(doc, "title") or ""),
        slug=_slug(_get(doc, "slug")),
        description=str(_get(doc, "description") or ""),
        short_description=_get(doc, "shortDescription"),
        price=float(_get(doc, "price") or 0),
        sale_price=float(sale_price) if sale_price is not None else None,
        currency=str(_get(doc, "currency") or "USD"),
        categories=_categories(_get(doc, "categories")),
        tags=_tags(_get(doc, "tags")),
        author=_author(_get(doc, "author")),
        compatible_with=_string_list(_get(doc, "compatibleWith")),
        file_types=_string_list(_get(doc, "fileTypes")),
        stats=_stats(_get(doc, "stats")),
        featured=bool(_get(doc, "featured", False)),
        freebie=bool(_get(doc, "freebie", False)),
        created_at=_get(doc, "_createdAt") or _get(doc, "createdAt"),
        updated_at=_get(doc, "_updatedAt") or _get(doc, "updatedAt"),
        search_score=float(score) if score is not None else None,
    )
