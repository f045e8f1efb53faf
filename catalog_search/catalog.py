"""Local product catalog used for mock-data mode and as the fallback when the content store fails."""

from __future__ import annotations

import json
from pathlib import Path

from catalog_search.models import Product

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "products.json"


def load_local_catalog(path: str | Path | None = None) -> list[Product]:
    """
    Read the catalog JSON (a list of product objects). Read and validation errors
    propagate; the caller decides how to report a dead fallback.
    """
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    raw = json.loads(catalog_path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"catalog file must hold a list of products: {catalog_path}")
    return [Product.model_validate(item) for item in raw]
