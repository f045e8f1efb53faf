"""Service configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    sanity_project_id: str = ""
    sanity_dataset: str = "production"
    sanity_api_version: str = "2023-05-03"
    sanity_api_token: str = ""
    sanity_use_cdn: bool = True
    store_timeout_s: float = 10.0
    use_local_data: bool = False
    fallback_path: str = ""
    default_page_limit: int = 20
    max_page_limit: int = 100
    cache_ttl_seconds: int = 300
    cache_max_entries: int = 20
    port: int = 8040

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            sanity_project_id=os.environ.get("SANITY_PROJECT_ID", cls.sanity_project_id),
            sanity_dataset=os.environ.get("SANITY_DATASET", cls.sanity_dataset),
            sanity_api_version=os.environ.get("SANITY_API_VERSION", cls.sanity_api_version),
            sanity_api_token=os.environ.get("SANITY_API_TOKEN", cls.sanity_api_token),
            sanity_use_cdn=_as_bool(os.environ.get("SANITY_USE_CDN"), cls.sanity_use_cdn),
            store_timeout_s=float(os.environ.get("CATALOG_STORE_TIMEOUT_S", str(cls.store_timeout_s))),
            use_local_data=_as_bool(os.environ.get("CATALOG_USE_LOCAL_DATA"), cls.use_local_data),
            fallback_path=os.environ.get("CATALOG_FALLBACK_PATH", cls.fallback_path),
            default_page_limit=int(os.environ.get("CATALOG_DEFAULT_PAGE_LIMIT", str(cls.default_page_limit))),
            max_page_limit=int(os.environ.get("CATALOG_MAX_PAGE_LIMIT", str(cls.max_page_limit))),
            cache_ttl_seconds=int(os.environ.get("CATALOG_CACHE_TTL_SECONDS", str(cls.cache_ttl_seconds))),
            cache_max_entries=int(os.environ.get("CATALOG_CACHE_MAX_ENTRIES", str(cls.cache_max_entries))),
            port=int(os.environ.get("CATALOG_PORT", str(cls.port))),
        )


def get_settings() -> Settings:
    """Read settings on each call so env changes (and tests) take effect."""
    return Settings.from_env()
