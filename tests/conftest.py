from __future__ import annotations

import pytest

from catalog_search import metrics as metrics_module

_ENV_VARS = (
    "SANITY_PROJECT_ID",
    "SANITY_DATASET",
    "SANITY_API_VERSION",
    "SANITY_API_TOKEN",
    "SANITY_USE_CDN",
    "CATALOG_STORE_TIMEOUT_S",
    "CATALOG_USE_LOCAL_DATA",
    "CATALOG_FALLBACK_PATH",
    "CATALOG_DEFAULT_PAGE_LIMIT",
    "CATALOG_MAX_PAGE_LIMIT",
    "CATALOG_CACHE_TTL_SECONDS",
    "CATALOG_CACHE_MAX_ENTRIES",
    "CATALOG_PORT",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch):
    """No real content store and fresh counters for every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    metrics_module.reset_metrics()
    yield
    metrics_module.reset_metrics()
