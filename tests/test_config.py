from __future__ import annotations

from catalog_search.config import Settings, get_settings


def test_defaults_without_env():
    s = get_settings()
    assert s == Settings()
    assert s.sanity_project_id == ""
    assert s.sanity_use_cdn is True
    assert s.use_local_data is False
    assert (s.default_page_limit, s.max_page_limit) == (20, 100)
    assert s.port == 8040


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SANITY_PROJECT_ID", "abc123")
    monkeypatch.setenv("SANITY_USE_CDN", "false")
    monkeypatch.setenv("CATALOG_USE_LOCAL_DATA", "1")
    monkeypatch.setenv("CATALOG_MAX_PAGE_LIMIT", "50")
    monkeypatch.setenv("CATALOG_STORE_TIMEOUT_S", "2.5")
    s = get_settings()
    assert s.sanity_project_id == "abc123"
    assert s.sanity_use_cdn is False
    assert s.use_local_data is True
    assert s.max_page_limit == 50
    assert s.store_timeout_s == 2.5
