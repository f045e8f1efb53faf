"""Read-only client for the content store's HTTP query API."""

from __future__ import annotations

import json
from typing import Any

import httpx

from catalog_search.config import Settings


class ContentStoreError(Exception):
    """The content store could not answer a query (network, HTTP or payload error)."""


class ContentStoreClient:
    def __init__(
        self,
        project_id: str,
        dataset: str = "production",
        api_version: str = "2023-05-03",
        token: str = "",
        use_cdn: bool = True,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        # Authenticated reads must bypass the CDN.
        host = "apicdn.sanity.io" if use_cdn and not token else "api.sanity.io"
        self.query_url = f"https://{project_id}.{host}/v{api_version}/data/query/{dataset}"
        self.token = token
        self.timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContentStoreClient":
        return cls(
            project_id=settings.sanity_project_id,
            dataset=settings.sanity_dataset,
            api_version=settings.sanity_api_version,
            token=settings.sanity_api_token,
            use_cdn=settings.sanity_use_cdn,
            timeout_s=settings.store_timeout_s,
        )

    def _query_params(self, query: str, params: dict[str, Any] | None) -> dict[str, str]:
        """Query text plus one $name=<json> entry per bound parameter."""
        out = {"query": query}
        for name, value in (params or {}).items():
            out[f"${name}"] = json.dumps(value)
        return out

    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> Any:
        """Run one query and return its `result`. Raises ContentStoreError on any failure."""
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                response = await client.get(
                    self.query_url,
                    params=self._query_params(query, params),
                    headers=headers,
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise ContentStoreError(f"content store HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ContentStoreError(f"content store network error: {exc.__class__.__name__}") from exc
        except ValueError as exc:
            raise ContentStoreError("content store returned invalid JSON") from exc

        if not isinstance(body, dict) or "result" not in body:
            raise ContentStoreError("content store response has no result")
        return body["result"]


def get_content_store(settings: Settings) -> ContentStoreClient | None:
    """Client for the configured project, or None when no project is configured."""
    if not settings.sanity_project_id:
        return None
    return ContentStoreClient.from_settings(settings)
