"""Bright Data SERP retrieval client.

Sends Google search requests through the Bright Data super-proxy with
``brd_json=1`` so the response is parsed SERP JSON rather than HTML.
Uses ``httpx.AsyncClient``; pass your own client to control transport,
proxy and TLS settings (tests use ``httpx.MockTransport``).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlparse

import httpx

from cost_of_living.domain.exceptions import RetrievalError
from cost_of_living.infrastructure.config import SearchConfig
from cost_of_living.services.interfaces import BaseSearchClient

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.google.com/search"

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "application/json, text/html, */*",
    "Accept-Encoding": "gzip, deflate",
}


def _source_of(item: Mapping[str, Any]) -> str:
    display = item.get("display_link") or item.get("source")
    if display:
        return str(display)
    link = item.get("link")
    return urlparse(str(link)).netloc if link else ""


def normalize_serp(data: Mapping[str, Any], limit: int) -> dict[str, Any]:
    """Reduce a Bright Data SERP payload to ``{"organic", "knowledge"}``."""
    organic = [
        {
            "title": item.get("title") or "",
            "description": item.get("description") or "",
            "link": item.get("link") or "",
            "source": _source_of(item),
        }
        for item in list(data.get("organic") or [])[:limit]
        if isinstance(item, Mapping)
    ]
    result: dict[str, Any] = {"organic": organic}
    knowledge = data.get("knowledge")
    if isinstance(knowledge, Mapping):
        result["knowledge"] = {
            "description": knowledge.get("description") or "",
            "facts": [
                {"key": fact.get("key", ""), "value": fact.get("value", "")}
                for fact in knowledge.get("facts") or []
                if isinstance(fact, Mapping)
            ],
        }
    return result


class BrightDataSearchClient(BaseSearchClient):
    """Search collaborator backed by the Bright Data SERP proxy.

    Parameters
    ----------
    config:
        Proxy credentials and request settings.
    client:
        Optional pre-built ``httpx.AsyncClient``.  When omitted, one is
        created with the proxy URL, TLS verification setting and timeout
        from *config*, and closed by :meth:`aclose`.

    Raises
    ------
    RetrievalError
        From :meth:`search` on transport errors, non-2xx statuses and
        non-JSON bodies.
    """

    def __init__(
        self,
        config: SearchConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                proxy=config.proxy_url if config.has_credentials else None,
                verify=config.verify_ssl,
                timeout=httpx.Timeout(config.timeout_seconds),
                headers=DEFAULT_HEADERS,
            )
        self._client = client

    async def search(self, query: str, limit: int) -> dict[str, Any]:
        params = {"q": query, "num": limit, "brd_json": 1}
        try:
            response = await self._client.get(SEARCH_URL, params=params)
        except httpx.TimeoutException as exc:
            raise RetrievalError(
                f"Search request timed out after {self._config.timeout_seconds}s",
                query=query,
            ) from exc
        except httpx.HTTPError as exc:
            raise RetrievalError(f"Search request failed: {exc}", query=query) from exc

        if response.status_code >= 400:
            raise RetrievalError(
                f"HTTP error! Status: {response.status_code} - {response.reason_phrase}",
                query=query,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            text = response.text.lstrip()
            if text.startswith("<!DOCTYPE") or text.startswith("<html"):
                message = "Received HTML instead of JSON - proxy may not be working correctly"
            else:
                message = "Response is not valid JSON"
            raise RetrievalError(message, query=query, status_code=response.status_code) from exc

        if not isinstance(data, Mapping):
            raise RetrievalError(
                f"Unexpected response payload of type {type(data).__name__}",
                query=query,
                status_code=response.status_code,
            )
        result = normalize_serp(data, limit)
        logger.debug("Search %r returned %d organic results", query, len(result["organic"]))
        return result

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> BrightDataSearchClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
