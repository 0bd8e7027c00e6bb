"""Time-bounded page and JSON retrieval over httpx."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import structlog

from vixresolver.domain.exceptions import ExtractionMiss, NetworkError
from vixresolver.infrastructure.config.schema import ResolverConfig

log = structlog.get_logger(__name__)


class HttpxPageFetcher:
    """Fetches pages with the configured browser headers and a hard deadline.

    Each call is raced against ``page_timeout_seconds`` with
    ``asyncio.wait_for``, so slow bodies count against the deadline too.
    Caller headers override the defaults key by key.
    """

    def __init__(self, http_client: httpx.AsyncClient, config: ResolverConfig) -> None:
        self._http = http_client
        self._config = config

    async def fetch_text(
        self, url: str, headers: dict[str, str] | None = None
    ) -> str:
        merged = {**self._config.html_headers(), **(headers or {})}
        log.debug("page_fetch", url=url)
        resp = await self._get(url, merged)
        return resp.text

    async def fetch_json(
        self, url: str, headers: dict[str, str] | None = None
    ) -> Any:
        merged = {**self._config.json_headers(), **(headers or {})}
        log.debug("json_fetch", url=url)
        resp = await self._get(url, merged)
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ExtractionMiss("json body", url) from exc

    async def _get(self, url: str, headers: dict[str, str]) -> httpx.Response:
        timeout = self._config.page_timeout_seconds
        try:
            resp = await asyncio.wait_for(
                self._http.get(url, headers=headers, follow_redirects=True),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise NetworkError(url, timed_out=True) from exc
        except httpx.InvalidURL as exc:
            raise NetworkError(url, reason="invalid url") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(url, reason=type(exc).__name__) from exc

        if not resp.is_success:
            raise NetworkError(url, status=resp.status_code)
        return resp
