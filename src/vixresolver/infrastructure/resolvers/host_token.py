"""RapidCloud-style host resolver (rabbitstream, vizcloud, vidcloud, ...).

These proxies embed a player page that carries an opaque source id.
The actual playlist list comes from a sibling JSON endpoint:
    {origin}/ajax/embed-4/getSources?id={id}
    {origin}/ajax/embed/getSources?id={id}

The second endpoint is only queried when the first yields no manifest.
"""

from __future__ import annotations

from urllib.parse import urlencode

import structlog

from vixresolver.domain.entities import RawCandidate
from vixresolver.domain.exceptions import ExtractionMiss, ResolverError
from vixresolver.domain.ports import PageFetcherPort
from vixresolver.infrastructure.extraction.extractors import (
    collect_manifest_sources,
    extract_source_id,
    origin_of,
)

log = structlog.get_logger(__name__)

_SOURCE_ENDPOINTS = (
    "/ajax/embed-4/getSources",
    "/ajax/embed/getSources",
)


class HostTokenResolver:
    """Resolves a proxy frame URL to manifest candidates via ``getSources``."""

    def __init__(self, fetcher: PageFetcherPort) -> None:
        self._fetcher = fetcher

    async def resolve(self, frame_url: str) -> list[RawCandidate]:
        """Fetch the frame page, extract its source id and query the endpoints.

        Raises ``ExtractionMiss`` when the page has no source id and
        ``NetworkError`` when the frame page itself cannot be fetched.
        """
        html = await self._fetcher.fetch_text(frame_url, {"Referer": frame_url})
        source_id = extract_source_id(html)
        if not source_id:
            raise ExtractionMiss("source id", frame_url)

        origin = origin_of(frame_url)
        headers = {
            "X-Requested-With": "XMLHttpRequest",
            "Referer": frame_url,
            "Origin": origin,
        }

        for path in _SOURCE_ENDPOINTS:
            endpoint = f"{origin}{path}?{urlencode({'id': source_id})}"
            try:
                payload = await self._fetcher.fetch_json(endpoint, headers)
            except ResolverError as exc:
                log.info("host_token_endpoint_failed", endpoint=endpoint, error=str(exc))
                continue

            sources = collect_manifest_sources(payload)
            if sources:
                log.debug(
                    "host_token_resolved",
                    source_id=source_id,
                    endpoint=endpoint,
                    count=len(sources),
                )
                return [
                    RawCandidate(url=url, label=label, referer=frame_url)
                    for url, label in sources
                ]

        log.info("host_token_no_sources", source_id=source_id, frame_url=frame_url)
        return []
