"""Shared plumbing for resolver strategies."""

from __future__ import annotations

from collections.abc import Awaitable

import structlog

from vixresolver.domain.entities import RawCandidate, StrategyOutcome
from vixresolver.domain.exceptions import ResolverError
from vixresolver.infrastructure.extraction.extractors import extract_manifest_urls

log = structlog.get_logger(__name__)

IN_PAGE_SCAN = "in_page_scan"
NESTED_FRAME_SCAN = "nested_frame_scan"
INNER_FRAME_SCAN = "inner_frame_scan"
HOST_TOKEN = "host_token"
NATIVE_TOKEN_SYNTHESIS = "native_token_synthesis"


def scan_page(page_url: str, html: str) -> list[RawCandidate]:
    """Manifest URLs found directly in *html*, discovered on *page_url*."""
    return [
        RawCandidate(url=url, label=url, referer=page_url)
        for url in extract_manifest_urls(html)
    ]


async def attempt(
    strategy: str,
    work: Awaitable[list[RawCandidate]],
    *,
    url: str,
) -> StrategyOutcome:
    """Await one strategy and turn resolution errors into a failed outcome."""
    try:
        candidates = await work
    except ResolverError as exc:
        log.warning("strategy_failed", strategy=strategy, url=url, error=str(exc))
        return StrategyOutcome.failed(strategy, exc)

    log.debug("strategy_done", strategy=strategy, url=url, found=len(candidates))
    return StrategyOutcome(strategy=strategy, candidates=tuple(candidates))
