"""Generic frame-walking resolver.

Starting from an already fetched embed page, collects manifest URLs from:

1. the embed page itself,
2. its first ``<iframe>`` (fetched with the embed page as Referer),
3. the first ``<iframe>`` inside that frame (traversal stops here),
4. the RapidCloud ``getSources`` endpoints when the first frame is on a
   known proxy host.

Every step contributes to one pool; a failing step only loses its own
candidates.
"""

from __future__ import annotations

import structlog

from vixresolver.domain.entities import StrategyOutcome
from vixresolver.domain.exceptions import ResolverError
from vixresolver.domain.ports import PageFetcherPort
from vixresolver.infrastructure.config.schema import ResolverConfig
from vixresolver.infrastructure.extraction.extractors import (
    first_frame_src,
    matches_host_hint,
)
from vixresolver.infrastructure.resolvers.base import (
    HOST_TOKEN,
    IN_PAGE_SCAN,
    INNER_FRAME_SCAN,
    NESTED_FRAME_SCAN,
    attempt,
    scan_page,
)
from vixresolver.infrastructure.resolvers.host_token import HostTokenResolver

log = structlog.get_logger(__name__)


class GenericFrameResolver:
    """Accumulating in-page / nested-frame / host-token chain."""

    def __init__(
        self,
        fetcher: PageFetcherPort,
        config: ResolverConfig,
        host_token: HostTokenResolver | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._host_hints = config.host_hints
        self._host_token = host_token or HostTokenResolver(fetcher)

    async def resolve(self, embed_url: str, embed_html: str) -> list[StrategyOutcome]:
        outcomes = [
            StrategyOutcome(
                strategy=IN_PAGE_SCAN,
                candidates=tuple(scan_page(embed_url, embed_html)),
            )
        ]

        frame_url = first_frame_src(embed_html, embed_url)
        if frame_url:
            outcome, frame_html = await self._scan_frame(
                NESTED_FRAME_SCAN, frame_url, referer=embed_url
            )
            outcomes.append(outcome)

            inner_url = first_frame_src(frame_html, frame_url)
            if inner_url:
                outcome, _ = await self._scan_frame(
                    INNER_FRAME_SCAN, inner_url, referer=frame_url
                )
                outcomes.append(outcome)

        if frame_url and matches_host_hint(frame_url, self._host_hints):
            outcomes.append(
                await attempt(
                    HOST_TOKEN, self._host_token.resolve(frame_url), url=frame_url
                )
            )

        return outcomes

    async def _scan_frame(
        self, strategy: str, url: str, *, referer: str
    ) -> tuple[StrategyOutcome, str]:
        """Fetch one frame and scan it. Returns the outcome and the frame HTML."""
        try:
            html = await self._fetcher.fetch_text(url, {"Referer": referer})
        except ResolverError as exc:
            log.warning("strategy_failed", strategy=strategy, url=url, error=str(exc))
            return StrategyOutcome.failed(strategy, exc), ""

        candidates = scan_page(url, html)
        log.debug("strategy_done", strategy=strategy, url=url, found=len(candidates))
        return StrategyOutcome(strategy=strategy, candidates=tuple(candidates)), html
