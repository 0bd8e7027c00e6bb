"""Resolver chain: one embed URL in, a pool of raw manifest candidates out.

The embed page is fetched once, then exactly one resolution mode runs:

* ``generic``: accumulating frame walk (see ``generic.py``),
* ``native``: token/version synthesis (see ``native.py``).

With ``auto`` the mode follows the page shape: pages carrying the
player script, or wrapping a frame on the primary host, go native;
everything else goes generic.
"""

from __future__ import annotations

import structlog

from vixresolver.domain.entities import ChainResult, ResolutionMode
from vixresolver.domain.ports import PageFetcherPort
from vixresolver.infrastructure.config.schema import ResolverConfig
from vixresolver.infrastructure.extraction.extractors import has_playlist_script
from vixresolver.infrastructure.resolvers.base import NATIVE_TOKEN_SYNTHESIS, attempt
from vixresolver.infrastructure.resolvers.generic import GenericFrameResolver
from vixresolver.infrastructure.resolvers.native import (
    NativeTokenResolver,
    is_frame_wrapper,
)

log = structlog.get_logger(__name__)


def select_mode(
    policy: ResolutionMode, embed_url: str, embed_html: str, base_url: str
) -> ResolutionMode:
    """Pick the resolution mode for one embed page."""
    if policy != "auto":
        return policy
    if has_playlist_script(embed_html):
        return "native"
    if is_frame_wrapper(embed_url, embed_html, base_url):
        return "native"
    return "generic"


class ResolverChain:
    """Runs the configured strategies for a single embed URL.

    Only the embed page fetch may raise (``NetworkError``); every later
    failure is recorded as a failed ``StrategyOutcome``.
    """

    def __init__(
        self,
        fetcher: PageFetcherPort,
        config: ResolverConfig,
        *,
        generic: GenericFrameResolver | None = None,
        native: NativeTokenResolver | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._policy = config.resolution_mode
        self._base_url = config.base_url
        self._generic = generic or GenericFrameResolver(fetcher, config)
        self._native = native or NativeTokenResolver(fetcher, config)

    async def resolve(self, embed_url: str) -> ChainResult:
        embed_html = await self._fetcher.fetch_text(embed_url)

        mode = select_mode(self._policy, embed_url, embed_html, self._base_url)
        log.debug("resolution_mode_selected", embed_url=embed_url, mode=mode)

        if mode == "native":
            outcomes = [
                await attempt(
                    NATIVE_TOKEN_SYNTHESIS,
                    self._native.resolve(embed_url, embed_html),
                    url=embed_url,
                )
            ]
        else:
            outcomes = await self._generic.resolve(embed_url, embed_html)

        result = ChainResult(embed_url=embed_url, mode=mode, outcomes=tuple(outcomes))
        log.info(
            "embed_resolved",
            embed_url=embed_url,
            mode=mode,
            candidates=len(result.candidates),
            failed=[o.strategy for o in result.outcomes if not o.ok],
        )
        return result
