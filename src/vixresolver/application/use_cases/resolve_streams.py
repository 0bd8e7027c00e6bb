"""Stream resolution use case.

MediaReference -> embed URL variants -> resolver chain -> verification
-> ranked StreamDescriptor list (or the external-embed fallback).
"""

from __future__ import annotations

from typing import Protocol

import structlog

from vixresolver.application.candidates import build_embed_candidates
from vixresolver.domain.entities import (
    ChainResult,
    MediaReference,
    RawCandidate,
    StreamDescriptor,
)
from vixresolver.domain.exceptions import NetworkError

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its dependencies.
# Infrastructure components satisfy these via structural subtyping.
# ---------------------------------------------------------------------------


class _ResolverConfig(Protocol):
    """Configuration values consumed by ResolveStreamsUseCase."""

    base_url: str
    language: str


class _ResolverChain(Protocol):
    """Collects raw manifest candidates for one embed URL."""

    async def resolve(self, embed_url: str) -> ChainResult: ...


class _DescriptorAssembler(Protocol):
    """Verifies and ranks candidates; builds the external fallback."""

    async def assemble(self, pool: list[RawCandidate]) -> list[StreamDescriptor]: ...

    def external(self, embed_url: str) -> StreamDescriptor: ...


log = structlog.get_logger(__name__)


class ResolveStreamsUseCase:
    """Resolve a media reference into playable stream descriptors.

    Flow:
        1. Build embed URL variants (localized first).
        2. For each variant: run the resolver chain, verify and rank.
        3. First variant with verified streams wins.
        4. Otherwise return one external descriptor for the last variant tried.

    A series without season/episode yields ``[]``. Any other failure
    yields the external descriptor; nothing is raised to the caller.
    """

    def __init__(
        self,
        *,
        chain: _ResolverChain,
        assembler: _DescriptorAssembler,
        config: _ResolverConfig,
    ) -> None:
        self._chain = chain
        self._assembler = assembler
        self._base_url = config.base_url
        self._language = config.language

    async def execute(self, ref: MediaReference) -> list[StreamDescriptor]:
        candidates = build_embed_candidates(
            ref, base_url=self._base_url, language=self._language
        )
        if not candidates:
            log.info(
                "insufficient_parameters",
                media_id=ref.id,
                kind=ref.kind,
                season=ref.season,
                episode=ref.episode,
            )
            return []

        last_tried = candidates.primary or ""
        try:
            for embed_url in candidates:
                last_tried = embed_url
                try:
                    result = await self._chain.resolve(embed_url)
                except NetworkError as exc:
                    log.warning(
                        "embed_fetch_failed",
                        embed_url=embed_url,
                        status=exc.status,
                        timed_out=exc.timed_out,
                    )
                    # Host unreachable: the other variants live on the same host.
                    if exc.unreachable:
                        break
                    continue

                streams = await self._assembler.assemble(result.candidates)
                if streams:
                    log.info(
                        "streams_resolved",
                        media_id=ref.id,
                        embed_url=embed_url,
                        count=len(streams),
                        best=streams[0].quality,
                    )
                    return streams

                log.info("embed_exhausted", embed_url=embed_url, mode=result.mode)
        except Exception:
            log.exception("resolution_failed", media_id=ref.id, embed_url=last_tried)

        log.info("external_fallback", media_id=ref.id, embed_url=last_tried)
        return [self._assembler.external(last_tried)]
