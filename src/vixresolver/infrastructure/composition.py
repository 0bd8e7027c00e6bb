"""Composition root for the resolution pipeline."""

from __future__ import annotations

import httpx
import structlog

from vixresolver.application.use_cases import ResolveStreamsUseCase
from vixresolver.domain.entities import MediaReference, StreamDescriptor
from vixresolver.infrastructure.config.schema import ResolverConfig
from vixresolver.infrastructure.http.fetcher import HttpxPageFetcher
from vixresolver.infrastructure.resolvers import ResolverChain
from vixresolver.infrastructure.streams.assembler import DescriptorAssembler
from vixresolver.infrastructure.verification.manifest import ManifestVerifier

log = structlog.get_logger(__name__)

_KIND_ALIASES = {"movie": "movie", "series": "series", "tv": "series"}


def build_use_case(
    http_client: httpx.AsyncClient, config: ResolverConfig
) -> ResolveStreamsUseCase:
    """Wire fetcher, chain, verifier and assembler around one HTTP client."""
    fetcher = HttpxPageFetcher(http_client, config)
    return ResolveStreamsUseCase(
        chain=ResolverChain(fetcher, config),
        assembler=DescriptorAssembler(ManifestVerifier(http_client, config), config),
        config=config,
    )


def make_reference(
    media_id: str,
    kind: str = "movie",
    season: int | None = None,
    episode: int | None = None,
) -> MediaReference | None:
    """Build a MediaReference, accepting ``tv`` as an alias for ``series``."""
    normalized = _KIND_ALIASES.get(kind.lower())
    if normalized is None:
        return None
    return MediaReference(
        id=str(media_id),
        kind=normalized,  # type: ignore[arg-type]
        season=season,
        episode=episode,
    )


async def resolve(
    media_id: str,
    kind: str = "movie",
    season: int | None = None,
    episode: int | None = None,
    *,
    config: ResolverConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> list[StreamDescriptor]:
    """Resolve a catalog id into ranked stream descriptors.

    Without *http_client* a fresh client is opened and closed for this
    call, so no connection state survives between calls.
    """
    config = config or ResolverConfig()
    ref = make_reference(media_id, kind, season, episode)
    if ref is None:
        log.warning("unsupported_media_kind", kind=kind, media_id=media_id)
        return []

    if http_client is not None:
        return await build_use_case(http_client, config).execute(ref)

    async with httpx.AsyncClient() as client:
        return await build_use_case(client, config).execute(ref)
