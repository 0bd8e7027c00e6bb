"""Turn raw manifest candidates into ranked stream descriptors.

Dedup by URL, verify (concurrently, bounded), convert, then stable-sort
by quality so equal qualities keep their discovery order.
"""

from __future__ import annotations

import asyncio

import structlog

from vixresolver.domain.entities import (
    MediaFormat,
    RawCandidate,
    StreamDescriptor,
    VerifiedCandidate,
)
from vixresolver.domain.ports import ManifestVerifierPort
from vixresolver.infrastructure.config.schema import ResolverConfig
from vixresolver.infrastructure.extraction.extractors import (
    UNKNOWN_QUALITY,
    infer_quality,
    origin_of,
    quality_sort_key,
)

log = structlog.get_logger(__name__)


def dedupe_by_url(pool: list[RawCandidate]) -> list[RawCandidate]:
    """Keep the first candidate per URL, preserving order."""
    seen: set[str] = set()
    unique: list[RawCandidate] = []
    for candidate in pool:
        if candidate.url in seen:
            continue
        seen.add(candidate.url)
        unique.append(candidate)
    return unique


def sort_by_quality(descriptors: list[StreamDescriptor]) -> list[StreamDescriptor]:
    """Best quality first; ``sorted`` is stable so ties keep discovery order."""
    return sorted(descriptors, key=lambda d: quality_sort_key(d.quality), reverse=True)


class DescriptorAssembler:
    """Builds the caller-facing descriptor list for one embed URL."""

    def __init__(self, verifier: ManifestVerifierPort, config: ResolverConfig) -> None:
        self._verifier = verifier
        self._config = config
        self._semaphore_size = config.verify_concurrency

    async def assemble(self, pool: list[RawCandidate]) -> list[StreamDescriptor]:
        """Verified, ranked manifest descriptors; empty when nothing verifies."""
        unique = dedupe_by_url(pool)
        if not unique:
            return []

        verified = await self._verify_all(unique)
        log.info(
            "candidates_verified",
            total=len(unique),
            verified=len(verified),
            rejected=len(unique) - len(verified),
        )
        return sort_by_quality([self.to_descriptor(v) for v in verified])

    async def _verify_all(
        self, candidates: list[RawCandidate]
    ) -> list[VerifiedCandidate]:
        semaphore = asyncio.Semaphore(self._semaphore_size)

        async def _verify_one(candidate: RawCandidate) -> bool:
            async with semaphore:
                return await self._verifier.verify(candidate.url, candidate.referer)

        # gather keeps input order regardless of completion order
        results = await asyncio.gather(*(_verify_one(c) for c in candidates))
        return [
            VerifiedCandidate(candidate=c)
            for c, ok in zip(candidates, results)
            if ok
        ]

    def to_descriptor(self, verified: VerifiedCandidate) -> StreamDescriptor:
        quality = infer_quality(verified.label, self._config.quality_order)
        if quality == UNKNOWN_QUALITY:
            quality = infer_quality(verified.url, self._config.quality_order)

        headers = {
            "User-Agent": self._config.user_agent,
            "Referer": verified.referer,
        }
        origin = origin_of(verified.referer)
        if origin:
            headers["Origin"] = origin

        return StreamDescriptor(
            name=self._config.provider_name,
            title=self._title(quality),
            url=verified.url,
            quality=quality,
            media_format=MediaFormat.MANIFEST,
            headers=headers,
        )

    def external(self, embed_url: str) -> StreamDescriptor:
        """Fallback descriptor pointing at the embed page itself."""
        base = self._config.base_url
        return StreamDescriptor(
            name=self._config.embed_name,
            title=self._title("Open player"),
            url=embed_url,
            quality=UNKNOWN_QUALITY,
            media_format=MediaFormat.EXTERNAL,
            headers={
                "User-Agent": self._config.user_agent,
                "Referer": f"{base}/",
                "Origin": base,
            },
        )

    def _title(self, head: str) -> str:
        if head == UNKNOWN_QUALITY:
            head = "Stream"
        lang = self._config.language.upper()
        return f"{head} • {lang}" if lang else head
