"""Domain entities for media stream resolution.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

MediaKind = Literal["movie", "series"]
ResolutionMode = Literal["auto", "generic", "native"]


class MediaFormat(str, Enum):
    """How a client should consume a stream descriptor."""

    MANIFEST = "manifest"  # Directly playable HLS playlist
    EXTERNAL = "external"  # Embed page to open in a browser/player


@dataclass(frozen=True)
class MediaReference:
    """A catalog item to resolve.

    Movies only need ``id``. Series additionally need a positive
    ``season`` and ``episode``.
    """

    id: str
    kind: MediaKind = "movie"
    season: int | None = None
    episode: int | None = None

    @property
    def is_complete(self) -> bool:
        """True when enough parameters are present to build an embed URL."""
        if not self.id:
            return False
        if self.kind == "series":
            return bool(
                self.season
                and self.episode
                and self.season > 0
                and self.episode > 0
            )
        return True


@dataclass(frozen=True)
class EmbedCandidate:
    """Ordered embed URLs to try, most preferred first."""

    urls: tuple[str, ...] = ()

    def __iter__(self):
        return iter(self.urls)

    def __len__(self) -> int:
        return len(self.urls)

    def __bool__(self) -> bool:
        return bool(self.urls)

    @property
    def primary(self) -> str | None:
        return self.urls[0] if self.urls else None

    @property
    def last(self) -> str | None:
        return self.urls[-1] if self.urls else None


@dataclass(frozen=True)
class RawCandidate:
    """A manifest URL found on a page, not yet verified."""

    url: str
    label: str  # Used for quality inference, e.g. "1080p" or the URL itself
    referer: str  # Page the URL was discovered on


@dataclass(frozen=True)
class VerifiedCandidate:
    """A RawCandidate whose URL was proven to serve an HLS manifest."""

    candidate: RawCandidate

    @property
    def url(self) -> str:
        return self.candidate.url

    @property
    def label(self) -> str:
        return self.candidate.label

    @property
    def referer(self) -> str:
        return self.candidate.referer


@dataclass(frozen=True)
class StreamDescriptor:
    """A playable (or externally openable) stream handed to the caller."""

    name: str  # Provider name, e.g. "VixSrc (Direct)"
    title: str  # Human title, e.g. "1080p • IT"
    url: str
    quality: str = "Unknown"
    media_format: MediaFormat = MediaFormat.MANIFEST
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the stable external field names."""
        return {
            "name": self.name,
            "title": self.title,
            "url": self.url,
            "quality": self.quality,
            "mediaFormat": self.media_format.value,
            "headers": dict(self.headers),
        }


@dataclass(frozen=True)
class StrategyOutcome:
    """Result of one resolver strategy: candidates or the error that stopped it."""

    strategy: str
    candidates: tuple[RawCandidate, ...] = ()
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, strategy: str, error: Exception) -> StrategyOutcome:
        return cls(strategy=strategy, error=error)


@dataclass(frozen=True)
class ChainResult:
    """Accumulated raw candidates for a single embed URL."""

    embed_url: str
    mode: ResolutionMode
    outcomes: tuple[StrategyOutcome, ...] = ()

    @property
    def candidates(self) -> list[RawCandidate]:
        pool: list[RawCandidate] = []
        for outcome in self.outcomes:
            pool.extend(outcome.candidates)
        return pool
