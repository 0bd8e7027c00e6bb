from .media import (
    ChainResult,
    EmbedCandidate,
    MediaFormat,
    MediaKind,
    MediaReference,
    RawCandidate,
    ResolutionMode,
    StrategyOutcome,
    StreamDescriptor,
    VerifiedCandidate,
)

__all__ = [
    "ChainResult",
    "EmbedCandidate",
    "MediaFormat",
    "MediaKind",
    "MediaReference",
    "RawCandidate",
    "ResolutionMode",
    "StrategyOutcome",
    "StreamDescriptor",
    "VerifiedCandidate",
]
