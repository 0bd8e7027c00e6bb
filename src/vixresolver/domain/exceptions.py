"""Resolution errors."""

from __future__ import annotations


class ResolverError(Exception):
    """Base class for all resolution errors."""


class NetworkError(ResolverError):
    """Raised by the page fetcher on a non-2xx status, transport failure or timeout."""

    def __init__(
        self,
        url: str,
        *,
        status: int | None = None,
        timed_out: bool = False,
        reason: str = "",
    ) -> None:
        self.url = url
        self.status = status
        self.timed_out = timed_out
        if timed_out:
            detail = "timeout"
        elif status is not None:
            detail = f"HTTP {status}"
        else:
            detail = reason or "transport error"
        super().__init__(f"{detail} on {url}")

    @property
    def unreachable(self) -> bool:
        """True when no HTTP response was received at all."""
        return self.status is None


class ExtractionMiss(ResolverError):
    """Raised when an expected pattern (id, token, playlist params) is not in a page."""

    def __init__(self, what: str, url: str = "") -> None:
        self.what = what
        self.url = url
        super().__init__(f"{what} not found" + (f" on {url}" if url else ""))


class VerificationFailure(ResolverError):
    """A candidate URL did not serve an HLS manifest."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"not a manifest: {url}")
