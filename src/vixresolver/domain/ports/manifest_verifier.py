"""Port for confirming that a URL serves an HLS manifest."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ManifestVerifierPort(Protocol):
    """Distinguishes real playlists from HTML interstitials and error pages."""

    async def verify(self, url: str, referer: str) -> bool:
        """Return True only if *url* serves a manifest. Never raises."""
        ...
