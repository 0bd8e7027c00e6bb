"""Port for time-bounded page retrieval."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class PageFetcherPort(Protocol):
    """Fetches pages and JSON documents with a fixed wall-clock bound.

    Implementations raise ``NetworkError`` on non-2xx responses,
    transport failures and timeouts. They never retry.
    """

    async def fetch_text(
        self, url: str, headers: dict[str, str] | None = None
    ) -> str:
        """Return the response body as text."""
        ...

    async def fetch_json(
        self, url: str, headers: dict[str, str] | None = None
    ) -> Any:
        """Return the decoded JSON response body."""
        ...
