"""HLS manifest verification for resolved candidate URLs."""

from __future__ import annotations

import asyncio

import httpx
import structlog

from vixresolver.domain.exceptions import VerificationFailure
from vixresolver.infrastructure.config.schema import ResolverConfig

log = structlog.get_logger(__name__)

MANIFEST_MAGIC = "#EXTM3U"
MANIFEST_ACCEPT = "application/vnd.apple.mpegurl, application/x-mpegurl, */*"
_PREFIX_CHARS = 1024


def is_manifest_body(text: str) -> bool:
    """True when *text*, left-trimmed, opens with the HLS magic marker."""
    return text.lstrip()[:_PREFIX_CHARS].startswith(MANIFEST_MAGIC)


class ManifestVerifier:
    """GET-checks a candidate URL and inspects the first bytes of the body.

    A URL-shaped match on a page is not proof of a playlist; geo-blocks
    and error pages come back as HTML. Only a 2xx body that
    starts with ``#EXTM3U`` counts.
    """

    def __init__(self, http_client: httpx.AsyncClient, config: ResolverConfig) -> None:
        self._http = http_client
        self._user_agent = config.user_agent
        self._timeout = config.verify_timeout_seconds
        self._max_bytes = config.max_manifest_probe_bytes

    async def verify(self, url: str, referer: str) -> bool:
        try:
            await asyncio.wait_for(self.check(url, referer), timeout=self._timeout)
        except VerificationFailure as exc:
            log.info("manifest_rejected", url=url[:120], reason=str(exc))
            return False
        except (asyncio.TimeoutError, httpx.TimeoutException):
            log.warning("manifest_verify_timeout", url=url[:120])
            return False
        except Exception as exc:  # noqa: BLE001
            log.warning("manifest_verify_error", url=url[:120], error=repr(exc))
            return False

        log.debug("manifest_verified", url=url[:120])
        return True

    async def check(self, url: str, referer: str) -> None:
        """Raise ``VerificationFailure`` unless *url* serves a manifest."""
        headers = {
            "User-Agent": self._user_agent,
            "Accept": MANIFEST_ACCEPT,
            "Referer": referer,
        }
        head = bytearray()
        async with self._http.stream(
            "GET", url, headers=headers, follow_redirects=True
        ) as resp:
            if not resp.is_success:
                raise VerificationFailure(url)
            async for chunk in resp.aiter_bytes():
                head.extend(chunk)
                if len(head) >= self._max_bytes:
                    break

        text = bytes(head[: self._max_bytes]).decode("utf-8-sig", errors="replace")
        if not is_manifest_body(text):
            raise VerificationFailure(url)
