"""Native token synthesis for the primary video host.

The host serves two page shapes:

* **direct embed**: the page itself carries the player script::

      window.masterPlaylist = {
          params: {'token': 'a1b2c3', 'expires': '1767225600'},
          url: 'https://vixsrc.to/playlist/12345?b=1',
      }
      window.canPlayFHD = true

* **frame wrapper**: the page only wraps a single ``<iframe>`` on the
  same host. The wrapper and its frame must be re-fetched with the
  current asset version as ``X-Inertia-Version``. The version lives in
  the page-state JSON (``<div id="app" data-page="{...}">``) of the
  sibling request-a-title page.

The playlist URL is the base URL plus ``token``/``expires`` (and
``h=1`` when full HD is unlocked).
"""

from __future__ import annotations

import structlog

from vixresolver.domain.entities import RawCandidate
from vixresolver.domain.exceptions import ExtractionMiss
from vixresolver.domain.ports import PageFetcherPort
from vixresolver.infrastructure.config.schema import ResolverConfig
from vixresolver.infrastructure.extraction.extractors import (
    extract_page_version,
    extract_playlist_params,
    first_frame_src,
    same_host,
    synthesize_playlist_url,
)

log = structlog.get_logger(__name__)


def is_frame_wrapper(embed_url: str, embed_html: str, base_url: str) -> bool:
    """True when the page wraps a single frame on the primary host."""
    frame_url = first_frame_src(embed_html, embed_url)
    return same_host(frame_url, base_url)


class NativeTokenResolver:
    """Synthesizes the tokenized master playlist URL for one embed page."""

    def __init__(self, fetcher: PageFetcherPort, config: ResolverConfig) -> None:
        self._fetcher = fetcher
        self._base_url = config.base_url
        self._version_url = f"{config.base_url}/{config.version_page_path}"

    async def resolve(self, embed_url: str, embed_html: str) -> list[RawCandidate]:
        if is_frame_wrapper(embed_url, embed_html, self._base_url):
            page_url, html = await self._unwrap(embed_url)
        else:
            page_url, html = embed_url, embed_html

        params = extract_playlist_params(html, page_url)
        playlist_url = synthesize_playlist_url(params)
        log.debug(
            "native_playlist_synthesized",
            page_url=page_url,
            fhd=params.can_play_fhd,
        )
        label = "1080p" if params.can_play_fhd else "Stream"
        return [RawCandidate(url=playlist_url, label=label, referer=page_url)]

    async def fetch_version(self) -> str:
        """Read the current asset version from the request-a-title page."""
        html = await self._fetcher.fetch_text(
            self._version_url, {"Referer": f"{self._base_url}/"}
        )
        version = extract_page_version(html)
        if not version:
            raise ExtractionMiss("page version", self._version_url)
        return version

    async def _unwrap(self, wrapper_url: str) -> tuple[str, str]:
        """Re-fetch the wrapper and its nested frame with the version header."""
        version = await self.fetch_version()
        headers = {
            "X-Inertia": "true",
            "X-Inertia-Version": version,
            "Referer": f"{self._base_url}/",
        }
        wrapper_html = await self._fetcher.fetch_text(wrapper_url, headers)
        frame_url = first_frame_src(wrapper_html, wrapper_url)
        if not frame_url:
            raise ExtractionMiss("nested frame", wrapper_url)

        frame_html = await self._fetcher.fetch_text(
            frame_url, {**headers, "Referer": wrapper_url}
        )
        return frame_url, frame_html
