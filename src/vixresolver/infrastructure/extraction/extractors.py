"""Pure extraction helpers over already-fetched HTML/JSON bodies.

Nothing in here performs I/O. The resolver strategies fetch pages and
hand the bodies to these functions:

* manifest URL scanning (``.m3u8`` substrings in any text),
* nested frame lookup (Nth ``<iframe src>`` resolved against the page URL),
* proxy host classification,
* quality inference and ordering,
* RapidCloud-style source ids and ``getSources`` payloads,
* page-state version and playlist parameters for native token synthesis.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode, urlparse

from vixresolver.domain.exceptions import ExtractionMiss
from vixresolver.infrastructure.extraction.html_selectors import (
    extract_all_attrs,
    first_attr_matching,
    parse_html,
    script_texts,
)

QUALITY_ORDER: tuple[str, ...] = (
    "2160p",
    "4K",
    "1440p",
    "1080p",
    "720p",
    "480p",
    "360p",
)
UNKNOWN_QUALITY = "Unknown"

_MANIFEST_URL_RE = re.compile(
    r"""https?://[^\s"'<>\\]+?\.m3u8(?:\?[^\s"'<>\\]*)?""",
    re.IGNORECASE,
)
_MANIFEST_SUFFIX_RE = re.compile(r"\.m3u8(?:\?|$)", re.IGNORECASE)
_QUALITY_NUMERIC_RE = re.compile(r"(\d{3,4})P")
_QUALITY_HEIGHT_RE = re.compile(r"(\d{3,4})p", re.IGNORECASE)

# RapidCloud embed ids
_SOURCE_ID_RE = re.compile(r"[A-Za-z0-9_-]{6,}")
_LOOSE_ID_RE = re.compile(r"""id["'\s=:]+([A-Za-z0-9_-]{6,})""", re.IGNORECASE)
_QUERY_ID_RE = re.compile(r"getSources\?id=([A-Za-z0-9_-]{6,})", re.IGNORECASE)

# window.masterPlaylist = { params: { 'token': '…', 'expires': '…' }, url: '…' }
_TOKEN_RE = re.compile(r"""(?<!\w)['"]?token['"]?\s*:\s*['"]([A-Za-z0-9_-]+)['"]""")
_EXPIRES_RE = re.compile(r"""(?<!\w)['"]?expires['"]?\s*:\s*['"]?(\d+)""")
_PLAYLIST_URL_RE = re.compile(r"""(?<!\w)['"]?url['"]?\s*:\s*['"](https?://[^'"\s]+)['"]""")
_FHD_RE = re.compile(r"canPlayFHD")
_FHD_OFF_RE = re.compile(r"""canPlayFHD['"]?\s*[=:]\s*(?:false|0|!1|null)(?![\w.])""")
_PLAYLIST_MARKER_RE = re.compile(r"masterPlaylist|canPlayFHD")


def extract_manifest_urls(text: str) -> list[str]:
    """Return every HLS manifest URL in *text*, first-seen order, deduplicated.

    JSON-escaped slashes (``https:\\/\\/``) are unescaped first so URLs
    embedded in inline script data are found as well.
    """
    if not text:
        return []
    normalized = text.replace("\\/", "/")
    seen: set[str] = set()
    urls: list[str] = []
    for m in _MANIFEST_URL_RE.finditer(normalized):
        url = m.group(0)
        if url not in seen:
            seen.add(url)
            urls.append(url)
    return urls


def nth_frame_src(html: str, base_url: str, n: int = 1) -> str | None:
    """Return the absolute URL of the *n*-th (1-based) ``<iframe src>``."""
    if not html or n < 1:
        return None
    srcs = extract_all_attrs(parse_html(html), "iframe[src]", "src", base_url=base_url)
    return srcs[n - 1] if len(srcs) >= n else None


def first_frame_src(html: str, base_url: str) -> str | None:
    return nth_frame_src(html, base_url, 1)


def _hostname(url: str) -> str:
    """Lower-cased host of *url*; empty when missing or unparseable."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def matches_host_hint(url: str | None, hints: tuple[str, ...] | list[str]) -> bool:
    """True when the host of *url* contains any of *hints* (case-insensitive)."""
    if not url:
        return False
    host = _hostname(url)
    if not host:
        return False
    return any(hint.lower() in host for hint in hints)


def same_host(url: str | None, other: str) -> bool:
    """True when both URLs share a hostname (``www.`` ignored)."""
    if not url:
        return False
    a = _hostname(url).removeprefix("www.")
    b = _hostname(other).removeprefix("www.")
    return bool(a) and a == b


def origin_of(url: str) -> str:
    """Scheme + host (+ port) of *url*, e.g. ``https://vixsrc.to``; empty if relative."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return ""
    if not parsed.scheme or not parsed.netloc:
        return ""
    return f"{parsed.scheme}://{parsed.netloc}"


def infer_quality(
    text: str | None, quality_order: tuple[str, ...] = QUALITY_ORDER
) -> str:
    """Infer a quality label from a label or URL.

    Vocabulary hits win in vocabulary order, then any ``NNNp`` token,
    otherwise ``"Unknown"``.
    """
    if not text:
        return UNKNOWN_QUALITY
    upper = str(text).upper()
    for quality in quality_order:
        if quality.upper() in upper:
            return quality
    m = _QUALITY_NUMERIC_RE.search(upper)
    return f"{m.group(1)}p" if m else UNKNOWN_QUALITY


def quality_sort_key(quality: str | None) -> int:
    """Pixel height of a quality label; ``4K`` is 4000, unknown is 0."""
    if not quality:
        return 0
    m = _QUALITY_HEIGHT_RE.search(quality)
    if m:
        return int(m.group(1))
    return 4000 if quality.strip().upper() == "4K" else 0


def extract_source_id(html: str) -> str | None:
    """Find the opaque source id on a RapidCloud-style embed page.

    Attempts in order, first match wins: ``data-id`` attribute, ``id``
    attribute, loose ``id: value`` text, ``getSources?id=`` query.
    """
    if not html:
        return None
    soup = parse_html(html)
    found = first_attr_matching(soup, "[data-id]", "data-id", _SOURCE_ID_RE)
    if found:
        return found
    found = first_attr_matching(soup, "[id]", "id", _SOURCE_ID_RE)
    if found:
        return found
    for pattern in (_LOOSE_ID_RE, _QUERY_ID_RE):
        m = pattern.search(html)
        if m:
            return m.group(1)
    return None


def collect_manifest_sources(payload: Any) -> list[tuple[str, str]]:
    """Harvest ``(url, label)`` manifest pairs from a ``getSources`` response.

    Accepts a bare URL string, an ``hls`` field, and ``sources`` or
    ``data.sources`` arrays of ``{file|url, label|quality}`` items.
    Non-manifest URLs are dropped.
    """
    found: list[tuple[str, str]] = []

    def _push(url: Any, label: Any) -> None:
        if isinstance(url, str) and _MANIFEST_SUFFIX_RE.search(url):
            found.append((url, str(label) if label else "Stream"))

    if not payload:
        return found
    if isinstance(payload, str):
        _push(payload, "Stream")
        return found
    if not isinstance(payload, dict):
        return found

    if payload.get("hls"):
        _push(payload["hls"], "HLS")

    sources = payload.get("sources")
    if not isinstance(sources, list):
        data = payload.get("data")
        sources = data.get("sources") if isinstance(data, dict) else None
    for item in sources if isinstance(sources, list) else []:
        if not isinstance(item, dict):
            continue
        _push(item.get("file") or item.get("url"), item.get("label") or item.get("quality"))
    return found


def extract_page_version(html: str) -> str | None:
    """Read the asset ``version`` from the page-state JSON in ``data-page``."""
    if not html:
        return None
    soup = parse_html(html)
    node = soup.select_one("#app[data-page]") or soup.select_one("[data-page]")
    if node is None:
        return None
    try:
        state = json.loads(str(node["data-page"]))
    except (json.JSONDecodeError, TypeError):
        return None
    version = state.get("version") if isinstance(state, dict) else None
    return str(version) if version else None


@dataclass(frozen=True)
class PlaylistParams:
    """Inputs for synthesizing a tokenized master playlist URL."""

    token: str
    expires: str
    url: str
    can_play_fhd: bool = False


def has_playlist_script(html: str) -> bool:
    """True when the page carries the inline master playlist script."""
    return bool(html) and _PLAYLIST_MARKER_RE.search(html) is not None


def _can_play_fhd(text: str) -> bool:
    """The flag counts when present unless it is assigned a falsy literal."""
    return _FHD_RE.search(text) is not None and _FHD_OFF_RE.search(text) is None


def extract_playlist_params(html: str, page_url: str = "") -> PlaylistParams:
    """Extract token, expiry and base URL from inline script content.

    Raises ``ExtractionMiss`` unless all three are present.
    """
    scripts = script_texts(parse_html(html)) if html else ""
    full = scripts or html or ""
    text = full
    # window.streams also carries "url" keys; prefer the masterPlaylist block.
    start = text.find("masterPlaylist")
    if start >= 0:
        text = text[start:]

    token = _TOKEN_RE.search(text)
    expires = _EXPIRES_RE.search(text)
    url = _PLAYLIST_URL_RE.search(text)
    if not (token and expires and url):
        missing = [
            name
            for name, m in (("token", token), ("expires", expires), ("url", url))
            if not m
        ]
        raise ExtractionMiss("playlist " + "/".join(missing), page_url)

    return PlaylistParams(
        token=token.group(1),
        expires=expires.group(1),
        url=url.group(1).replace("\\/", "/"),
        can_play_fhd=_can_play_fhd(full),
    )


def synthesize_playlist_url(params: PlaylistParams) -> str:
    """Append token/expiry (and the FHD unlock) to the base playlist URL."""
    sep = "&" if "?" in params.url else "?"
    query = {"token": params.token, "expires": params.expires}
    if params.can_play_fhd:
        query["h"] = "1"
    return f"{params.url}{sep}{urlencode(query)}"
