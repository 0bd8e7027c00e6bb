"""Embed URL construction for media references."""

from __future__ import annotations

from urllib.parse import quote, urlencode

from vixresolver.domain.entities import EmbedCandidate, MediaReference


def _segment(value: object) -> str:
    return quote(str(value), safe="")


def build_embed_candidates(
    ref: MediaReference, *, base_url: str, language: str = ""
) -> EmbedCandidate:
    """Build the embed URLs to try for *ref*, localized variant first.

    Movies:  {base}/movie/{id}
    Series:  {base}/tv/{id}/{season}/{episode}

    Returns an empty candidate when a series lacks season/episode.
    """
    if not ref.is_complete:
        return EmbedCandidate()

    base = base_url.rstrip("/")
    if ref.kind == "series":
        path = f"/tv/{_segment(ref.id)}/{_segment(ref.season)}/{_segment(ref.episode)}"
    else:
        path = f"/movie/{_segment(ref.id)}"

    generic = f"{base}{path}"
    if not language:
        return EmbedCandidate(urls=(generic,))
    localized = f"{generic}?{urlencode({'lang': language})}"
    return EmbedCandidate(urls=(localized, generic))
