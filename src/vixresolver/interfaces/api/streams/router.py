"""Stream resolution endpoint (Stremio-style ``/stream/{type}/{id}.json``)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request

from vixresolver.domain.entities import MediaKind, MediaReference
from vixresolver.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["streams"])

_KINDS: dict[str, MediaKind] = {"movie": "movie", "series": "series", "tv": "series"}


def _parse_media_id(kind: str, raw_id: str) -> MediaReference | None:
    """Parse a stream id into a MediaReference.

    Movies: "786892"
    Series: "1396:1:5" (season 1, episode 5)
    """
    media_kind = _KINDS.get(kind)
    if media_kind is None or not raw_id:
        return None

    parts = raw_id.split(":")
    media_id = parts[0]
    if not media_id:
        return None

    if media_kind == "series":
        if len(parts) != 3:
            return MediaReference(id=media_id, kind=media_kind)
        try:
            season = int(parts[1])
            episode = int(parts[2])
        except ValueError:
            return None
        return MediaReference(
            id=media_id, kind=media_kind, season=season, episode=episode
        )

    return MediaReference(id=media_id, kind=media_kind)


@router.get("/stream/{kind}/{media_id}.json")
async def get_streams(kind: str, media_id: str, request: Request) -> dict[str, Any]:
    ref = _parse_media_id(kind, media_id)
    if ref is None:
        log.info("stream_request_invalid", kind=kind, media_id=media_id)
        return {"streams": []}

    state = cast(AppState, request.app.state)
    streams = await state.resolve_uc.execute(ref)
    return {"streams": [s.to_dict() for s in streams]}
