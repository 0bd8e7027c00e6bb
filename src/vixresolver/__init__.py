"""Resolve catalog ids into verified, ranked HLS stream descriptors."""

from __future__ import annotations

from vixresolver.domain.entities import MediaFormat, MediaReference, StreamDescriptor
from vixresolver.infrastructure.composition import resolve

__all__ = ["MediaFormat", "MediaReference", "StreamDescriptor", "resolve"]
