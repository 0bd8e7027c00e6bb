"""Shared test fixtures for the vixresolver test suite."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from vixresolver.domain.entities import RawCandidate
from vixresolver.infrastructure.config import ResolverConfig


@pytest.fixture(autouse=True)
def _isolated_environ() -> Iterator[None]:
    """Drop VIXRESOLVER_* variables and undo anything a .env load adds."""
    saved = dict(os.environ)
    for key in list(os.environ):
        if key.startswith("VIXRESOLVER_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(saved)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def resolver_config() -> ResolverConfig:
    """Default config with short timeouts."""
    return ResolverConfig(page_timeout_seconds=2.0, verify_timeout_seconds=2.0)


# ---------------------------------------------------------------------------
# Candidate fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def raw_candidate() -> RawCandidate:
    return RawCandidate(
        url="https://cdn.example.net/hls/1080p/index.m3u8",
        label="https://cdn.example.net/hls/1080p/index.m3u8",
        referer="https://vixsrc.to/movie/786892?lang=it",
    )
