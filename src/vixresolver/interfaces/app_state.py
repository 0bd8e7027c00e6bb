"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

import httpx
from starlette.datastructures import State

from vixresolver.application.use_cases import ResolveStreamsUseCase
from vixresolver.infrastructure.config import AppConfig


class AppState(State):
    """FastAPI application state.

    Lifecycle managed by app.py::lifespan().
    """

    config: AppConfig
    http_client: httpx.AsyncClient
    resolve_uc: ResolveStreamsUseCase
