from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI, Request

from vixresolver.infrastructure.composition import build_use_case
from vixresolver.infrastructure.config import AppConfig
from vixresolver.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the HTTP client and the resolve use case; close on shutdown."""
    state = cast(AppState, app.state)
    config = state.config

    state.http_client = httpx.AsyncClient()
    state.resolve_uc = build_use_case(state.http_client, config.resolver)
    log.info(
        "app_startup_complete",
        base_url=config.resolver.base_url,
        resolution_mode=config.resolver.resolution_mode,
    )

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("app_shutdown_complete")


def build_app(config: AppConfig) -> FastAPI:
    """Build the FastAPI app. Resources are created in lifespan()."""
    app = FastAPI(
        title="vixresolver",
        description="Resolves catalog ids into verified HLS stream descriptors",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from vixresolver.interfaces.api.streams.router import router as streams_router

    app.include_router(streams_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
            )

    return app
