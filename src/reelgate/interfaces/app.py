"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from reelgate.infrastructure.config import AppConfig
from reelgate.interfaces.app_state import AppState
from reelgate.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (HTTP clients, adapters, use cases) are created in lifespan().
    """
    app = FastAPI(
        title="Reelgate",
        description="Movie/episode playback resolution and same-origin stream proxy",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from reelgate.interfaces.api.playback.router import router as playback_router
    from reelgate.interfaces.api.proxy.router import router as proxy_router
    from reelgate.interfaces.api.stats.router import router as stats_router

    # Proxy URLs are built as "/proxy?...", so that router sits at the root.
    app.include_router(proxy_router)
    app.include_router(playback_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | bool]:
        """Liveness check: 200 as long as the process is running."""
        state = app.state
        return {
            "status": "ok",
            "playback_configured": getattr(state, "resolve_playback_uc", None)
            is not None,
            "tmdb": bool(config.tmdb_api_key),
            "stream_source": bool(config.stream_source_url),
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            # Proxy query strings carry forwarded credentials; log the path only.
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
