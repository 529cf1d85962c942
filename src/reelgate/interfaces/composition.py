"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import functools
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from reelgate.application.use_cases import PlayerPageUseCase, ResolvePlaybackUseCase
from reelgate.infrastructure.config.schema import AppConfig
from reelgate.infrastructure.metrics import MetricsCollector
from reelgate.infrastructure.playback.proxy_url import PROXY_PATH, build_proxy_url
from reelgate.infrastructure.playback.stream_selector import select_stream
from reelgate.infrastructure.stream_source.client import HttpxStreamSourceClient
from reelgate.infrastructure.tmdb.client import HttpxTmdbClient
from reelgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_proxy_client(config: AppConfig) -> httpx.AsyncClient:
    """HTTP client for origin replay.

    No ``max_connections`` ceiling: one slow origin must not queue others.
    Redirects are followed hop by hop in ``open_origin_stream``.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            config.proxy_read_timeout_seconds,
            connect=config.proxy_connect_timeout_seconds,
        ),
        limits=httpx.Limits(
            max_connections=None,
            max_keepalive_connections=config.proxy_max_keepalive_connections,
        ),
        follow_redirects=False,
    )


def build_playback_use_cases(
    config: AppConfig,
    http_client: httpx.AsyncClient,
    metrics: MetricsCollector | None = None,
) -> tuple[ResolvePlaybackUseCase, PlayerPageUseCase] | None:
    """Wire the pipeline and the player page, or None when unconfigured."""
    if not config.tmdb_api_key or not config.stream_source_url:
        return None

    tmdb = HttpxTmdbClient(
        api_key=config.tmdb_api_key,
        http_client=http_client,
        base_url=config.tmdb_base_url,
        language=config.tmdb_language,
    )
    stream_source = HttpxStreamSourceClient(
        base_url=config.stream_source_url,
        http_client=http_client,
        timeout=config.http_timeout_seconds,
    )
    playback = ResolvePlaybackUseCase(
        cross_reference=tmdb,
        stream_source=stream_source,
        select_fn=select_stream,
        build_url_fn=functools.partial(build_proxy_url, proxy_path=PROXY_PATH),
        timeout_seconds=config.pipeline_timeout_seconds,
        metrics=metrics,
    )
    return playback, PlayerPageUseCase(metadata=tmdb, playback=playback)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Metrics (recorded into by the use cases)
        2. HTTP clients (API + proxy)
        3. Adapters and use cases (need the API client)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Metrics collector
    state.metrics = MetricsCollector()

    # 2) HTTP clients
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=True,
    )
    state.proxy_client = build_proxy_client(config)
    log.info(
        "http_clients_initialized",
        timeout=config.http_timeout_seconds,
        proxy_read_timeout=config.proxy_read_timeout_seconds,
    )

    # 3) Playback use cases (optional: need TMDB key + stream source URL)
    wired = build_playback_use_cases(config, state.http_client, state.metrics)
    if wired is None:
        state.resolve_playback_uc = None
        state.player_page_uc = None
        log.warning(
            "playback_not_configured",
            tmdb_api_key=bool(config.tmdb_api_key),
            stream_source_url=bool(config.stream_source_url),
        )
    else:
        state.resolve_playback_uc, state.player_page_uc = wired
        log.info("playback_initialized", stream_source=config.stream_source_url)

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.proxy_client.aclose()
        await state.http_client.aclose()
        log.info("http_clients_closed")

        log.info("app_shutdown_complete")
