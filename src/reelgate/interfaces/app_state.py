"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from reelgate.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from reelgate.application.use_cases import (
        PlayerPageUseCase,
        ResolvePlaybackUseCase,
    )
    from reelgate.infrastructure.metrics import MetricsCollector


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient  # catalog + stream-source calls
    proxy_client: httpx.AsyncClient  # origin replay (unbounded pool)

    # Metrics (zero-impact in-memory counters)
    metrics: MetricsCollector

    # Playback (None when TMDB key or stream source URL is missing)
    resolve_playback_uc: ResolvePlaybackUseCase | None
    player_page_uc: PlayerPageUseCase | None
