"""Playback resolution and player page endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, cast

import structlog
from fastapi import APIRouter, Path, Query, Request
from fastapi.responses import JSONResponse

from reelgate.domain.entities.errors import (
    ResolutionError,
    ResolutionStage,
    StreamTransportError,
)
from reelgate.domain.entities.playback import ResolutionRequest, ResolutionResult
from reelgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["playback"])

_STAGE_STATUS: dict[ResolutionStage, int] = {
    ResolutionStage.CROSS_REFERENCE: 404,
    ResolutionStage.TRANSPORT: 502,
    ResolutionStage.UPSTREAM_STATUS: 502,
    ResolutionStage.NO_STREAMS: 404,
}


def resolution_status_code(error: ResolutionError) -> int:
    """HTTP status answered for a pipeline failure."""
    if isinstance(error, StreamTransportError) and error.timed_out:
        return 504
    return _STAGE_STATUS[error.stage]


def _not_configured() -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": "playback_not_configured"})


def _unknown_kind(kind: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": "unknown_media_kind", "kind": kind},
    )


def _playback_body(result: ResolutionResult) -> dict[str, Any]:
    if result.error is not None:
        return {"error": result.error.to_dict()}
    return {"url": result.playback_url}


def _build_request(
    kind: str, catalog_id: str, season: int | None, episode: int | None
) -> ResolutionRequest | None:
    try:
        return ResolutionRequest.build(kind, catalog_id, season, episode)
    except ValueError:
        return None


async def _resolve(
    request: Request,
    kind: str,
    catalog_id: str,
    season: int | None,
    episode: int | None,
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    use_case = getattr(state, "resolve_playback_uc", None)
    if use_case is None:
        return _not_configured()

    parsed = _build_request(kind, catalog_id, season, episode)
    if parsed is None:
        return _unknown_kind(kind)

    log.info(
        "playback_request",
        kind=parsed.kind,
        catalog_id=parsed.catalog_id,
        season=parsed.season,
        episode=parsed.episode,
    )
    result = await use_case.execute(parsed)

    if result.error is not None:
        return JSONResponse(
            status_code=resolution_status_code(result.error),
            content=_playback_body(result),
        )
    return JSONResponse(content=_playback_body(result))


async def _player(
    request: Request,
    kind: str,
    catalog_id: str,
    season: int | None,
    episode: int | None,
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    use_case = getattr(state, "player_page_uc", None)
    if use_case is None:
        return _not_configured()

    parsed = _build_request(kind, catalog_id, season, episode)
    if parsed is None:
        return _unknown_kind(kind)

    page = await use_case.execute(parsed)

    if page.details is None:
        error = page.result.error
        return JSONResponse(
            status_code=resolution_status_code(error) if error is not None else 404,
            content={
                "details": None,
                "recommendations": [],
                "playback": _playback_body(page.result),
            },
        )

    return JSONResponse(
        content={
            "details": asdict(page.details),
            "recommendations": [asdict(r) for r in page.recommendations],
            "playback": _playback_body(page.result),
        }
    )


@router.get("/playback/{kind}/{catalog_id}")
async def resolve_playback(
    request: Request,
    kind: str,
    catalog_id: str,
    season: int | None = Query(default=None, ge=1),
    episode: int | None = Query(default=None, ge=1),
) -> JSONResponse:
    """Resolve a title into a proxied playback URL.

    Series default to season 1, episode 1 when either is omitted.
    """
    return await _resolve(request, kind, catalog_id, season, episode)


@router.get("/playback/{kind}/{catalog_id}/{season}/{episode}")
async def resolve_episode_playback(
    request: Request,
    kind: str,
    catalog_id: str,
    season: int = Path(ge=1),
    episode: int = Path(ge=1),
) -> JSONResponse:
    return await _resolve(request, kind, catalog_id, season, episode)


@router.get("/player/{kind}/{catalog_id}")
async def player_page(
    request: Request,
    kind: str,
    catalog_id: str,
    season: int | None = Query(default=None, ge=1),
    episode: int | None = Query(default=None, ge=1),
) -> JSONResponse:
    """Details, recommendations and playback for the player view."""
    return await _player(request, kind, catalog_id, season, episode)


@router.get("/player/{kind}/{catalog_id}/{season}/{episode}")
async def player_episode_page(
    request: Request,
    kind: str,
    catalog_id: str,
    season: int = Path(ge=1),
    episode: int = Path(ge=1),
) -> JSONResponse:
    return await _player(request, kind, catalog_id, season, episode)
