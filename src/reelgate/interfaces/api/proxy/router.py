"""Same-origin playback proxy endpoint."""

from __future__ import annotations

import time
from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask
from starlette.responses import Response, StreamingResponse

from reelgate.domain.entities.errors import (
    OriginStatusError,
    OriginUnreachableError,
    ProxyBadRequest,
    ProxyError,
)
from reelgate.infrastructure.metrics import MetricsCollector
from reelgate.infrastructure.playback.origin_proxy import OriginStream, open_origin_stream
from reelgate.infrastructure.playback.proxy_url import (
    HEADERS_PARAM,
    PROXY_PATH,
    VIDEO_URL_PARAM,
    parse_proxy_request,
)
from reelgate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["proxy"])


def proxy_status_code(exc: ProxyError) -> int:
    """HTTP status answered for a proxy failure."""
    if isinstance(exc, ProxyBadRequest):
        return 400
    if isinstance(exc, OriginUnreachableError):
        return 504 if exc.timed_out else 502
    if isinstance(exc, OriginStatusError) and exc.status_code is not None:
        return exc.status_code
    return 502


def _error_response(exc: ProxyError) -> JSONResponse:
    return JSONResponse(
        status_code=proxy_status_code(exc),
        content={"error": exc.to_dict()},
    )


async def _finish_stream(
    origin: OriginStream,
    metrics: MetricsCollector | None,
    started_ns: int,
) -> None:
    await origin.aclose()
    outcome = "interrupted" if origin.interrupted else "ok"
    log.debug(
        "proxy_stream_finished",
        status=origin.status_code,
        bytes_sent=origin.bytes_sent,
        outcome=outcome,
    )
    if metrics is not None:
        metrics.record_proxy(
            outcome, time.perf_counter_ns() - started_ns, origin.bytes_sent
        )


@router.api_route(PROXY_PATH, methods=["GET", "HEAD"])
async def playback_proxy(
    request: Request,
    video_url: str | None = Query(default=None, alias=VIDEO_URL_PARAM),
    headers: str | None = Query(default=None, alias=HEADERS_PARAM),
) -> Response:
    """Replay the request against the origin and stream the body back.

    One request in, one response out. Failures are answered as
    ``{"error": {"stage", "message", "status_code"}}``.
    """
    state = cast(AppState, request.app.state)
    config = state.config
    metrics = getattr(state, "metrics", None)
    t0 = time.perf_counter_ns()

    try:
        proxy_request = parse_proxy_request(
            video_url,
            headers,
            deny_private_networks=config.proxy_deny_private_networks,
        )
        origin = await open_origin_stream(
            state.proxy_client,
            proxy_request,
            method=request.method,
            client_headers=request.headers,
            chunk_size=config.proxy_chunk_size,
            deny_private_networks=config.proxy_deny_private_networks,
        )
    except ProxyError as exc:
        log.info(
            "proxy_request_failed",
            stage=exc.stage.value,
            error=exc.message,
            status_code=exc.status_code,
        )
        if metrics is not None:
            metrics.record_proxy(exc.stage.value, time.perf_counter_ns() - t0)
        return _error_response(exc)

    if request.method == "HEAD":
        await _finish_stream(origin, metrics, t0)
        return Response(status_code=origin.status_code, headers=origin.headers)

    return StreamingResponse(
        origin.iter_body(),
        status_code=origin.status_code,
        headers=origin.headers,
        background=BackgroundTask(_finish_stream, origin, metrics, t0),
    )
