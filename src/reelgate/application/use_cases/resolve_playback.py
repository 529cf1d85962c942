"""Playback resolution use case.

catalog id -> external id -> stream candidates -> first candidate
-> same-origin proxy URL.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from typing import Protocol

import structlog

from reelgate.domain.entities.errors import (
    CrossReferenceError,
    ResolutionError,
    StreamTransportError,
)
from reelgate.domain.entities.playback import (
    ResolutionRequest,
    ResolutionResult,
    StreamCandidate,
)
from reelgate.domain.ports.catalog import CrossReferencePort
from reelgate.domain.ports.stream_source import StreamSourcePort

log = structlog.get_logger(__name__)


class _MetricsRecorder(Protocol):
    """Records pipeline outcomes."""

    def record_resolution(self, outcome: str, duration_ns: int) -> None: ...


# Type aliases for injected pure functions.
_SelectFn = Callable[[Sequence[StreamCandidate]], StreamCandidate]
_BuildUrlFn = Callable[[StreamCandidate], str]


class ResolvePlaybackUseCase:
    """Resolve a movie/episode request into a proxied playback URL.

    Flow (strictly sequential, each stage feeds the next):
        1. Cross-reference the catalog id to an external id.
        2. Fetch stream candidates from the stream-source provider.
        3. Select the provider's first candidate.
        4. Build the same-origin proxy URL.

    Stage failures come back as ``ResolutionResult.failed(...)``; they are
    never raised to the caller. The whole run is bounded by
    ``timeout_seconds``; cancelling the awaiting task aborts the in-flight
    HTTP call.
    """

    def __init__(
        self,
        *,
        cross_reference: CrossReferencePort,
        stream_source: StreamSourcePort,
        select_fn: _SelectFn,
        build_url_fn: _BuildUrlFn,
        timeout_seconds: float = 30.0,
        metrics: _MetricsRecorder | None = None,
    ) -> None:
        self._cross_reference = cross_reference
        self._stream_source = stream_source
        self._select_fn = select_fn
        self._build_url_fn = build_url_fn
        self._timeout = timeout_seconds
        self._metrics = metrics

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    async def execute(
        self,
        request: ResolutionRequest,
        *,
        external_id: str | None = None,
        timeout_seconds: float | None = None,
    ) -> ResolutionResult:
        """Run the pipeline for *request*.

        Args:
            request: Normalised movie or episode request.
            external_id: Already-resolved cross-reference id. When given,
                the cross-reference stage is skipped.
            timeout_seconds: Overrides the configured bound for this run.

        Returns:
            ResolutionResult with either ``playback_url`` or ``error``.
        """
        t0 = time.perf_counter_ns()
        timeout = self._timeout if timeout_seconds is None else timeout_seconds
        try:
            result = await asyncio.wait_for(
                self._run(request, external_id),
                timeout=timeout,
            )
        except TimeoutError:
            result = ResolutionResult.failed(
                StreamTransportError(
                    "Playback resolution timed out", timed_out=True
                )
            )
            log.warning(
                "playback_timeout",
                kind=request.kind,
                catalog_id=request.catalog_id,
                timeout=timeout,
            )

        self._record(request, result, t0)
        return result

    async def lookup_external_id(
        self, request: ResolutionRequest
    ) -> str | CrossReferenceError:
        """Cross-reference stage alone, returning the failure as a value.

        Lets callers run the lookup concurrently with unrelated work
        before handing the id to ``execute()``.
        """
        try:
            return await self._cross_reference.resolve_external_id(
                request.kind, request.catalog_id
            )
        except CrossReferenceError as exc:
            return exc

    def fail(self, request: ResolutionRequest, error: ResolutionError) -> ResolutionResult:
        """Record and wrap a failure produced outside ``execute()``."""
        result = ResolutionResult.failed(error)
        self._record(request, result, time.perf_counter_ns())
        return result

    async def _run(
        self,
        request: ResolutionRequest,
        external_id: str | None,
    ) -> ResolutionResult:
        try:
            if external_id is None:
                external_id = await self._cross_reference.resolve_external_id(
                    request.kind, request.catalog_id
                )

            candidates = await self._stream_source.fetch_streams(
                external_id,
                request.kind,
                season=request.season,
                episode=request.episode,
            )
        except ResolutionError as exc:
            return ResolutionResult.failed(exc)

        chosen = self._select_fn(candidates)
        playback_url = self._build_url_fn(chosen)

        log.info(
            "playback_resolved",
            kind=request.kind,
            catalog_id=request.catalog_id,
            external_id=external_id,
            season=request.season,
            episode=request.episode,
            candidates=len(candidates),
            chosen=chosen.display_name,
        )
        return ResolutionResult.ok(playback_url)

    def _record(
        self,
        request: ResolutionRequest,
        result: ResolutionResult,
        started_ns: int,
    ) -> None:
        if result.error is not None:
            log.info(
                "playback_failed",
                kind=request.kind,
                catalog_id=request.catalog_id,
                stage=result.error.stage.value,
                error=result.error.message,
                status_code=result.error.status_code,
            )
        if self._metrics is not None:
            outcome = "ok" if result.error is None else result.error.stage.value
            self._metrics.record_resolution(
                outcome, time.perf_counter_ns() - started_ns
            )
