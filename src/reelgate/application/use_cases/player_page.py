"""Player page use case: display metadata plus a resolved playback URL."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from reelgate.application.use_cases.resolve_playback import ResolvePlaybackUseCase
from reelgate.domain.entities.errors import CrossReferenceError, StreamTransportError
from reelgate.domain.entities.playback import (
    MediaDetails,
    MediaPreview,
    ResolutionRequest,
    ResolutionResult,
)
from reelgate.domain.ports.catalog import CatalogMetadataPort

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlayerPage:
    """Everything the player view renders for one title."""

    details: MediaDetails | None
    result: ResolutionResult
    recommendations: list[MediaPreview] = field(default_factory=list)


class PlayerPageUseCase:
    """Assemble the player page for a movie or episode.

    Details, recommendations and the external-id lookup are independent,
    so they run concurrently. Stream resolution starts once the external
    id is known. A page whose lookups time out has no details and a
    timed-out playback result.
    """

    def __init__(
        self,
        *,
        metadata: CatalogMetadataPort,
        playback: ResolvePlaybackUseCase,
    ) -> None:
        self._metadata = metadata
        self._playback = playback

    async def execute(self, request: ResolutionRequest) -> PlayerPage:
        """Build the page within the playback pipeline's time bound.

        The concurrent lookups and the stream resolution share one
        deadline; running out of time yields a timed-out transport error.
        """
        loop = asyncio.get_running_loop()
        budget = self._playback.timeout_seconds
        deadline = loop.time() + budget
        try:
            details, recommendations, external_id = await asyncio.wait_for(
                asyncio.gather(
                    self._metadata.get_details(request.kind, request.catalog_id),
                    self._metadata.get_recommendations(
                        request.kind, request.catalog_id
                    ),
                    self._playback.lookup_external_id(request),
                ),
                timeout=budget,
            )
        except TimeoutError:
            log.warning(
                "player_lookup_timeout",
                kind=request.kind,
                catalog_id=request.catalog_id,
                timeout=budget,
            )
            result = self._playback.fail(
                request,
                StreamTransportError("Playback resolution timed out", timed_out=True),
            )
            return PlayerPage(details=None, result=result)

        if details is None:
            log.info(
                "player_content_not_found",
                kind=request.kind,
                catalog_id=request.catalog_id,
            )
            result = self._playback.fail(
                request, CrossReferenceError("content not found", status_code=404)
            )
            return PlayerPage(details=None, result=result)

        if isinstance(external_id, CrossReferenceError):
            result = self._playback.fail(request, external_id)
        else:
            result = await self._playback.execute(
                request,
                external_id=external_id,
                timeout_seconds=max(deadline - loop.time(), 0.0),
            )

        return PlayerPage(
            details=details,
            result=result,
            recommendations=list(recommendations),
        )
