"""Port for the upstream stream-source provider."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from reelgate.domain.entities.playback import MediaKind, StreamCandidate


@runtime_checkable
class StreamSourcePort(Protocol):
    """Async interface for stream candidate lookups."""

    async def fetch_streams(
        self,
        external_id: str,
        kind: MediaKind,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[StreamCandidate]:
        """Return candidates in provider preference order (never empty).

        Raises StreamTransportError, UpstreamStatusError or NoStreamsError.
        """
        ...
