"""Stream-source provider client (async httpx).

Provider contract::

    GET {base}/stream/movie/{externalId}
    GET {base}/stream/series/{externalId}/{season}/{episode}

    {"streams": [{"name", "description", "url", "proxyHeaders"?}], "error"?}
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from reelgate.domain.entities.errors import (
    NoStreamsError,
    StreamTransportError,
    UpstreamStatusError,
)
from reelgate.domain.entities.playback import (
    ForwardHeaders,
    MediaKind,
    StreamCandidate,
    forward_headers_from,
)

log = structlog.get_logger(__name__)

_NO_STREAMS_MESSAGE = "No streams available"


def build_stream_path(
    external_id: str,
    kind: MediaKind,
    season: int | None = None,
    episode: int | None = None,
) -> str:
    """Build the provider path for a movie or an episode.

    Series fall back to season 1 / episode 1 when either is omitted.

    >>> build_stream_path("tt0000001", "movie")
    '/stream/movie/tt0000001'
    >>> build_stream_path("tt0944947", "series")
    '/stream/series/tt0944947/1/1'
    """
    segment = quote(external_id, safe="")
    if kind == "series":
        return f"/stream/series/{segment}/{season or 1}/{episode or 1}"
    return f"/stream/movie/{segment}"


def _parse_proxy_headers(raw: Any) -> ForwardHeaders:
    """Extract forwarding headers from a stream's ``proxyHeaders`` field.

    Providers send either the mapping itself or ``{"request": {...}}``
    (Stremio behaviorHints style). Non-string entries are dropped, and a
    ``request`` key that is not a mapping yields no headers.
    """
    if not isinstance(raw, dict):
        return forward_headers_from(None)
    if "request" in raw:
        request_headers = raw["request"]
        source = request_headers if isinstance(request_headers, dict) else {}
    else:
        source = raw
    headers = {
        name: value
        for name, value in source.items()
        if isinstance(name, str) and isinstance(value, str)
    }
    return forward_headers_from(headers)


def parse_candidates(payload: dict[str, Any]) -> list[StreamCandidate]:
    """Convert the provider's ``streams`` array into StreamCandidates.

    Entries without a string ``url`` are skipped; provider order is kept.
    """
    streams = payload.get("streams")
    if not isinstance(streams, list):
        return []

    candidates: list[StreamCandidate] = []
    for entry in streams:
        if not isinstance(entry, dict):
            continue
        url = entry.get("url")
        if not isinstance(url, str) or not url.strip():
            continue
        candidates.append(
            StreamCandidate(
                display_name=str(entry.get("name") or ""),
                description=str(entry.get("description") or ""),
                target_url=url.strip(),
                forward_headers=_parse_proxy_headers(entry.get("proxyHeaders")),
            )
        )
    return candidates


class HttpxStreamSourceClient:
    """Implements ``StreamSourcePort`` from domain.ports.stream_source.

    Single attempt per call; failures map onto the transport /
    upstream_status / no_streams stages.
    """

    def __init__(
        self,
        *,
        base_url: str,
        http_client: httpx.AsyncClient,
        timeout: float = 15.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_client
        self._timeout = timeout

    async def fetch_streams(
        self,
        external_id: str,
        kind: MediaKind,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[StreamCandidate]:
        path = build_stream_path(external_id, kind, season, episode)
        url = f"{self._base_url}{path}"

        try:
            resp = await self._http.get(url, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            log.warning("stream_source_timeout", path=path, timeout=self._timeout)
            raise StreamTransportError(
                "Stream source timed out", timed_out=True
            ) from exc
        except httpx.HTTPError as exc:
            log.warning("stream_source_unreachable", path=path, error=str(exc))
            raise StreamTransportError("Stream source is not responding") from exc

        if not resp.is_success:
            log.warning(
                "stream_source_status_error",
                path=path,
                status=resp.status_code,
            )
            raise UpstreamStatusError(
                f"Stream source returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            log.warning("stream_source_invalid_json", path=path)
            raise UpstreamStatusError(
                "Stream source returned invalid JSON",
                status_code=resp.status_code,
            ) from exc
        if not isinstance(payload, dict):
            log.warning("stream_source_unexpected_payload", path=path)
            raise UpstreamStatusError(
                "Stream source returned an unexpected payload",
                status_code=resp.status_code,
            )

        error = payload.get("error")
        if error:
            log.info("stream_source_reported_error", path=path, error=error)
            raise NoStreamsError(str(error))

        candidates = parse_candidates(payload)
        if not candidates:
            log.info("stream_source_no_streams", path=path)
            raise NoStreamsError(_NO_STREAMS_MESSAGE)

        log.debug(
            "stream_source_candidates",
            path=path,
            count=len(candidates),
        )
        return candidates
