"""TMDB API client: external id cross-reference plus player page metadata."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from reelgate.domain.entities.errors import CrossReferenceError
from reelgate.domain.entities.playback import (
    MediaDetails,
    MediaKind,
    MediaPreview,
    SeasonInfo,
    catalog_path_segment,
)

log = structlog.get_logger(__name__)

_POSTER_BASE = "https://image.tmdb.org/t/p/w342"
_BACKDROP_BASE = "https://image.tmdb.org/t/p/original"
_POSTER_PLACEHOLDER = "https://placehold.co/500x750/111111/1A1A1A?text=N/A"


class HttpxTmdbClient:
    """Async TMDB client using httpx.

    Implements ``CrossReferencePort`` and ``CatalogMetadataPort`` from
    domain.ports.catalog. Cross-reference failures raise
    ``CrossReferenceError``; display lookups degrade to None / [].
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        base_url: str = "https://api.themoviedb.org/3",
        language: str = "en-US",
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._language = language

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _params(self, **extra: Any) -> dict[str, Any]:
        """Build query params with api_key and configured locale."""
        return {"api_key": self._api_key, "language": self._language, **extra}

    async def _get(self, path: str, **extra: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(url, params=self._params(**extra))
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError:
            log.warning("tmdb_http_error", path=path, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            return None
        except ValueError:
            log.warning("tmdb_invalid_json", path=path)
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _poster_url(poster_path: str | None) -> str:
        if not poster_path:
            return _POSTER_PLACEHOLDER
        return f"{_POSTER_BASE}{poster_path}"

    @staticmethod
    def _backdrop_url(backdrop_path: str | None) -> str:
        if not backdrop_path:
            return ""
        return f"{_BACKDROP_BASE}{backdrop_path}"

    @staticmethod
    def _year(item: dict[str, Any]) -> str:
        date_str = item.get("release_date") or item.get("first_air_date") or ""
        return date_str[:4]

    def _to_preview(self, item: dict[str, Any], fallback: MediaKind) -> MediaPreview:
        media_type = item.get("media_type")
        if media_type == "tv":
            kind: MediaKind = "series"
        elif media_type == "movie":
            kind = "movie"
        else:
            kind = fallback
        return MediaPreview(
            id=int(item.get("id", 0)),
            kind=kind,
            title=item.get("title") or item.get("name") or "",
            poster=self._poster_url(item.get("poster_path")),
            background=self._backdrop_url(item.get("backdrop_path")),
            overview=item.get("overview", ""),
            year=self._year(item),
        )

    # ------------------------------------------------------------------
    # CrossReferencePort
    # ------------------------------------------------------------------

    async def resolve_external_id(self, kind: MediaKind, catalog_id: str) -> str:
        """Lookup the IMDb id for a TMDB movie or TV id.

        Unlike the display lookups this does not degrade silently: every
        failure raises CrossReferenceError so the pipeline can stop before
        the stream-source call.
        """
        if not catalog_id or not catalog_id.strip():
            raise CrossReferenceError("Catalog id must not be empty")

        path = f"/{catalog_path_segment(kind)}/{catalog_id.strip()}/external_ids"
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(url, params=self._params())
        except httpx.HTTPError as exc:
            log.warning("tmdb_external_ids_unreachable", path=path, error=str(exc))
            raise CrossReferenceError(
                "Catalog metadata provider is unreachable"
            ) from exc

        if not resp.is_success:
            log.warning(
                "tmdb_external_ids_status",
                path=path,
                status=resp.status_code,
            )
            raise CrossReferenceError(
                f"Catalog metadata provider returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            log.warning("tmdb_external_ids_invalid_json", path=path)
            raise CrossReferenceError(
                "Catalog metadata provider returned invalid JSON"
            ) from exc

        imdb_id = data.get("imdb_id") if isinstance(data, dict) else None
        if not isinstance(imdb_id, str) or not imdb_id.strip():
            log.info("tmdb_external_id_missing", kind=kind, catalog_id=catalog_id)
            raise CrossReferenceError(
                f"No external id found for {kind} {catalog_id}"
            )

        log.debug(
            "tmdb_external_id_resolved",
            kind=kind,
            catalog_id=catalog_id,
            external_id=imdb_id,
        )
        return imdb_id.strip()

    # ------------------------------------------------------------------
    # CatalogMetadataPort
    # ------------------------------------------------------------------

    async def get_details(
        self, kind: MediaKind, catalog_id: str
    ) -> MediaDetails | None:
        """Fetch title details (with genres, runtime and seasons)."""
        data = await self._get(f"/{catalog_path_segment(kind)}/{catalog_id}")
        if data is None:
            return None

        runtime = data.get("runtime")
        if runtime is None:
            episode_runtimes = data.get("episode_run_time") or []
            runtime = episode_runtimes[0] if episode_runtimes else None

        return MediaDetails(
            id=int(data.get("id", 0)),
            kind=kind,
            title=data.get("title") or data.get("name") or "",
            overview=data.get("overview", ""),
            poster=self._poster_url(data.get("poster_path")),
            background=self._backdrop_url(data.get("backdrop_path")),
            year=self._year(data),
            runtime_minutes=runtime,
            genres=[g["name"] for g in data.get("genres", []) if g.get("name")],
            seasons=[
                SeasonInfo(
                    number=s.get("season_number", 0),
                    name=s.get("name", ""),
                    episode_count=s.get("episode_count", 0),
                )
                for s in data.get("seasons", [])
            ],
        )

    async def get_recommendations(
        self, kind: MediaKind, catalog_id: str
    ) -> list[MediaPreview]:
        """Fetch related titles for the player page."""
        data = await self._get(
            f"/{catalog_path_segment(kind)}/{catalog_id}/recommendations"
        )
        if data is None:
            return []
        return [self._to_preview(item, kind) for item in data.get("results", [])]
