"""Domain entities for stream resolution and playback proxying.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Union

if TYPE_CHECKING:
    from reelgate.domain.entities.errors import ResolutionError

MediaKind = Literal["movie", "series"]

# Path aliases accepted on the HTTP surface ("tv" is the catalog's own name).
_KIND_ALIASES: dict[str, MediaKind] = {
    "movie": "movie",
    "series": "series",
    "tv": "series",
}


def parse_media_kind(raw: str) -> MediaKind | None:
    """Map a path value to a MediaKind. None for unknown kinds."""
    return _KIND_ALIASES.get(raw.strip().lower())


def catalog_path_segment(kind: MediaKind) -> str:
    """TMDB uses ``tv`` where we say ``series``."""
    return "tv" if kind == "series" else "movie"


@dataclass(frozen=True)
class NoHeaders:
    """Candidate needs no extra request headers."""


@dataclass(frozen=True)
class Headers:
    """Request headers the origin requires (Referer, Origin, tokens ...)."""

    values: dict[str, str] = field(default_factory=dict)


ForwardHeaders = Union[NoHeaders, Headers]

NO_HEADERS = NoHeaders()


def forward_headers_from(mapping: dict[str, str] | None) -> ForwardHeaders:
    """Wrap an optional mapping. Empty or missing mappings become NoHeaders."""
    if not mapping:
        return NO_HEADERS
    return Headers(values=dict(mapping))


def forward_headers_dict(headers: ForwardHeaders) -> dict[str, str]:
    """Return the header mapping (empty for NoHeaders)."""
    if isinstance(headers, Headers):
        return dict(headers.values)
    return {}


@dataclass(frozen=True)
class ResolutionRequest:
    """A request to resolve one movie or episode into a playback URL.

    Series requests default missing season/episode to 1; movie requests
    never carry them.
    """

    kind: MediaKind
    catalog_id: str
    season: int | None = None
    episode: int | None = None

    def __post_init__(self) -> None:
        if self.kind not in ("movie", "series"):
            raise ValueError(f"unknown media kind: {self.kind!r}")
        for name in ("season", "episode"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value}")

        if self.kind == "series":
            object.__setattr__(self, "season", self.season or 1)
            object.__setattr__(self, "episode", self.episode or 1)
        else:
            object.__setattr__(self, "season", None)
            object.__setattr__(self, "episode", None)

    @classmethod
    def build(
        cls,
        kind: str,
        catalog_id: str,
        season: int | None = None,
        episode: int | None = None,
    ) -> ResolutionRequest:
        """Build from raw path values (accepts the ``tv`` alias)."""
        parsed = parse_media_kind(kind)
        if parsed is None:
            raise ValueError(f"unknown media kind: {kind!r}")
        return cls(
            kind=parsed,
            catalog_id=catalog_id.strip(),
            season=season,
            episode=episode,
        )


@dataclass(frozen=True)
class StreamCandidate:
    """One playable source offered by the stream-source provider."""

    display_name: str
    description: str
    target_url: str
    forward_headers: ForwardHeaders = NO_HEADERS


@dataclass(frozen=True)
class ProxyRequest:
    """Target URL plus the headers to replay against the origin."""

    target_url: str
    forward_headers: ForwardHeaders = NO_HEADERS

    @classmethod
    def from_candidate(cls, candidate: StreamCandidate) -> ProxyRequest:
        return cls(
            target_url=candidate.target_url,
            forward_headers=candidate.forward_headers,
        )


@dataclass(frozen=True)
class ResolutionResult:
    """Either a playback URL or a typed failure. Never both, never neither."""

    playback_url: str | None = None
    error: ResolutionError | None = None

    def __post_init__(self) -> None:
        if (self.playback_url is None) == (self.error is None):
            raise ValueError(
                "ResolutionResult needs exactly one of playback_url or error"
            )

    @classmethod
    def ok(cls, playback_url: str) -> ResolutionResult:
        return cls(playback_url=playback_url)

    @classmethod
    def failed(cls, error: ResolutionError) -> ResolutionResult:
        return cls(error=error)

    @property
    def succeeded(self) -> bool:
        return self.playback_url is not None


@dataclass(frozen=True)
class SeasonInfo:
    """Season summary shown on the player page."""

    number: int
    name: str
    episode_count: int = 0


@dataclass(frozen=True)
class MediaPreview:
    """Catalog item used in recommendation rows."""

    id: int
    kind: MediaKind
    title: str
    poster: str = ""
    background: str = ""
    overview: str = ""
    year: str = ""


@dataclass(frozen=True)
class MediaDetails:
    """Display metadata for a movie or series (player page header)."""

    id: int
    kind: MediaKind
    title: str
    overview: str = ""
    poster: str = ""
    background: str = ""
    year: str = ""
    runtime_minutes: int | None = None
    genres: list[str] = field(default_factory=list)
    seasons: list[SeasonInfo] = field(default_factory=list)
