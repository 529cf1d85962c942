"""Tests for the stream-source provider client."""

from __future__ import annotations

import httpx
import pytest
import respx

from reelgate.domain.entities.errors import (
    NoStreamsError,
    StreamTransportError,
    UpstreamStatusError,
)
from reelgate.domain.entities.playback import NO_HEADERS, Headers
from reelgate.domain.ports import StreamSourcePort
from reelgate.infrastructure.stream_source.client import (
    HttpxStreamSourceClient,
    build_stream_path,
    parse_candidates,
)

_BASE = "https://streams.example"


@pytest.fixture()
def client() -> HttpxStreamSourceClient:
    return HttpxStreamSourceClient(
        base_url=f"{_BASE}/", http_client=httpx.AsyncClient(), timeout=2.0
    )


# ---------------------------------------------------------------------------
# build_stream_path
# ---------------------------------------------------------------------------


class TestBuildStreamPath:
    def test_movie(self) -> None:
        assert build_stream_path("tt0000001", "movie") == "/stream/movie/tt0000001"

    def test_movie_ignores_season_episode(self) -> None:
        assert build_stream_path("tt1", "movie", 2, 3) == "/stream/movie/tt1"

    def test_series_explicit(self) -> None:
        assert (
            build_stream_path("tt0944947", "series", 2, 5)
            == "/stream/series/tt0944947/2/5"
        )

    def test_series_defaults_to_one_one(self) -> None:
        assert build_stream_path("tt0944947", "series") == build_stream_path(
            "tt0944947", "series", 1, 1
        )

    def test_external_id_is_percent_encoded(self) -> None:
        assert build_stream_path("a/b c", "movie") == "/stream/movie/a%2Fb%20c"


# ---------------------------------------------------------------------------
# parse_candidates
# ---------------------------------------------------------------------------


class TestParseCandidates:
    def test_keeps_provider_order(self) -> None:
        payload = {
            "streams": [
                {"name": "A", "url": "http://cdn.example/a.mp4"},
                {"name": "B", "url": "http://cdn.example/b.mp4"},
            ]
        }
        assert [c.display_name for c in parse_candidates(payload)] == ["A", "B"]

    def test_skips_entries_without_url(self) -> None:
        payload = {
            "streams": [
                {"name": "no url"},
                {"name": "blank", "url": "  "},
                {"name": "not str", "url": 42},
                "garbage",
                {"name": "ok", "url": "http://cdn.example/ok.mp4"},
            ]
        }
        result = parse_candidates(payload)
        assert len(result) == 1
        assert result[0].display_name == "ok"

    def test_missing_streams_key(self) -> None:
        assert parse_candidates({}) == []

    def test_flat_proxy_headers(self) -> None:
        payload = {
            "streams": [
                {
                    "url": "http://cdn.example/a.mp4",
                    "proxyHeaders": {"Referer": "https://p.example/"},
                }
            ]
        }
        [c] = parse_candidates(payload)
        assert c.forward_headers == Headers(values={"Referer": "https://p.example/"})

    def test_request_nested_proxy_headers(self) -> None:
        payload = {
            "streams": [
                {
                    "url": "http://cdn.example/a.mp4",
                    "proxyHeaders": {
                        "request": {"Origin": "https://p.example", "X-Num": 5},
                        "response": {"Content-Type": "video/mp4"},
                    },
                }
            ]
        }
        [c] = parse_candidates(payload)
        assert c.forward_headers == Headers(values={"Origin": "https://p.example"})

    @pytest.mark.parametrize("request_value", ["Referer: x", None, ["Referer"]])
    def test_non_mapping_request_key_yields_no_headers(
        self, request_value: object
    ) -> None:
        payload = {
            "streams": [
                {
                    "url": "http://cdn.example/a.mp4",
                    "proxyHeaders": {
                        "request": request_value,
                        "Referer": "https://p.example/",
                    },
                }
            ]
        }
        [c] = parse_candidates(payload)
        assert c.forward_headers is NO_HEADERS

    def test_no_proxy_headers(self) -> None:
        [c] = parse_candidates({"streams": [{"url": "http://cdn.example/a.mp4"}]})
        assert c.forward_headers is NO_HEADERS
        assert c.display_name == ""
        assert c.description == ""


# ---------------------------------------------------------------------------
# fetch_streams
# ---------------------------------------------------------------------------


class TestFetchStreams:
    def test_implements_port(self, client: HttpxStreamSourceClient) -> None:
        assert isinstance(client, StreamSourcePort)

    @respx.mock
    @pytest.mark.asyncio()
    async def test_movie_streams(self, client: HttpxStreamSourceClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt0000001").respond(
            json={"streams": [{"name": "S1", "url": "http://cdn.example/a.mp4"}]}
        )

        streams = await client.fetch_streams("tt0000001", "movie")

        assert len(streams) == 1
        assert streams[0].target_url == "http://cdn.example/a.mp4"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_series_path(self, client: HttpxStreamSourceClient) -> None:
        route = respx.get(f"{_BASE}/stream/series/tt0944947/2/5").respond(
            json={"streams": [{"url": "http://cdn.example/e.mp4"}]}
        )

        await client.fetch_streams("tt0944947", "series", season=2, episode=5)
        assert route.called

    @respx.mock
    @pytest.mark.asyncio()
    async def test_provider_error_message_verbatim(
        self, client: HttpxStreamSourceClient
    ) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1").respond(
            json={"streams": [], "error": "not available"}
        )

        with pytest.raises(NoStreamsError) as exc_info:
            await client.fetch_streams("tt1", "movie")
        assert exc_info.value.message == "not available"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_empty_streams(self, client: HttpxStreamSourceClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1").respond(json={"streams": []})

        with pytest.raises(NoStreamsError, match="No streams available"):
            await client.fetch_streams("tt1", "movie")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_http_error_status(self, client: HttpxStreamSourceClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1").respond(503)

        with pytest.raises(UpstreamStatusError) as exc_info:
            await client.fetch_streams("tt1", "movie")
        assert exc_info.value.status_code == 503

    @respx.mock
    @pytest.mark.asyncio()
    async def test_invalid_json(self, client: HttpxStreamSourceClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1").respond(200, content=b"not json")

        with pytest.raises(UpstreamStatusError, match="invalid JSON"):
            await client.fetch_streams("tt1", "movie")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_non_object_payload(self, client: HttpxStreamSourceClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1").respond(json=["a", "b"])

        with pytest.raises(UpstreamStatusError):
            await client.fetch_streams("tt1", "movie")

    @respx.mock
    @pytest.mark.asyncio()
    async def test_connect_error(self, client: HttpxStreamSourceClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1").mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(StreamTransportError) as exc_info:
            await client.fetch_streams("tt1", "movie")
        assert not exc_info.value.timed_out

    @respx.mock
    @pytest.mark.asyncio()
    async def test_timeout(self, client: HttpxStreamSourceClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1").mock(
            side_effect=httpx.ReadTimeout("slow")
        )

        with pytest.raises(StreamTransportError) as exc_info:
            await client.fetch_streams("tt1", "movie")
        assert exc_info.value.timed_out
