"""Shared test fixtures for the Reelgate test suite."""

from __future__ import annotations

import pytest

from reelgate.domain.entities.playback import (
    Headers,
    ResolutionRequest,
    StreamCandidate,
)
from reelgate.infrastructure.config import AppConfig

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie_request() -> ResolutionRequest:
    """Movie request for TMDB id 603."""
    return ResolutionRequest(kind="movie", catalog_id="603")


@pytest.fixture()
def series_request() -> ResolutionRequest:
    """Episode request: TMDB id 1399, S02E05."""
    return ResolutionRequest(kind="series", catalog_id="1399", season=2, episode=5)


@pytest.fixture()
def candidate() -> StreamCandidate:
    """Plain candidate without forwarding headers."""
    return StreamCandidate(
        display_name="Provider 1080p",
        description="WEB-DL",
        target_url="http://cdn.example/a.mp4",
    )


@pytest.fixture()
def candidate_with_headers() -> StreamCandidate:
    """Candidate whose origin requires a Referer."""
    return StreamCandidate(
        display_name="Provider HLS",
        description="",
        target_url="https://cdn.example/hls/master.m3u8?token=abc",
        forward_headers=Headers(values={"Referer": "https://provider.example/"}),
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def app_config() -> AppConfig:
    """Fully configured AppConfig (playback enabled)."""
    return AppConfig(
        environment="test",
        tmdb_api_key="test-api-key-123",
        stream_source_url="https://streams.example",
        pipeline_timeout_seconds=5.0,
    )


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove REELGATE_* variables so defaults are observable."""
    import os

    for key in list(os.environ):
        if key.upper().startswith("REELGATE_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
