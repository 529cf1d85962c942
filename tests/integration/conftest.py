"""Shared fixtures for integration tests.

These tests use the real config loader against temporary files and a
scrubbed environment.
"""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _no_dotenv_leak(clean_env: pytest.MonkeyPatch) -> None:
    """Every integration test starts without REELGATE_* variables."""
