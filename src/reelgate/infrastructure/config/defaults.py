"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "reelgate",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "user_agent": "Reelgate/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "tmdb": {
        "base_url": "https://api.themoviedb.org/3",
        "language": "en-US",
    },
    "proxy": {
        "connect_timeout_seconds": 10.0,
        "read_timeout_seconds": 30.0,
        "chunk_size": 65_536,
        "max_keepalive_connections": 100,
        "deny_private_networks": True,
    },
    "playback": {
        "pipeline_timeout_seconds": 30.0,
    },
}
