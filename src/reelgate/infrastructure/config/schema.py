"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional
from urllib.parse import urlsplit

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _require_http_url(value: str | None, field_name: str) -> str | None:
    if value is None:
        return None
    value = value.strip().rstrip("/")
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"{field_name} must be an http(s) URL, got {value!r}")
    return value


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/tmdb/stream_source/proxy/playback).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="reelgate", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Catalog / provider HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Timeout for catalog and stream-source calls.",
    )
    http_user_agent: str = Field(
        default="Reelgate/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for catalog and stream-source calls.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # TMDB (YAML section: tmdb.*)
    tmdb_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "tmdb_api_key",
            AliasPath("tmdb", "api_key"),
        ),
        description="TMDB v3 API key. Playback is disabled without it.",
    )
    tmdb_base_url: str = Field(
        default="https://api.themoviedb.org/3",
        validation_alias=AliasChoices(
            "tmdb_base_url",
            AliasPath("tmdb", "base_url"),
        ),
    )
    tmdb_language: str = Field(
        default="en-US",
        validation_alias=AliasChoices(
            "tmdb_language",
            AliasPath("tmdb", "language"),
        ),
    )

    # Stream source (YAML section: stream_source.*)
    stream_source_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "stream_source_url",
            AliasPath("stream_source", "base_url"),
        ),
        description="Base URL of the stream-source provider.",
    )

    # Playback proxy (YAML section: proxy.*)
    proxy_connect_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "proxy_connect_timeout_seconds",
            AliasPath("proxy", "connect_timeout_seconds"),
        ),
    )
    proxy_read_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "proxy_read_timeout_seconds",
            AliasPath("proxy", "read_timeout_seconds"),
        ),
    )
    proxy_chunk_size: int = Field(
        default=65_536,
        validation_alias=AliasChoices(
            "proxy_chunk_size",
            AliasPath("proxy", "chunk_size"),
        ),
        description="Body chunk size when streaming origin responses.",
    )
    proxy_max_keepalive_connections: int = Field(
        default=100,
        validation_alias=AliasChoices(
            "proxy_max_keepalive_connections",
            AliasPath("proxy", "max_keepalive_connections"),
        ),
    )
    proxy_deny_private_networks: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "proxy_deny_private_networks",
            AliasPath("proxy", "deny_private_networks"),
        ),
        description="Reject loopback/private IP literals and localhost targets.",
    )

    # Pipeline (YAML section: playback.*)
    pipeline_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "pipeline_timeout_seconds",
            AliasPath("playback", "pipeline_timeout_seconds"),
        ),
        description="Deadline for one full resolution run.",
    )

    @field_validator("tmdb_api_key", "stream_source_url", mode="before")
    @classmethod
    def _validate_optional_strings(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("stream_source_url")
    @classmethod
    def _validate_stream_source_url(cls, v: str | None) -> str | None:
        return _require_http_url(v, "stream_source_url")

    @field_validator("tmdb_base_url")
    @classmethod
    def _validate_tmdb_base_url(cls, v: str) -> str:
        return _require_http_url(v, "tmdb_base_url") or v

    @field_validator(
        "http_timeout_seconds",
        "proxy_connect_timeout_seconds",
        "proxy_read_timeout_seconds",
        "pipeline_timeout_seconds",
    )
    @classmethod
    def _validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("proxy_chunk_size", "proxy_max_keepalive_connections")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    @property
    def playback_configured(self) -> bool:
        """True when both playback collaborators can be built."""
        return bool(self.tmdb_api_key and self.stream_source_url)

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.

        The TMDB key is masked.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "tmdb": {
                "api_key": "***" if self.tmdb_api_key else None,
                "base_url": self.tmdb_base_url,
                "language": self.tmdb_language,
            },
            "stream_source": {"base_url": self.stream_source_url},
            "proxy": {
                "connect_timeout_seconds": self.proxy_connect_timeout_seconds,
                "read_timeout_seconds": self.proxy_read_timeout_seconds,
                "chunk_size": self.proxy_chunk_size,
                "max_keepalive_connections": self.proxy_max_keepalive_connections,
                "deny_private_networks": self.proxy_deny_private_networks,
            },
            "playback": {
                "pipeline_timeout_seconds": self.pipeline_timeout_seconds,
            },
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py creates EnvOverrides() to read REELGATE_* variables, converts
    them to a dict of set values, merges that over YAML/defaults, then
    validates AppConfig.

    Supported env var examples (flat, explicit):
    - REELGATE_TMDB_API_KEY
    - REELGATE_STREAM_SOURCE_URL
    - REELGATE_PIPELINE_TIMEOUT_SECONDS
    - REELGATE_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="REELGATE_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    tmdb_api_key: Optional[str] = None
    tmdb_base_url: Optional[str] = None
    tmdb_language: Optional[str] = None

    stream_source_url: Optional[str] = None

    proxy_connect_timeout_seconds: Optional[float] = None
    proxy_read_timeout_seconds: Optional[float] = None

    pipeline_timeout_seconds: Optional[float] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
