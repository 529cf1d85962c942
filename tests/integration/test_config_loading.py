"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, .env files and CLI overrides to verify precedence:
defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from reelgate.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "reelgate-test",
        "environment": "test",
        "http": {
            "timeout_seconds": 8.0,
            "user_agent": "TestAgent/1.0",
        },
        "logging": {"level": "DEBUG", "format": "console"},
        "tmdb": {"api_key": "yaml-key", "language": "de-DE"},
        "stream_source": {"base_url": "https://streams.example/"},
        "proxy": {"chunk_size": 32768, "deny_private_networks": False},
        "playback": {"pipeline_timeout_seconds": 12.5},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


@pytest.fixture()
def dotenv_file(tmp_path: Path):
    path = tmp_path / ".env"
    path.write_text(
        "REELGATE_STREAM_SOURCE_URL=https://dotenv.example\n", encoding="utf-8"
    )
    yield path
    os.environ.pop("REELGATE_STREAM_SOURCE_URL", None)


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "reelgate"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 15.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev -> console
        assert config.tmdb_base_url == "https://api.themoviedb.org/3"
        assert config.tmdb_language == "en-US"
        assert config.proxy_chunk_size == 65536
        assert config.proxy_max_keepalive_connections == 100
        assert config.proxy_deny_private_networks is True
        assert config.pipeline_timeout_seconds == 30.0

    def test_playback_unconfigured_by_default(self) -> None:
        config = load_config()
        assert config.tmdb_api_key is None
        assert config.stream_source_url is None
        assert not config.playback_configured

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "reelgate-test"
        assert config.environment == "test"
        assert config.http_timeout_seconds == 8.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.tmdb_api_key == "yaml-key"
        assert config.tmdb_language == "de-DE"
        assert config.stream_source_url == "https://streams.example"
        assert config.proxy_chunk_size == 32768
        assert config.proxy_deny_private_networks is False
        assert config.pipeline_timeout_seconds == 12.5
        assert config.playback_configured

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_partial_override_preserves_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"proxy": {"read_timeout_seconds": 99.0}}), encoding="utf-8")

        config = load_config(config_path=path)
        assert config.proxy_read_timeout_seconds == 99.0
        assert config.proxy_connect_timeout_seconds == 10.0  # default preserved
        assert config.app_name == "reelgate"

    def test_empty_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(config_path=path).app_name == "reelgate"

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)


class TestEnvOverrides:
    """Environment variables override YAML and defaults."""

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REELGATE_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("REELGATE_TMDB_API_KEY", "env-key")
        monkeypatch.setenv("REELGATE_PIPELINE_TIMEOUT_SECONDS", "3")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.tmdb_api_key == "env-key"
        assert config.pipeline_timeout_seconds == 3.0
        # YAML values not overridden by ENV stay
        assert config.app_name == "reelgate-test"

    def test_stream_source_url_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REELGATE_STREAM_SOURCE_URL", "http://streams.local:7000")

        assert load_config().stream_source_url == "http://streams.local:7000"

    def test_env_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REELGATE_ENVIRONMENT", "prod")

        config = load_config()
        assert config.environment == "prod"
        assert config.log_format == "json"  # prod -> json

    def test_dotenv_file_loaded(self, dotenv_file: Path) -> None:
        config = load_config(dotenv_path=dotenv_file)
        assert config.stream_source_url == "https://dotenv.example"

    def test_dotenv_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides beat everything (highest precedence)."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REELGATE_LOG_LEVEL", "WARNING")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"log_level": "ERROR"},
        )
        assert config.log_level == "ERROR"

    def test_cli_overrides_with_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"proxy": {"chunk_size": 1024}},
        )
        assert config.proxy_chunk_size == 1024
        assert config.proxy_deny_private_networks is False  # YAML kept


class TestValidation:
    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"pipeline_timeout_seconds": 0})

    def test_non_positive_chunk_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"proxy_chunk_size": 0})

    def test_stream_source_must_be_http(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"stream_source_url": "ftp://streams.example"})

    def test_blank_api_key_is_unset(self) -> None:
        config = load_config(cli_overrides={"tmdb_api_key": "   "})
        assert config.tmdb_api_key is None

    def test_sectioned_dump_masks_api_key(self) -> None:
        config = load_config(cli_overrides={"tmdb_api_key": "secret"})
        dumped = config.to_sectioned_dict()
        assert dumped["tmdb"]["api_key"] == "***"
        assert dumped["proxy"]["chunk_size"] == 65536

    def test_misspelt_section_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "typo.yaml"
        path.write_text(
            yaml.dump({"stream-source": {"base_url": "https://s.example"}}),
            encoding="utf-8",
        )

        with pytest.raises(ValueError, match="stream-source"):
            load_config(config_path=path)
