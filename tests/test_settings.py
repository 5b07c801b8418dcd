"""Tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from shodan_client.client import AsyncClient, Client
from shodan_client.config import load_settings, resolve_credential
from shodan_client.exceptions import ConfigError
from shodan_client.models import DEFAULT_BASE_URL, DEFAULT_STREAM_BASE_URL


# ---------------------------------------------------------------------------
# resolve_credential
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("MY_SHODAN_KEY", "abc123")
        assert resolve_credential("env:MY_SHODAN_KEY") == "abc123"

    def test_env_source_missing(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.delenv("MY_SHODAN_KEY", raising=False)
        with pytest.raises(ConfigError, match="MY_SHODAN_KEY"):
            resolve_credential("env:MY_SHODAN_KEY")

    def test_file_source_strips_whitespace(self, tmp_path: Path) -> None:
        key_file = tmp_path / "api_key"
        key_file.write_text("  file-token\n")
        assert resolve_credential(f"file:{key_file}") == "file-token"

    def test_file_source_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'nope'}")

    def test_literal_source(self) -> None:
        assert resolve_credential("literal-token") == "literal-token"

    def test_empty_value_rejected(self, tmp_path: Path) -> None:
        key_file = tmp_path / "api_key"
        key_file.write_text("\n")
        with pytest.raises(ConfigError, match="empty"):
            resolve_credential(f"file:{key_file}")


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------


class TestLoadSettings:
    def test_defaults_from_env_token(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("SHODAN_API_KEY", "env-token")
        settings = load_settings()

        assert settings.token == "env-token"
        assert settings.base_urls.base_url == DEFAULT_BASE_URL
        assert settings.request.timeout == 30.0

    def test_missing_token(self, clean_env: pytest.MonkeyPatch) -> None:
        with pytest.raises(ConfigError, match="SHODAN_API_KEY"):
            load_settings()

    def test_env_overrides(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("SHODAN_API_KEY", "t")
        clean_env.setenv("SHODAN_BASE_URL", "http://localhost:9000/")
        clean_env.setenv("SHODAN_TIMEOUT", "2.5")
        settings = load_settings()

        assert settings.base_urls.base_url == "http://localhost:9000"
        assert settings.base_urls.stream_base_url == DEFAULT_STREAM_BASE_URL
        assert settings.request.timeout == 2.5

    def test_arguments_beat_env(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("SHODAN_API_KEY", "env-token")
        clean_env.setenv("SHODAN_STREAM_BASE_URL", "http://env-stream")
        settings = load_settings(
            token_source="arg-token",
            stream_base_url="http://arg-stream",
            timeout=5,
        )

        assert settings.token == "arg-token"
        assert settings.base_urls.stream_base_url == "http://arg-stream"
        assert settings.request.timeout == 5

    def test_bad_timeout(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("SHODAN_API_KEY", "t")
        clean_env.setenv("SHODAN_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="SHODAN_TIMEOUT"):
            load_settings()

    def test_non_positive_timeout(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("SHODAN_API_KEY", "t")
        with pytest.raises(ConfigError, match="positive"):
            load_settings(timeout=0)


class TestFromEnv:
    def test_client_from_env(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("SHODAN_API_KEY", "env-token")
        clean_env.setenv("SHODAN_EXPLOIT_BASE_URL", "http://exploits.local")

        with Client.from_env() as client:
            assert client.token == "env-token"
            assert client.exploit_base_url == "http://exploits.local"
            assert client.build_exploit_base_url("/search") == (
                "http://exploits.local/search?key=env-token"
            )

    def test_async_client_from_env(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("SHODAN_API_KEY", "env-token")
        client = AsyncClient.from_env(timeout=3)

        assert isinstance(client, AsyncClient)
        assert client.token == "env-token"
        assert client.http_client.timeout.read == 3
