"""
Configuration Tests.
"""

import pytest

from core.config import DEFAULT_CACHE_TTL_SECONDS, ProxySettings
from core.exceptions import ConfigurationError


ENV_VARS = [
    "COINGECKO_BASE_URL",
    "COINGECKO_API_KEY",
    "UPSTREAM_MAX_ATTEMPTS",
    "UPSTREAM_RETRY_BASE_DELAY",
    "CACHE_TTL_OHLC_SECONDS",
    "FALLBACK_INTERVAL_HOURS",
    "AUTH_JWT_SECRET",
    "CORS_ALLOW_ORIGINS",
    "API_PORT",
    "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestProxySettings:
    """Tests for ProxySettings.from_env."""

    def test_defaults(self):
        settings = ProxySettings.from_env(load_env_file=False)

        assert settings.max_attempts == 3
        assert settings.retry_base_delay == 2.0
        assert settings.request_timeout == 5.0
        assert settings.fallback_interval_hours == 4
        assert settings.ttl_for("ohlc") == DEFAULT_CACHE_TTL_SECONDS
        assert settings.coingecko_api_key is None
        assert settings.cors_allow_origins == ["*"]

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("COINGECKO_BASE_URL", "https://pro-api.example.com/api/v3/")
        monkeypatch.setenv("COINGECKO_API_KEY", "key")
        monkeypatch.setenv("UPSTREAM_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("CACHE_TTL_OHLC_SECONDS", "60")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("API_PORT", "9000")

        settings = ProxySettings.from_env(load_env_file=False)

        assert settings.coingecko_base_url == "https://pro-api.example.com/api/v3"
        assert settings.coingecko_api_key == "key"
        assert settings.max_attempts == 5
        assert settings.ttl_for("ohlc") == 60.0
        assert settings.ttl_for("snapshot") == DEFAULT_CACHE_TTL_SECONDS
        assert settings.cors_allow_origins == ["https://a.example", "https://b.example"]
        assert settings.port == 9000

    def test_invalid_number(self, monkeypatch):
        monkeypatch.setenv("UPSTREAM_RETRY_BASE_DELAY", "soon")

        with pytest.raises(ConfigurationError) as exc_info:
            ProxySettings.from_env(load_env_file=False)

        assert exc_info.value.context["config_key"] == "UPSTREAM_RETRY_BASE_DELAY"

    def test_attempts_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("UPSTREAM_MAX_ATTEMPTS", "0")

        with pytest.raises(ConfigurationError):
            ProxySettings.from_env(load_env_file=False)

    def test_interval_must_divide_day(self, monkeypatch):
        monkeypatch.setenv("FALLBACK_INTERVAL_HOURS", "5")

        with pytest.raises(ConfigurationError):
            ProxySettings.from_env(load_env_file=False)
