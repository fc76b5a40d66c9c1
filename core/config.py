"""
Core Module - Configuration.

============================================================
RESPONSIBILITY
============================================================
Loads runtime settings for the market data proxy from the
environment (optionally seeded from a .env file).

============================================================
ENVIRONMENT VARIABLES
============================================================
COINGECKO_BASE_URL            Upstream base URL
COINGECKO_API_KEY             Optional API key
COINGECKO_API_KEY_HEADER      Header carrying the key
UPSTREAM_TIMEOUT_SECONDS      Per-attempt timeout
UPSTREAM_MAX_ATTEMPTS         Attempts on rate limiting
UPSTREAM_RETRY_BASE_DELAY     Backoff base delay (seconds)
UPSTREAM_DEADLINE_SECONDS     Overall deadline per cache miss
CACHE_TTL_<RESOURCE>_SECONDS  TTL per resource (SNAPSHOT, OHLC,
                              ORDERBOOK, MARKETS)
FALLBACK_INTERVAL_HOURS       Synthetic candle interval
ORDERBOOK_DEPTH               Levels per side in order books
AUTH_JWT_SECRET               Token verification secret
AUTH_JWT_ALGORITHMS           Comma separated algorithms
AUTH_JWT_AUDIENCE             Optional expected audience
AUTH_JWT_ISSUER               Optional expected issuer
CORS_ALLOW_ORIGINS            Comma separated origins
API_HOST / API_PORT           Bind address for run_api.py
LOG_LEVEL                     Root log level
ENVIRONMENT                   development enables reload

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


DEFAULT_CACHE_TTL_SECONDS = 15 * 60

RESOURCE_NAMES = ("snapshot", "ohlc", "orderbook", "markets")


def _get_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = _get_str(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number",
            config_key=name,
            actual_value=raw,
        )
    if value < minimum:
        raise ConfigurationError(
            f"{name} must be >= {minimum}",
            config_key=name,
            actual_value=raw,
        )
    return value


def _get_int(name: str, default: int, minimum: int = 0) -> int:
    raw = _get_str(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer",
            config_key=name,
            actual_value=raw,
        )
    if value < minimum:
        raise ConfigurationError(
            f"{name} must be >= {minimum}",
            config_key=name,
            actual_value=raw,
        )
    return value


def _get_list(name: str, default: list[str]) -> list[str]:
    raw = _get_str(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _default_ttls() -> dict[str, float]:
    return {name: float(DEFAULT_CACHE_TTL_SECONDS) for name in RESOURCE_NAMES}


@dataclass
class ProxySettings:
    """Runtime settings for the proxy."""

    # Upstream
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: Optional[str] = None
    api_key_header: str = "x-cg-demo-api-key"
    request_timeout: float = 5.0

    # Retry / deadline
    max_attempts: int = 3
    retry_base_delay: float = 2.0
    overall_deadline: float = 20.0

    # Cache
    cache_ttls: dict[str, float] = field(default_factory=_default_ttls)

    # Fallback
    fallback_interval_hours: int = 4
    orderbook_depth: int = 10

    # Auth
    jwt_secret: Optional[str] = None
    jwt_algorithms: list[str] = field(default_factory=lambda: ["HS256"])
    jwt_audience: Optional[str] = None
    jwt_issuer: Optional[str] = None

    # HTTP
    cors_allow_origins: list[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    environment: str = "production"

    def ttl_for(self, resource: str) -> float:
        """TTL in seconds for a resource name."""
        return self.cache_ttls.get(resource, float(DEFAULT_CACHE_TTL_SECONDS))

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "ProxySettings":
        """Build settings from environment variables."""
        if load_env_file:
            load_dotenv()

        ttls = {
            name: _get_float(
                f"CACHE_TTL_{name.upper()}_SECONDS",
                float(DEFAULT_CACHE_TTL_SECONDS),
            )
            for name in RESOURCE_NAMES
        }

        interval_hours = _get_int("FALLBACK_INTERVAL_HOURS", 4, minimum=1)
        if 24 % interval_hours != 0:
            raise ConfigurationError(
                "FALLBACK_INTERVAL_HOURS must divide 24",
                config_key="FALLBACK_INTERVAL_HOURS",
                actual_value=interval_hours,
            )

        settings = cls(
            coingecko_base_url=_get_str(
                "COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3"
            ).rstrip("/"),
            coingecko_api_key=_get_str("COINGECKO_API_KEY"),
            api_key_header=_get_str("COINGECKO_API_KEY_HEADER", "x-cg-demo-api-key"),
            request_timeout=_get_float("UPSTREAM_TIMEOUT_SECONDS", 5.0, minimum=0.1),
            max_attempts=_get_int("UPSTREAM_MAX_ATTEMPTS", 3, minimum=1),
            retry_base_delay=_get_float("UPSTREAM_RETRY_BASE_DELAY", 2.0),
            overall_deadline=_get_float("UPSTREAM_DEADLINE_SECONDS", 20.0, minimum=0.1),
            cache_ttls=ttls,
            fallback_interval_hours=interval_hours,
            orderbook_depth=_get_int("ORDERBOOK_DEPTH", 10, minimum=1),
            jwt_secret=_get_str("AUTH_JWT_SECRET"),
            jwt_algorithms=_get_list("AUTH_JWT_ALGORITHMS", ["HS256"]),
            jwt_audience=_get_str("AUTH_JWT_AUDIENCE"),
            jwt_issuer=_get_str("AUTH_JWT_ISSUER"),
            cors_allow_origins=_get_list("CORS_ALLOW_ORIGINS", ["*"]),
            host=_get_str("API_HOST", "0.0.0.0"),
            port=_get_int("API_PORT", _get_int("PORT", 8000)),
            log_level=_get_str("LOG_LEVEL", "INFO").upper(),
            environment=_get_str("ENVIRONMENT", "production"),
        )

        if not settings.coingecko_api_key:
            logger.info("COINGECKO_API_KEY not set, calling the public API without a key")
        if not settings.jwt_secret:
            logger.warning("AUTH_JWT_SECRET not set, every bearer token will be rejected")

        return settings
