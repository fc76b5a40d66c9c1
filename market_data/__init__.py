"""
Market Data Package - caching proxy over the CoinGecko API.

Features:
- Single-shot upstream client with typed failures
- Exponential backoff on rate limiting only
- Synthetic fallback data with the live payload shapes
- TTL cache with per-key single-flight

Quick Start:
    from market_data import MarketDataService, Asset, RangeParameter
    from core.config import ProxySettings

    async def main():
        service = MarketDataService.from_settings(ProxySettings.from_env())
        result = await service.get_ohlc(Asset.BITCOIN, RangeParameter.WEEK)
        print(result.source, len(result.payload))
        await service.close()
"""

from market_data.cache import CacheEntry, SingleFlight, TTLCache
from market_data.client import CoinGeckoClient
from market_data.exceptions import (
    MalformedPayloadError,
    RateLimitError,
    UpstreamError,
    UpstreamUnavailableError,
)
from market_data.fallback import BASE_PRICES, FallbackGenerator
from market_data.models import (
    Asset,
    FallbackReason,
    FallbackResult,
    LiveResult,
    MarketDataResult,
    PROVIDER_IDS,
    RangeParameter,
    ResourceType,
    cache_key,
    parse_asset,
    parse_range,
)
from market_data.retry import RetryPolicy
from market_data.service import MarketDataService, ServiceStats


__version__ = "1.0.0"

__all__ = [
    # Models
    "Asset",
    "RangeParameter",
    "ResourceType",
    "FallbackReason",
    "LiveResult",
    "FallbackResult",
    "MarketDataResult",
    "PROVIDER_IDS",
    "cache_key",
    "parse_asset",
    "parse_range",

    # Exceptions
    "UpstreamError",
    "RateLimitError",
    "UpstreamUnavailableError",
    "MalformedPayloadError",

    # Components
    "CoinGeckoClient",
    "RetryPolicy",
    "FallbackGenerator",
    "BASE_PRICES",
    "TTLCache",
    "CacheEntry",
    "SingleFlight",
    "MarketDataService",
    "ServiceStats",
]
