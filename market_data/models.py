"""
Market Data Models - Assets, ranges, resources and result variants.

Live and synthetic payloads share one schema per resource:

- snapshot:  {asset: {"usd": price}}
- ohlc:      [[timestamp_ms, open, high, low, close], ...] ascending
- orderbook: {"bids": [[price, size], ...], "asks": [[price, size], ...]}
- markets:   [{"coin": "BTC", "price_change_24h": pct}, ...]
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Union

from core.exceptions import ClientInputError


class Asset(Enum):
    """Supported assets."""
    BITCOIN = "bitcoin"
    ETHEREUM = "ethereum"
    LITECOIN = "litecoin"
    RIPPLE = "ripple"
    CARDANO = "cardano"
    SOLANA = "solana"

    @property
    def provider_id(self) -> str:
        """Identifier used by the upstream provider."""
        return PROVIDER_IDS[self]

    @property
    def symbol(self) -> str:
        return ASSET_SYMBOLS[self]

    @classmethod
    def from_provider_id(cls, provider_id: Any) -> Optional["Asset"]:
        """Map an upstream coin id back to an asset; None if unsupported."""
        if not isinstance(provider_id, str):
            return None
        return _ASSETS_BY_PROVIDER_ID.get(provider_id)


# Canonical mapping to CoinGecko coin ids. Every upstream call goes
# through this table.
PROVIDER_IDS: dict[Asset, str] = {
    Asset.BITCOIN: "bitcoin",
    Asset.ETHEREUM: "ethereum",
    Asset.LITECOIN: "litecoin",
    Asset.RIPPLE: "ripple",
    Asset.CARDANO: "cardano",
    Asset.SOLANA: "solana",
}

_ASSETS_BY_PROVIDER_ID: dict[str, Asset] = {v: k for k, v in PROVIDER_IDS.items()}

ASSET_SYMBOLS: dict[Asset, str] = {
    Asset.BITCOIN: "BTC",
    Asset.ETHEREUM: "ETH",
    Asset.LITECOIN: "LTC",
    Asset.RIPPLE: "XRP",
    Asset.CARDANO: "ADA",
    Asset.SOLANA: "SOL",
}


class RangeParameter(Enum):
    """Supported OHLC ranges in days (1 = intraday)."""
    INTRADAY = 1
    WEEK = 7
    TWO_WEEKS = 14
    MONTH = 30
    QUARTER = 90

    @property
    def days(self) -> int:
        return self.value


class ResourceType(Enum):
    """Cached resource types."""
    SNAPSHOT = "snapshot"
    OHLC = "ohlc"
    ORDERBOOK = "orderbook"
    MARKETS = "markets"


class FallbackReason(Enum):
    """Why a synthetic payload was served."""
    RATE_LIMITED = "rate_limited"
    UPSTREAM_ERROR = "upstream_error"
    DEADLINE_EXCEEDED = "deadline_exceeded"


def parse_asset(value: Any) -> Asset:
    """Validate an asset identifier."""
    if isinstance(value, Asset):
        return value
    try:
        return Asset(str(value))
    except ValueError:
        raise ClientInputError(
            "Invalid asset",
            field_name="asset",
            value=value,
        )


def parse_range(value: Any) -> RangeParameter:
    """Validate a days/range parameter."""
    if isinstance(value, RangeParameter):
        return value
    try:
        days = int(str(value))
        return RangeParameter(days)
    except ValueError:
        raise ClientInputError(
            "Invalid days parameter",
            field_name="days",
            value=value,
        )


def cache_key(
    resource: ResourceType,
    asset: Optional[Asset] = None,
    range_param: Optional[RangeParameter] = None,
) -> str:
    """Compose a cache key, e.g. ``ohlc:bitcoin:7``."""
    parts = [resource.value, asset.value if asset else "all"]
    if range_param is not None:
        parts.append(str(range_param.days))
    return ":".join(parts)


@dataclass(frozen=True)
class LiveResult:
    """Payload sourced from the upstream provider."""
    resource: ResourceType
    payload: Any
    cache_hit: bool = False

    @property
    def synthetic(self) -> bool:
        return False

    @property
    def source(self) -> str:
        return "live"

    def as_cache_hit(self) -> "LiveResult":
        return replace(self, cache_hit=True)


@dataclass(frozen=True)
class FallbackResult:
    """Payload produced by the fallback generator."""
    resource: ResourceType
    payload: Any
    reason: FallbackReason
    cache_hit: bool = False

    @property
    def synthetic(self) -> bool:
        return True

    @property
    def source(self) -> str:
        return "fallback"

    def as_cache_hit(self) -> "FallbackResult":
        return replace(self, cache_hit=True)


MarketDataResult = Union[LiveResult, FallbackResult]
