"""
Market Data Service - cache, retry and fallback orchestration.

Per request:

    CacheCheck -> hit  -> respond
               -> miss -> single-flight -> deadline(retry(upstream))
                            -> success -> LiveResult     -> cache -> respond
                            -> failure -> FallbackResult -> cache -> respond

Inputs arrive already validated (parse_asset / parse_range). No
upstream condition escapes this class: rate limiting, outages, malformed
payloads and deadline expiry all resolve to a cached fallback result.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from core.config import ProxySettings
from market_data.cache import SingleFlight, TTLCache
from market_data.client import CoinGeckoClient
from market_data.exceptions import RateLimitError, UpstreamError
from market_data.fallback import FallbackGenerator
from market_data.models import (
    Asset,
    FallbackReason,
    FallbackResult,
    LiveResult,
    MarketDataResult,
    RangeParameter,
    ResourceType,
    cache_key,
)
from market_data.retry import RetryPolicy


logger = logging.getLogger(__name__)


@dataclass
class ServiceStats:
    """Counters exposed on the health endpoint."""
    cache_hits: int = 0
    cache_misses: int = 0
    live_fetches: int = 0
    fallbacks: Counter = field(default_factory=Counter)
    cache_clears: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "live_fetches": self.live_fetches,
            "fallbacks": {reason.value: self.fallbacks.get(reason, 0) for reason in FallbackReason},
            "cache_clears": self.cache_clears,
        }


class MarketDataService:
    """
    Orchestrates the snapshot, OHLC, order book and markets resources.

    Usage:
        service = MarketDataService(client, TTLCache(), RetryPolicy(), FallbackGenerator())
        result = await service.get_ohlc(Asset.BITCOIN, RangeParameter.WEEK)
        result.payload   # list of candles
        result.source    # "live" or "fallback"
    """

    DEFAULT_TTL = 15 * 60
    DEFAULT_DEADLINE = 20.0

    def __init__(
        self,
        client: CoinGeckoClient,
        cache: TTLCache,
        retry_policy: RetryPolicy,
        fallback: FallbackGenerator,
        ttls: Optional[dict[ResourceType, float]] = None,
        overall_deadline: float = DEFAULT_DEADLINE,
    ) -> None:
        self._client = client
        self._cache = cache
        self._retry = retry_policy
        self._fallback = fallback
        self._ttls = ttls or {}
        self._deadline = overall_deadline
        self._single_flight = SingleFlight()
        self._stats = ServiceStats()

    @classmethod
    def from_settings(
        cls,
        settings: ProxySettings,
        client: Optional[CoinGeckoClient] = None,
        cache: Optional[TTLCache] = None,
    ) -> "MarketDataService":
        """Wire the default component graph from settings."""
        client = client or CoinGeckoClient(
            base_url=settings.coingecko_base_url,
            api_key=settings.coingecko_api_key,
            api_key_header=settings.api_key_header,
            timeout=settings.request_timeout,
        )
        return cls(
            client=client,
            cache=cache or TTLCache(),
            retry_policy=RetryPolicy(
                max_attempts=settings.max_attempts,
                base_delay=settings.retry_base_delay,
            ),
            fallback=FallbackGenerator(
                interval_hours=settings.fallback_interval_hours,
                depth=settings.orderbook_depth,
            ),
            ttls={r: settings.ttl_for(r.value) for r in ResourceType},
            overall_deadline=settings.overall_deadline,
        )

    @property
    def cache(self) -> TTLCache:
        return self._cache

    # ------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------

    async def get_snapshot(self) -> MarketDataResult:
        """USD prices for every supported asset."""
        assets = list(Asset)
        return await self._resolve(
            ResourceType.SNAPSHOT,
            cache_key(ResourceType.SNAPSHOT),
            fetch=lambda: self._client.fetch_simple_price(assets),
            fallback=lambda: self._fallback.snapshot(assets),
        )

    async def get_ohlc(self, asset: Asset, range_param: RangeParameter) -> MarketDataResult:
        """OHLC candles for one asset over ``range_param`` days."""
        return await self._resolve(
            ResourceType.OHLC,
            cache_key(ResourceType.OHLC, asset, range_param),
            fetch=lambda: self._client.fetch_ohlc(asset, range_param.days),
            fallback=lambda: self._fallback.ohlc(asset, range_param),
        )

    async def get_order_book(self, asset: Asset) -> MarketDataResult:
        """Order book ladder around the live (or base) price."""

        async def fetch() -> dict[str, list[list[float]]]:
            price = await self._client.fetch_reference_price(asset)
            return self._fallback.order_book(asset, reference_price=price)

        return await self._resolve(
            ResourceType.ORDERBOOK,
            cache_key(ResourceType.ORDERBOOK, asset),
            fetch=fetch,
            fallback=lambda: self._fallback.order_book(asset),
        )

    async def get_markets(self) -> MarketDataResult:
        """24h price change for every supported asset."""
        assets = list(Asset)
        return await self._resolve(
            ResourceType.MARKETS,
            cache_key(ResourceType.MARKETS),
            fetch=lambda: self._client.fetch_markets(assets),
            fallback=lambda: self._fallback.markets(assets),
        )

    # ------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------

    def clear_cache(self) -> int:
        """Empty the cache; safe to call repeatedly."""
        cleared = self._cache.clear()
        self._stats.cache_clears += 1
        logger.info(f"[service] Cache cleared ({cleared} entries)")
        return cleared

    def stats(self) -> dict[str, Any]:
        data = self._stats.to_dict()
        data["cache_size"] = len(self._cache)
        return data

    async def close(self) -> None:
        await self._client.close()

    # ------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------

    def ttl_for(self, resource: ResourceType) -> float:
        return self._ttls.get(resource, self.DEFAULT_TTL)

    async def _resolve(
        self,
        resource: ResourceType,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        fallback: Callable[[], Any],
    ) -> MarketDataResult:
        cached = self._cache.get(key)
        if cached is not None:
            self._stats.cache_hits += 1
            logger.debug(f"[service] Cache hit for {key}")
            return cached.as_cache_hit()

        self._stats.cache_misses += 1
        return await self._single_flight.run(
            key,
            lambda: self._load(resource, key, fetch, fallback),
        )

    async def _load(
        self,
        resource: ResourceType,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        fallback: Callable[[], Any],
    ) -> MarketDataResult:
        reason: Optional[FallbackReason] = None
        try:
            payload = await asyncio.wait_for(
                self._retry.run(fetch, label=key),
                timeout=self._deadline,
            )
        except RateLimitError as e:
            logger.warning(f"[service] {key}: rate limit not cleared, serving fallback ({e})")
            reason = FallbackReason.RATE_LIMITED
        except UpstreamError as e:
            logger.warning(f"[service] {key}: upstream failed, serving fallback ({e})")
            reason = FallbackReason.UPSTREAM_ERROR
        except asyncio.TimeoutError:
            logger.warning(f"[service] {key}: deadline of {self._deadline}s exceeded, serving fallback")
            reason = FallbackReason.DEADLINE_EXCEEDED

        if reason is None:
            result: MarketDataResult = LiveResult(resource=resource, payload=payload)
            self._stats.live_fetches += 1
        else:
            result = FallbackResult(resource=resource, payload=fallback(), reason=reason)
            self._stats.fallbacks[reason] += 1

        self._cache.put(key, result, self.ttl_for(resource))
        logger.info(f"[service] Cached {key} from {result.source}")
        return result
