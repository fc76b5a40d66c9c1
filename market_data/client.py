"""
CoinGecko Upstream Client - one HTTP GET per call.

Endpoints used:
- /simple/price      - Price snapshot (also the order book reference price)
- /coins/{id}/ohlc   - OHLC candles
- /coins/markets     - 24h change per coin

The client never retries. HTTP 429 raises RateLimitError so the retry
policy can back off; everything else raises UpstreamUnavailableError.
"""

import asyncio
import json
import logging
import time
from typing import Any, Iterable, Optional

import aiohttp

from market_data.exceptions import (
    MalformedPayloadError,
    RateLimitError,
    UpstreamUnavailableError,
)
from market_data.models import Asset
from market_data.normalization import (
    normalize_markets,
    normalize_ohlc,
    normalize_reference_price,
    normalize_snapshot,
)


logger = logging.getLogger(__name__)


class CoinGeckoClient:
    """
    CoinGecko v3 public API client.

    The API key, when configured, is sent in ``api_key_header``. Without a
    key the public endpoints are called anonymously.
    """

    DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
    DEFAULT_TIMEOUT = 5.0
    DEFAULT_API_KEY_HEADER = "x-cg-demo-api-key"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        api_key_header: str = DEFAULT_API_KEY_HEADER,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._api_key_header = api_key_header
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def name(self) -> str:
        return "coingecko"

    async def fetch_simple_price(
        self,
        assets: Iterable[Asset],
    ) -> dict[str, dict[str, float]]:
        """Fetch USD prices for the given assets."""
        assets = list(assets)
        data = await self.get_json(
            "/simple/price",
            params={
                "ids": ",".join(a.provider_id for a in assets),
                "vs_currencies": "usd",
            },
        )
        return normalize_snapshot(data, assets, self.name)

    async def fetch_reference_price(self, asset: Asset) -> float:
        """Fetch one asset's USD price."""
        data = await self.get_json(
            "/simple/price",
            params={"ids": asset.provider_id, "vs_currencies": "usd"},
        )
        return normalize_reference_price(data, asset, self.name)

    async def fetch_ohlc(self, asset: Asset, days: int) -> list[list[float]]:
        """Fetch OHLC candles for ``days`` days."""
        data = await self.get_json(
            f"/coins/{asset.provider_id}/ohlc",
            params={"vs_currency": "usd", "days": str(days)},
        )
        return normalize_ohlc(data, self.name)

    async def fetch_markets(self, assets: Iterable[Asset]) -> list[dict[str, Any]]:
        """Fetch 24h price change for the given assets."""
        assets = list(assets)
        data = await self.get_json(
            "/coins/markets",
            params={
                "vs_currency": "usd",
                "ids": ",".join(a.provider_id for a in assets),
                "order": "market_cap_desc",
                "sparkline": "false",
                "price_change_percentage": "24h",
            },
        )
        return normalize_markets(data, assets, self.name)

    async def get_json(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Perform exactly one GET and decode the JSON body.

        Raises:
            RateLimitError: HTTP 429
            MalformedPayloadError: 2xx body that is empty or not JSON
            UpstreamUnavailableError: any other failure
        """
        session = await self._get_session()
        url = f"{self._base_url}{path}"

        start_time = time.time()
        try:
            async with session.get(
                url,
                params=params,
                headers=self._get_headers(),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as response:
                latency_ms = (time.time() - start_time) * 1000

                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        source_name=self.name,
                        retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                        request_url=url,
                    )

                raw = await response.read()

                if response.status < 200 or response.status >= 300:
                    raise UpstreamUnavailableError(
                        message=f"HTTP {response.status}",
                        source_name=self.name,
                        status_code=response.status,
                        response_body=raw[:1000].decode("utf-8", errors="replace"),
                        request_url=url,
                    )

                logger.debug(f"[{self.name}] GET {path} completed in {latency_ms:.1f}ms")

        except asyncio.TimeoutError as e:
            raise UpstreamUnavailableError(
                message=f"Timed out after {self._timeout}s",
                source_name=self.name,
                request_url=url,
                original_error=e,
            )
        except aiohttp.ClientError as e:
            raise UpstreamUnavailableError(
                message=f"Connection error: {e}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            )

        return self._decode(raw, url)

    def _decode(self, raw: bytes, url: str) -> Any:
        """Decode a success body; anything unparseable is malformed."""
        if not raw or not raw.strip():
            raise MalformedPayloadError(
                "Empty response body",
                source_name=self.name,
                request_url=url,
            )
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise MalformedPayloadError(
                f"Response body is not JSON ({type(e).__name__})",
                source_name=self.name,
                raw_data=raw[:500].decode("utf-8", errors="replace"),
                request_url=url,
                original_error=e,
            )

    def _get_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": "MarketDataProxy/1.0",
        }
        if self._api_key:
            headers[self._api_key_header] = self._api_key
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "CoinGeckoClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(base_url={self._base_url})>"
