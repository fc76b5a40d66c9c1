"""
Fallback Generator - synthetic market data with the live payload shapes.

Used whenever the upstream is rate limited, unavailable, unauthorized or
returns malformed data. Values follow a random walk around a per-asset
base price so a sub-dollar asset shows sub-dollar moves.
"""

import random
from typing import Any, Iterable, Optional

from core.clock import ClockProtocol, SystemClock
from market_data.models import Asset, RangeParameter


BASE_PRICES: dict[Asset, float] = {
    Asset.BITCOIN: 30000.0,
    Asset.ETHEREUM: 1800.0,
    Asset.LITECOIN: 90.0,
    Asset.RIPPLE: 0.7,
    Asset.CARDANO: 0.5,
    Asset.SOLANA: 40.0,
}


class FallbackGenerator:
    """
    Builds synthetic snapshots, OHLC series, order books and movers.

    Output is random per call; only its shape and invariants are fixed:

    - OHLC has ``days * 24 / interval_hours`` candles with strictly
      ascending timestamps and low <= open, close <= high.
    - Order book bids sit strictly below and asks strictly above the
      reference price, moving away from it level by level.
    """

    INTERVAL_HOURS = 4
    DEPTH = 10
    LEVEL_STEP = 0.01
    # Per-candle volatility of the random walk, as a fraction of price.
    WALK_VOLATILITY = 0.01

    def __init__(
        self,
        interval_hours: int = INTERVAL_HOURS,
        depth: int = DEPTH,
        level_step: float = LEVEL_STEP,
        base_prices: Optional[dict[Asset, float]] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        if interval_hours < 1 or 24 % interval_hours != 0:
            raise ValueError("interval_hours must divide 24")
        if depth < 1:
            raise ValueError("depth must be >= 1")
        if not 0 < level_step * depth < 1:
            raise ValueError("level_step * depth must be within (0, 1)")
        self._interval_hours = interval_hours
        self._depth = depth
        self._level_step = level_step
        self._base_prices = dict(base_prices or BASE_PRICES)
        self._rng = rng or random.Random()
        self._clock = clock or SystemClock()

    @property
    def points_per_day(self) -> int:
        return 24 // self._interval_hours

    @property
    def interval_ms(self) -> int:
        return self._interval_hours * 60 * 60 * 1000

    def base_price(self, asset: Asset) -> float:
        return self._base_prices[asset]

    def expected_points(self, range_param: RangeParameter) -> int:
        return range_param.days * self.points_per_day

    # ------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------

    def snapshot(self, assets: Iterable[Asset]) -> dict[str, dict[str, float]]:
        """Prices within +/-1% of each asset's base price."""
        return {
            asset.value: {"usd": self._jitter(self.base_price(asset), 0.01)}
            for asset in assets
        }

    # ------------------------------------------------------------
    # OHLC
    # ------------------------------------------------------------

    def ohlc(
        self,
        asset: Asset,
        range_param: RangeParameter,
        now_ms: Optional[int] = None,
    ) -> list[list[float]]:
        """Synthetic candles ending at the interval boundary at or before now."""
        if now_ms is None:
            now_ms = self._clock.timestamp_ms()
        count = self.expected_points(range_param)
        interval = self.interval_ms
        end = now_ms - (now_ms % interval)

        base = self.base_price(asset)
        price = self._jitter(base, 0.05)
        candles = []
        for i in range(count):
            timestamp = end - (count - 1 - i) * interval
            open_ = price
            close = self._walk(open_, base)
            high = max(open_, close) * (1 + self._rng.uniform(0, self.WALK_VOLATILITY / 2))
            low = min(open_, close) * (1 - self._rng.uniform(0, self.WALK_VOLATILITY / 2))
            candles.append([timestamp, open_, high, low, close])
            price = close
        return candles

    def _walk(self, price: float, base: float) -> float:
        # Pull gently back toward the base price so long ranges stay plausible.
        drift = (base - price) / base * 0.05
        step = self._rng.gauss(drift, self.WALK_VOLATILITY)
        step = max(-0.1, min(0.1, step))
        return price * (1 + step)

    # ------------------------------------------------------------
    # Order book
    # ------------------------------------------------------------

    def order_book(
        self,
        asset: Asset,
        reference_price: Optional[float] = None,
    ) -> dict[str, list[list[float]]]:
        """Ladder of ``depth`` levels each side of the reference price."""
        reference = reference_price if reference_price else self.base_price(asset)
        bids = [
            [reference * (1 - self._level_step * (i + 1)), self._size()]
            for i in range(self._depth)
        ]
        asks = [
            [reference * (1 + self._level_step * (i + 1)), self._size()]
            for i in range(self._depth)
        ]
        return {"bids": bids, "asks": asks}

    def _size(self) -> float:
        return 10 + self._rng.random() * 10

    # ------------------------------------------------------------
    # Markets
    # ------------------------------------------------------------

    def markets(self, assets: Iterable[Asset]) -> list[dict[str, Any]]:
        """24h change between -5% and +5%, ordered by base price."""
        ordered = sorted(assets, key=self.base_price, reverse=True)
        return [
            {
                "coin": asset.symbol,
                "price_change_24h": round(self._rng.uniform(-5.0, 5.0), 2),
            }
            for asset in ordered
        ]

    def _jitter(self, value: float, fraction: float) -> float:
        return value * (1 + self._rng.uniform(-fraction, fraction))
