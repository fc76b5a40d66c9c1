"""
Payload normalization at the upstream boundary.

Every decoded upstream body passes through one of these functions
before it is treated as a success. Anything that does not match the
shared payload schema raises MalformedPayloadError, which the service
treats like any other upstream failure.
"""

import math
from typing import Any, Iterable, Optional

from market_data.exceptions import MalformedPayloadError
from market_data.models import Asset


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def normalize_snapshot(
    raw: Any,
    assets: Iterable[Asset],
    source_name: Optional[str] = None,
) -> dict[str, dict[str, float]]:
    """
    Convert a ``/simple/price`` body into ``{asset: {"usd": price}}``.

    Provider ids are mapped back to our asset identifiers. Entries for
    assets that were not requested are dropped.
    """
    if not isinstance(raw, dict) or not raw:
        raise MalformedPayloadError(
            "Empty price data",
            source_name=source_name,
            raw_data=raw,
        )

    wanted = set(assets)
    snapshot: dict[str, dict[str, float]] = {}
    for provider_id, entry in raw.items():
        asset = Asset.from_provider_id(provider_id)
        if asset is None or asset not in wanted:
            continue
        price = entry.get("usd") if isinstance(entry, dict) else None
        if not _is_number(price) or price <= 0:
            raise MalformedPayloadError(
                f"Invalid price for {asset.value}",
                source_name=source_name,
                raw_data=entry,
            )
        snapshot[asset.value] = {"usd": float(price)}

    if not snapshot:
        raise MalformedPayloadError(
            "No requested asset in price data",
            source_name=source_name,
            raw_data=raw,
        )
    return snapshot


def normalize_reference_price(
    raw: Any,
    asset: Asset,
    source_name: Optional[str] = None,
) -> float:
    """Extract one asset's USD price from a ``/simple/price`` body."""
    snapshot = normalize_snapshot(raw, [asset], source_name)
    return snapshot[asset.value]["usd"]


def normalize_ohlc(
    raw: Any,
    source_name: Optional[str] = None,
) -> list[list[float]]:
    """
    Validate ``/coins/{id}/ohlc`` rows.

    Rows are sorted ascending by timestamp; duplicate timestamps keep
    the last row seen.
    """
    if not isinstance(raw, list) or not raw:
        raise MalformedPayloadError(
            "Empty OHLC data",
            source_name=source_name,
            raw_data=raw,
        )

    by_timestamp: dict[int, list[float]] = {}
    for row in raw:
        if (
            not isinstance(row, (list, tuple))
            or len(row) != 5
            or not all(_is_number(v) for v in row)
        ):
            raise MalformedPayloadError(
                "Invalid OHLC row",
                source_name=source_name,
                raw_data=row,
            )
        timestamp = int(row[0])
        by_timestamp[timestamp] = [timestamp] + [float(v) for v in row[1:]]

    return [by_timestamp[ts] for ts in sorted(by_timestamp)]


def normalize_markets(
    raw: Any,
    assets: Iterable[Asset],
    source_name: Optional[str] = None,
) -> list[dict[str, Any]]:
    """
    Convert a ``/coins/markets`` body into ``[{"coin", "price_change_24h"}]``.

    Output order follows the upstream order (market cap descending).
    """
    if not isinstance(raw, list) or not raw:
        raise MalformedPayloadError(
            "Empty markets data",
            source_name=source_name,
            raw_data=raw,
        )

    wanted = set(assets)
    movers = []
    for coin in raw:
        if not isinstance(coin, dict):
            continue
        asset = Asset.from_provider_id(coin.get("id"))
        if asset is None or asset not in wanted:
            continue
        symbol = coin.get("symbol")
        change = coin.get("price_change_percentage_24h")
        if not isinstance(symbol, str) or not symbol:
            raise MalformedPayloadError(
                "Market entry without symbol",
                source_name=source_name,
                raw_data=coin,
            )
        if change is not None and not _is_number(change):
            raise MalformedPayloadError(
                f"Invalid 24h change for {symbol}",
                source_name=source_name,
                raw_data=coin,
            )
        movers.append({
            "coin": symbol.upper(),
            "price_change_24h": float(change) if change is not None else None,
        })

    if not movers:
        raise MalformedPayloadError(
            "No requested asset in markets data",
            source_name=source_name,
            raw_data=raw,
        )
    return movers
