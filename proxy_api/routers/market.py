"""
Market data endpoints: price snapshot, OHLC, order book, 24h movers.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from core.exceptions import InternalError, ProxyError
from market_data.models import Asset, MarketDataResult, RangeParameter
from market_data.service import MarketDataService
from proxy_api.dependencies import (
    get_market_service,
    require_subject,
    valid_asset,
    valid_days,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Market Data"])

DATA_SOURCE_HEADER = "X-Data-Source"
CACHE_HEADER = "X-Cache"


def to_response(result: MarketDataResult) -> JSONResponse:
    """Serialize a result; provenance travels in headers, not the body."""
    return JSONResponse(
        content=result.payload,
        headers={
            DATA_SOURCE_HEADER: result.source,
            CACHE_HEADER: "HIT" if result.cache_hit else "MISS",
        },
    )


def _internal_error(what: str, e: Exception) -> InternalError:
    logger.exception(f"[api] Unexpected error serving {what}")
    return InternalError(f"Failed to serve {what}", cause=e)


@router.get("/price")
async def get_price(
    subject: str = Depends(require_subject),
    service: MarketDataService = Depends(get_market_service),
):
    """USD price for every supported asset."""
    try:
        return to_response(await service.get_snapshot())
    except ProxyError:
        raise
    except Exception as e:
        raise _internal_error("prices", e)


@router.get("/ohlc/{asset}/{days}")
async def get_ohlc(
    asset: Asset = Depends(valid_asset),
    days: RangeParameter = Depends(valid_days),
    subject: str = Depends(require_subject),
    service: MarketDataService = Depends(get_market_service),
):
    """
    OHLC candles as ``[timestamp_ms, open, high, low, close]`` rows.

    ``days`` is one of 1, 7, 14, 30 or 90.
    """
    try:
        return to_response(await service.get_ohlc(asset, days))
    except ProxyError:
        raise
    except Exception as e:
        raise _internal_error(f"OHLC for {asset.value}", e)


@router.get("/orderbook/{asset}")
async def get_order_book(
    asset: Asset = Depends(valid_asset),
    subject: str = Depends(require_subject),
    service: MarketDataService = Depends(get_market_service),
):
    """Bids (descending) and asks (ascending) around the current price."""
    try:
        return to_response(await service.get_order_book(asset))
    except ProxyError:
        raise
    except Exception as e:
        raise _internal_error(f"order book for {asset.value}", e)


@router.get("/markets")
async def get_markets(
    subject: str = Depends(require_subject),
    service: MarketDataService = Depends(get_market_service),
):
    """24h price change per supported coin."""
    try:
        return to_response(await service.get_markets())
    except ProxyError:
        raise
    except Exception as e:
        raise _internal_error("markets", e)
