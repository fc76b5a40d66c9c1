import logging

from fastapi import APIRouter, Request

from core.exceptions import InternalError
from proxy_api.schemas import HealthResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System Health"])


@router.get("/", response_model=MessageResponse)
def root():
    return MessageResponse(
        message="Welcome to the market data proxy. Use /api/price, /api/ohlc/{asset}/{days}, "
                "/api/orderbook/{asset} or /api/markets."
    )


@router.get("/health", response_model=HealthResponse)
def get_health(request: Request):
    """
    Liveness plus cache and fallback counters.
    """
    try:
        service = request.app.state.market_service
        settings = request.app.state.settings
        return HealthResponse(
            status="ok",
            upstream_key_configured=bool(settings.coingecko_api_key),
            stats=service.stats(),
        )
    except Exception as e:
        logger.exception("[health] Failed to collect stats")
        raise InternalError("Health check failed", cause=e)
