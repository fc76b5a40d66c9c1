"""
Administrative endpoints.
"""
import logging

from fastapi import APIRouter, Depends

from core.exceptions import InternalError
from market_data.service import MarketDataService
from proxy_api.dependencies import get_market_service, require_subject
from proxy_api.schemas import ClearCacheResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Administration"])


@router.api_route("/clear-cache", methods=["GET", "POST"], response_model=ClearCacheResponse)
def clear_cache(
    subject: str = Depends(require_subject),
    service: MarketDataService = Depends(get_market_service),
):
    """Drop every cached entry. Succeeds on an empty cache too."""
    try:
        cleared = service.clear_cache()
    except Exception as e:
        logger.exception("[api] Cache clear failed")
        raise InternalError("Failed to clear cache", cause=e)

    logger.info(f"[api] Cache cleared by {subject}")
    return ClearCacheResponse(message="Cache cleared", cleared=cleared)
