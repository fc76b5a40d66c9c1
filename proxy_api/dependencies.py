"""
FastAPI dependencies: component lookup, input validation, authentication.

Endpoints declare the validation dependencies before require_subject so
an unsupported asset or range is rejected before the token is checked.
"""
import logging
from typing import Optional

from fastapi import Depends, Header, Request

from core.exceptions import AuthError, InternalError
from identity.verifier import InvalidCredentialError, TokenVerifier
from market_data.models import Asset, RangeParameter, parse_asset, parse_range
from market_data.service import MarketDataService

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


# =============================================================
# HELPER: Components held on app.state
# =============================================================

def get_market_service(request: Request) -> MarketDataService:
    return request.app.state.market_service


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


# =============================================================
# HELPER: Input validation
# =============================================================

def valid_asset(asset: str) -> Asset:
    return parse_asset(asset)


def valid_days(days: str) -> RangeParameter:
    return parse_range(days)


# =============================================================
# HELPER: Authentication
# =============================================================

async def require_subject(
    authorization: Optional[str] = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> str:
    """Verify the bearer token and return its subject id."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthError("Unauthorized: Missing or invalid token")

    token = authorization[len(BEARER_PREFIX):].strip()
    try:
        subject = await verifier.verify(token)
    except InvalidCredentialError as e:
        logger.info(f"[auth] Token rejected: {e.reason or e.message}")
        raise AuthError("Unauthorized: Invalid token")
    except Exception as e:
        logger.exception("[auth] Token verifier failed")
        raise InternalError("Token verification failed", cause=e)

    logger.debug(f"[auth] Token verified for {subject}")
    return subject
