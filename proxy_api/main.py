"""
FastAPI application for the market data proxy.

    uvicorn proxy_api.main:app
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import ProxySettings
from core.exceptions import InternalError, ProxyError
from identity.verifier import JWTTokenVerifier, TokenVerifier
from market_data.service import MarketDataService
from proxy_api.routers import admin, health, market

logger = logging.getLogger(__name__)


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"[api] {request.method} {request.url.path} failed: {exc.to_dict()}")
    else:
        logger.info(f"[api] {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"[api] {request.method} {request.url.path} raised unexpectedly", exc_info=exc)
    error = InternalError("Unhandled error", cause=exc)
    return JSONResponse(status_code=error.status_code, content=error.to_response())


def create_app(
    settings: Optional[ProxySettings] = None,
    service: Optional[MarketDataService] = None,
    verifier: Optional[TokenVerifier] = None,
) -> FastAPI:
    """Build the application; components may be injected for tests."""
    settings = settings or ProxySettings.from_env()
    service = service or MarketDataService.from_settings(settings)
    verifier = verifier or JWTTokenVerifier(
        key=settings.jwt_secret,
        algorithms=settings.jwt_algorithms,
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Market data proxy starting")
        yield
        await app.state.market_service.close()
        logger.info("Market data proxy stopped")

    app = FastAPI(
        title="Market Data Proxy API",
        description="Cached, rate-limit aware market data for the crypto dashboard.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.market_service = service
    app.state.token_verifier = verifier

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=[market.DATA_SOURCE_HEADER, market.CACHE_HEADER],
    )

    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health.router)
    app.include_router(market.router)
    app.include_router(admin.router)

    return app


app = create_app()
