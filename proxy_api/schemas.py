"""
Pydantic schemas for the proxy API responses that are not raw market data.

Market data endpoints return the provider-shaped payload as-is so the
dashboard can consume live and synthetic data identically.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorResponse(BaseModel):
    error: str


class MessageResponse(BaseModel):
    message: str


class ClearCacheResponse(MessageResponse):
    cleared: int = 0


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=_utcnow)
    version: str = "1.0.0"
    upstream_key_configured: bool = False
    stats: Optional[Dict[str, Any]] = None
