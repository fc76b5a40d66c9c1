"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the errors that may cross the HTTP boundary of the proxy.

Upstream failures (rate limiting, outages, malformed payloads) live in
market_data.exceptions and are absorbed into fallback responses; only
the errors below ever reach a client.

============================================================
EXCEPTION HIERARCHY
============================================================
ProxyError (base)
├── ConfigurationError       (startup only)
├── ClientInputError         400
├── AuthError                401
└── InternalError            500

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# BASE EXCEPTION
# ============================================================

class ProxyError(Exception):
    """
    Base exception for all proxy errors.

    All exceptions carry:
    - status_code: HTTP status used when surfaced to a client
    - context: for debugging
    - timestamp: when the error occurred
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "status_code": self.status_code,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_response(self) -> Dict[str, Any]:
        """Body returned to the client."""
        return {"error": self.message}


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(ProxyError):
    """Invalid configuration value."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


# ============================================================
# CLIENT-FACING ERRORS
# ============================================================

class ClientInputError(ProxyError):
    """Unsupported asset or range parameter."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if field_name:
            context["field"] = field_name
        if value is not None:
            context["value"] = str(value)[:100]

        super().__init__(message, context=context, **kwargs)
        self.field_name = field_name


class AuthError(ProxyError):
    """Missing or invalid bearer credential."""

    status_code = 401


class InternalError(ProxyError):
    """Unexpected failure outside the upstream taxonomy."""

    status_code = 500

    def to_response(self) -> Dict[str, Any]:
        return {"error": "Internal server error"}


__all__ = [
    "ProxyError",
    "ConfigurationError",
    "ClientInputError",
    "AuthError",
    "InternalError",
]
