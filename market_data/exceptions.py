"""
Market Data Exceptions - Upstream failure taxonomy.

None of these reach a client. The service converts every one of them
into a fallback response.

UpstreamError
├── RateLimitError            HTTP 429, the only retried condition
└── UpstreamUnavailableError  other HTTP errors, network, timeout
    └── MalformedPayloadError body decoded but failed validation
"""

from datetime import datetime, timezone
from typing import Any, Optional


class UpstreamError(Exception):
    """Base exception for all upstream errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class UpstreamUnavailableError(UpstreamError):
    """Non-retryable upstream failure."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data

    def is_unauthorized(self) -> bool:
        """Upstream rejected our API key."""
        return self.status_code in (401, 403)


class MalformedPayloadError(UpstreamUnavailableError):
    """Upstream answered 2xx with a body we cannot use."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        raw_data: Optional[Any] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            source_name,
            request_url=request_url,
            original_error=original_error,
        )
        self.raw_data = raw_data

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["raw_data"] = str(self.raw_data)[:500] if self.raw_data is not None else None
        return data


class RateLimitError(UpstreamError):
    """Rate limit exceeded (HTTP 429)."""

    status_code = 429

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        source_name: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        request_url: Optional[str] = None,
    ) -> None:
        super().__init__(message, source_name)
        self.retry_after_seconds = retry_after_seconds
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["retry_after_seconds"] = self.retry_after_seconds
        return data
