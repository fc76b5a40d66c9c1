"""
Core Module Package.

Shared infrastructure for the market data proxy.

Components:
- clock: Testable time source
- config: Environment-driven settings
- exceptions: Client-facing error taxonomy
"""

from core.clock import ClockProtocol, MockClock, SystemClock
from core.config import ProxySettings
from core.exceptions import (
    AuthError,
    ClientInputError,
    ConfigurationError,
    InternalError,
    ProxyError,
)


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ProxySettings",
    "ProxyError",
    "ConfigurationError",
    "ClientInputError",
    "AuthError",
    "InternalError",
]
