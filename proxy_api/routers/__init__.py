"""
Proxy API Routers.
"""
from . import admin, health, market

__all__ = ["admin", "health", "market"]
