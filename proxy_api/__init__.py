"""
Proxy API Package.

HTTP surface of the market data proxy.

Modules:
- main: application factory and ASGI app
- dependencies: validation and authentication dependencies
- routers/: market data, administration and health endpoints
"""
