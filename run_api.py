#!/usr/bin/env python
"""
Market Data Proxy API Server Runner.

Usage:
    python run_api.py

Or with PM2:
    pm2 start run_api.py --interpreter python
"""

import logging
import sys

import uvicorn

from core.config import ProxySettings
from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def main():
    """Run the proxy API server."""
    try:
        settings = ProxySettings.from_env()
    except ConfigurationError as e:
        setup_logging("INFO")
        logger.error(f"Invalid configuration: {e.to_dict()}")
        sys.exit(1)

    setup_logging(settings.log_level)
    logger.info(f"Starting market data proxy on {settings.host}:{settings.port}")

    try:
        uvicorn.run(
            "proxy_api.main:app",
            host=settings.host,
            port=settings.port,
            reload=settings.is_development,
            log_level=settings.log_level.lower(),
            access_log=True,
        )
    except Exception as e:
        logger.error(f"Failed to start proxy: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
