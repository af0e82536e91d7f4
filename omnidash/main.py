"""
OmniDash - Main entry point.

Starts the local HTTP API that serves the snapshot cache to the
dashboard UI.

Usage:
    python -m omnidash.main

Configuration is entirely via environment variables.
See config.py and api/config.py for all available settings.
"""

from __future__ import annotations

import logging
import sys

import json_log_formatter
import uvicorn

from .api import create_app
from .api.config import Settings
from .config import AppConfig

logger = logging.getLogger(__name__)


def setup_logging(config: AppConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Application configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main() -> None:
    """Main entry point."""
    try:
        config = AppConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)
    config.log_config()

    settings = Settings()
    app = create_app(config, settings=settings)

    logger.info(f"OmniDash API listening on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
