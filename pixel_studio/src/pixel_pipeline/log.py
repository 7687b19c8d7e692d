"""
Pixel Studio logging.
Centralized loguru configuration for the CLI and the API.
"""
from __future__ import annotations

import sys

from loguru import logger

from .config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default handler with a single stderr sink."""
    global _configured
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level or config.LOG_LEVEL)
    _configured = True


def get_logger():
    """Get the configured logger, configuring it on first use."""
    if not _configured:
        configure_logging()
    return logger
