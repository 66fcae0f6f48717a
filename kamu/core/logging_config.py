"""Logging setup shared by the client runtime."""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("kamu")

_configured = False


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Configure the root handler once and return the package logger."""
    global _configured

    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root = logging.getLogger()
        root.addHandler(handler)
        _configured = True

    logging.getLogger().setLevel(level)
    logger.setLevel(level)
    # Third-party clients are chatty at INFO
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    return logger
