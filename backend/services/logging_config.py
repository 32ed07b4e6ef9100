"""
Logging setup for the relay.

Modules log through ``logging.getLogger(__name__)``; this configures the
handlers once at startup.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_PACKAGES = ("main", "routers", "services")


def setup_logging(
    level: str | int = "INFO",
    format: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure the relay loggers.

    Args:
        level: Log level name or number
        format: Custom log format string
        stream: Output stream (defaults to stderr)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if format is None:
        format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(format))

    for name in _PACKAGES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.propagate = False
