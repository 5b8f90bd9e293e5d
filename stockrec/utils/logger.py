"""Logging configuration for stockrec."""

import logging
import sys
from typing import Optional

from stockrec import config


def setup_logger(name: str = "stockrec", level: Optional[str] = None) -> logging.Logger:
    """Create and configure a logger.

    ``level`` defaults to ``config.LOG_LEVEL`` (``STOCKREC_LOG_LEVEL`` or
    ``app.log_level`` in settings.yaml).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-20s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    level = level or config.LOG_LEVEL
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    return logger
