"""Logging helpers with color output to stderr."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from colorlog import ColoredFormatter

ROOT_LOGGER_NAME = "catclip"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a colored stderr handler to the package logger (idempotent)."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            ColoredFormatter("%(log_color)s[%(levelname)s] %(name)s: %(message)s")
        )
        logger.addHandler(handler)
    else:
        # follow a replaced sys.stderr on repeated CLI runs in one process
        for handler in logger.handlers:
            if isinstance(handler, logging.StreamHandler):
                handler.setStream(sys.stderr)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the package namespace.

    Handlers are only attached by ``configure_logging``; library use without a
    front end stays silent apart from the root logger's own configuration.
    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
