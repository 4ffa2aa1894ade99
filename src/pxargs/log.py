"""Logger setup for the command-line entry point."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "pxargs"
LOG_FORMAT = "%(levelname)s [%(threadName)s] %(name)s: %(message)s"


class _PxargsHandler(logging.StreamHandler):
    """Marker type so repeated setup replaces the previous handler."""


def init_logger(level: int | str = logging.WARNING) -> logging.Logger:
    """Send ``pxargs`` log records to the current standard error."""

    logger = logging.getLogger(LOGGER_NAME)

    if isinstance(level, str):
        level_value = logging.getLevelName(level.upper())
        level = level_value if isinstance(level_value, int) else logging.WARNING

    for handler in list(logger.handlers):
        if isinstance(handler, _PxargsHandler):
            logger.removeHandler(handler)

    handler = _PxargsHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


__all__ = ["init_logger"]
