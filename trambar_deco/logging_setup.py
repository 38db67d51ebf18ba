"""Stderr logging bootstrap for the CLI.

Library modules only create module loggers; handlers are installed here once.
"""

from __future__ import annotations

import logging
import sys

PACKAGE_LOGGER = "trambar_deco"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_ATTR = "_trambar_deco_handler"


def configure_logging(level: str | int = "WARNING", stream=None) -> logging.Logger:
    """Attach a single stream handler to the package logger and set its level.

    Calling again only updates the level (and stream) of the existing handler.
    Unknown level names fall back to ``WARNING``.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    else:
        resolved = level

    logger = logging.getLogger(PACKAGE_LOGGER)
    handler = next((h for h in logger.handlers if getattr(h, _HANDLER_ATTR, False)), None)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
        setattr(handler, _HANDLER_ATTR, True)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    elif stream is not None:
        handler.setStream(stream)
    logger.setLevel(resolved)
    logger.propagate = False
    return logger


__all__ = ["configure_logging", "PACKAGE_LOGGER"]
