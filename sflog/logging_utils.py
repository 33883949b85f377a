"""Utilities for configuring the library's own diagnostic logging."""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union

from .config import settings

LOGGER_NAME = "sflog"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _DiagnosticHandler(logging.StreamHandler):
    """Stream handler marker so configuration can find its own handler again."""


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = settings.log_level
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.WARNING)


def configure_logging(level: Union[int, str, None] = None, stream: Optional[TextIO] = None) -> logging.Logger:
    """Attach a single stream handler to the ``sflog`` logger hierarchy.

    Calling it again updates the level instead of adding another handler.
    """
    resolved = _resolve_level(level)
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.setLevel(resolved)

    for handler in package_logger.handlers:
        if isinstance(handler, _DiagnosticHandler):
            # Already configured for this process.
            handler.setLevel(resolved)
            return package_logger

    handler = _DiagnosticHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    return package_logger


def reset_logging() -> None:
    """Remove the handler installed by ``configure_logging``."""
    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(package_logger.handlers):
        if isinstance(handler, _DiagnosticHandler):
            package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
