"""Logging for the finance tracker.

Modules call ``get_logger(__name__)`` and get a child of the
``finance_tracker`` logger, which stays silent until an entry point (the API
server or the CSV report CLI) calls ``configure_logging()``.
"""

from __future__ import annotations

import logging
import os
import sys

ROOT_LOGGER_NAME = "finance_tracker"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# The Plaid client logs every HTTP exchange through urllib3
CHATTY_LOGGERS = ("plaid", "urllib3")

_root = logging.getLogger(ROOT_LOGGER_NAME)
_root.addHandler(logging.NullHandler())
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv("FINANCE_TRACKER_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(level: int | str | None = None, stream=None) -> None:
    """Send ``finance_tracker`` records to ``stream`` (stderr by default).

    ``level`` defaults to ``FINANCE_TRACKER_LOG_LEVEL``, then ``INFO``.  The
    Plaid client loggers never go below ``WARNING``.  Repeated calls are
    ignored.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    _root.handlers = [handler]
    _root.setLevel(resolved)
    _root.propagate = False

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Logger for a tracker module, e.g. ``get_logger(__name__)``."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return _root.getChild(name)
