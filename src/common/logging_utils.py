"""Centralized logging helpers.

Every module logs through ``logging.getLogger(__name__)``; this module owns
handler setup and the small helpers used to attach structured fields to log
records without pulling in a logging framework.
"""
from __future__ import annotations

import logging
import os
import sys
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_HANDLER_NAME = "reqname-stream"


def configure_logging(level: Optional[str] = None) -> None:
    """Install the root stream handler once and apply the log level.

    Precedence: explicit ``level`` argument, then the REQNAME_LOG_LEVEL
    environment variable, then ``Constants.LOG_LEVEL``.

    Args:
        level: Optional level name such as "DEBUG" or "info".
    """
    root = logging.getLogger()
    if not any(getattr(h, "name", None) == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)

    name = level or os.environ.get(Constants.ENV_LOG_LEVEL) or Constants.LOG_LEVEL
    root.setLevel(getattr(logging, str(name).upper(), logging.INFO))


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build the ``extra=`` mapping for a structured log record.

    ``None`` values are dropped so records only carry fields that were set.
    """
    return {key: value for key, value in fields.items() if value is not None}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def safe_url(url: Optional[str]) -> Optional[str]:
    """Strip userinfo (tokens, passwords) from a URL before logging it."""
    if not url:
        return url
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return url
    if parts.username is None and parts.password is None:
        return url
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return urllib.parse.urlunsplit(
        (parts.scheme, f"***@{host}", parts.path, parts.query, parts.fragment)
    )


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed time so far (or total, once the block has exited)."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 3)
