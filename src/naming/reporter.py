"""Progress reporting for source builds triggered during name resolution.

A single reporter instance is shared by every concurrent resolution task and
invoked from the metadata builder. Implementations must tolerate concurrent
calls; the resolver never locks around them.
"""

from __future__ import annotations

import itertools
import logging
import threading
from abc import ABC, abstractmethod

from common.logging_utils import extra_context, safe_url

from .models import SourceUrl

logger = logging.getLogger(__name__)


class Reporter(ABC):
    """Receives build and checkout progress notifications."""

    @abstractmethod
    def on_build_start(self, source: SourceUrl) -> int:
        """Called when a build starts; returns an id passed back on completion."""

    @abstractmethod
    def on_build_complete(self, source: SourceUrl, build_id: int) -> None:
        """Called when the build identified by ``build_id`` finishes."""

    def on_checkout_start(self, url: str, rev: str) -> int:  # pylint: disable=unused-argument
        """Called when a VCS checkout starts. Default: no-op."""
        return 0

    def on_checkout_complete(self, url: str, rev: str, checkout_id: int) -> None:
        """Called when a VCS checkout finishes. Default: no-op."""


class LoggingReporter(Reporter):
    """Reporter that writes progress to the ``logging`` module."""

    def __init__(self, level: int = logging.INFO):
        self._level = level
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _next_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def on_build_start(self, source: SourceUrl) -> int:
        build_id = self._next_id()
        logger.log(
            self._level,
            "Building %s",
            safe_url(source.url),
            extra=extra_context(
                event="build_start", component="reporter",
                target=safe_url(source.url), build_id=build_id,
            ),
        )
        return build_id

    def on_build_complete(self, source: SourceUrl, build_id: int) -> None:
        logger.log(
            self._level,
            "Built %s",
            safe_url(source.url),
            extra=extra_context(
                event="build_complete", component="reporter", outcome="success",
                target=safe_url(source.url), build_id=build_id,
            ),
        )

    def on_checkout_start(self, url: str, rev: str) -> int:
        checkout_id = self._next_id()
        logger.log(
            self._level,
            "Updating %s (%s)",
            safe_url(url), rev,
            extra=extra_context(
                event="checkout_start", component="reporter",
                target=safe_url(url), checkout_id=checkout_id,
            ),
        )
        return checkout_id

    def on_checkout_complete(self, url: str, rev: str, checkout_id: int) -> None:
        logger.log(
            self._level,
            "Updated %s (%s)",
            safe_url(url), rev,
            extra=extra_context(
                event="checkout_complete", component="reporter", outcome="success",
                target=safe_url(url), checkout_id=checkout_id,
            ),
        )
