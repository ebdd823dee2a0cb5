"""Errors raised while attaching names to unnamed requirements."""

from __future__ import annotations

from typing import Optional


class NameResolutionError(Exception):
    """Base class for fatal name-resolution failures."""


class InvalidPackageName(ValueError):
    """Raised when a string does not satisfy the package-name grammar."""


class MalformedFilenameError(NameResolutionError):
    """A ``.whl`` filename that does not follow the wheel naming convention."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Invalid wheel filename '{filename}': {reason}")


class UnsupportedSchemeError(NameResolutionError):
    """The locator uses a scheme no strategy can handle."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Unsupported scheme for unnamed requirement: {url}")


class SourceBuildError(NameResolutionError):
    """The external build step failed to produce metadata."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        self.url = url
        self.cause = cause
        message = f"Failed to build source distribution: {url}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message)
