"""Locator helpers: filename extraction and source classification.

Nothing in this module touches the filesystem or the network; it only looks
at the shape of the locator URL.
"""

from __future__ import annotations

import os
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Union

from constants import Constants

from .errors import UnsupportedSchemeError
from .models import Scheme, SourceKind, SourceUrl


def path_to_url(path: Union[str, os.PathLike]) -> str:
    """Turn a local path into the absolute ``file://`` locator used as input."""
    return Path(path).expanduser().resolve().as_uri()


def url_filename(url: str) -> str:
    """Return the percent-decoded last path segment of ``url``.

    Raises:
        ValueError: if the URL path has no final segment (e.g. ``https://host/``).
    """
    path = urllib.parse.urlsplit(url).path
    segment = path.rsplit("/", 1)[-1]
    if not segment:
        raise ValueError(f"URL has no filename: {url}")
    return urllib.parse.unquote(segment)


def has_wheel_extension(url: str) -> bool:
    """True when the URL path ends in ``.whl`` (any case)."""
    path = urllib.parse.urlsplit(url).path
    return os.path.splitext(path)[1].lower() == Constants.WHEEL_EXTENSION


def url_to_path(url: str) -> Path:
    """Convert a ``file://`` URL into a local path."""
    parts = urllib.parse.urlsplit(url)
    if parts.netloc and parts.netloc != "localhost":
        # UNC-style file://server/share/...
        return Path(urllib.request.url2pathname(f"//{parts.netloc}{parts.path}"))
    return Path(urllib.request.url2pathname(parts.path))


def classify_source(url: str) -> SourceUrl:
    """Map a locator onto the source kind that decides the remaining strategies.

    Args:
        url: Absolute locator URL.

    Returns:
        SourceUrl tagged PATH, DIRECT or GIT.

    Raises:
        UnsupportedSchemeError: for any scheme other than file, http, https,
            git+ssh and git+https.
    """
    scheme = Scheme.parse(urllib.parse.urlsplit(url).scheme)
    if scheme is Scheme.FILE:
        return SourceUrl(kind=SourceKind.PATH, url=url, path=url_to_path(url))
    if scheme in (Scheme.HTTP, Scheme.HTTPS):
        return SourceUrl(kind=SourceKind.DIRECT, url=url)
    if scheme in (Scheme.GIT_SSH, Scheme.GIT_HTTPS):
        return SourceUrl(kind=SourceKind.GIT, url=url)
    raise UnsupportedSchemeError(url)
