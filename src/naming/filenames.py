"""Filename conventions for wheels and source distributions.

Wheel names are parsed strictly (PEP 427 / binary distribution format) and a
malformed one is an error. Source distribution names are only a convention,
so a filename that does not fit ``{name}-{version}.{ext}`` is simply a miss.
"""

from __future__ import annotations

import logging
from typing import Optional

from packaging.utils import InvalidWheelFilename, parse_wheel_filename
from packaging.version import InvalidVersion, Version

from constants import Constants

from .errors import InvalidPackageName, MalformedFilenameError
from .models import PackageName, parse_package_name

logger = logging.getLogger(__name__)


def wheel_name(filename: str) -> PackageName:
    """Extract the distribution name from a wheel filename.

    Ex) ``anyio-4.3.0-py3-none-any.whl`` -> ``anyio``

    Raises:
        MalformedFilenameError: if the filename breaks the wheel grammar.
    """
    # .whl is matched case-insensitively by callers; packaging wants lowercase.
    ext_len = len(Constants.WHEEL_EXTENSION)
    if filename.lower().endswith(Constants.WHEEL_EXTENSION):
        filename_for_parse = filename[:-ext_len] + Constants.WHEEL_EXTENSION
    else:
        filename_for_parse = filename
    try:
        name, _version, _build, _tags = parse_wheel_filename(filename_for_parse)
    except InvalidWheelFilename as exc:
        raise MalformedFilenameError(filename, str(exc)) from exc
    return name


def _strip_sdist_extension(filename: str) -> Optional[str]:
    lower = filename.lower()
    for ext in Constants.SDIST_EXTENSIONS:
        if lower.endswith(ext):
            return filename[: -len(ext)]
    return None


def sdist_name(filename: str) -> Optional[PackageName]:
    """Best-effort name from a source archive filename.

    Ex) ``anyio-4.3.0.tar.gz`` -> ``anyio``

    Returns:
        The normalized name, or None when the filename does not follow the
        ``{name}-{version}.{ext}`` convention.
    """
    stem = _strip_sdist_extension(filename)
    if not stem:
        return None

    name_part, sep, version_part = stem.rpartition("-")
    if not sep or not name_part or not version_part:
        return None

    try:
        Version(version_part)
        return parse_package_name(name_part)
    except (InvalidVersion, InvalidPackageName):
        logger.debug("Filename %s does not follow sdist naming", filename)
        return None
