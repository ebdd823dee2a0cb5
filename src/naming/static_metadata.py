"""Static metadata readers for local source directories.

Readers are tried in a fixed order and the first one that yields a valid name
wins:

  1. PKG-INFO        (``Name`` header)
  2. pyproject.toml  (``[project] name``, then ``[tool.poetry] name``)
  3. setup.cfg       (``[metadata] name``)

A missing file, an unparseable file or an invalid name is never an error;
the chain just moves on to the next reader.
"""

from __future__ import annotations

import configparser
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

from packaging.metadata import parse_email

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants

from .errors import InvalidPackageName
from .models import StaticMetadata, parse_package_name

try:
    import tomllib as toml  # type: ignore
except ImportError:  # Python < 3.11
    import tomli as toml  # type: ignore

logger = logging.getLogger(__name__)

# setup.cfg values never fall back to a shared defaults section
_NO_DEFAULT_SECTION = "reqname:no-default-section"


def _valid_name(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    try:
        return parse_package_name(raw)
    except InvalidPackageName:
        return None


def read_pkg_info(directory: Path) -> Optional[StaticMetadata]:
    """Read the ``Name`` field of a legacy ``PKG-INFO`` file."""
    try:
        contents = (directory / Constants.PKG_INFO_FILE).read_bytes()
    except OSError:
        return None

    try:
        raw, _unparsed = parse_email(contents)
    except (ValueError, TypeError):
        return None

    name = _valid_name(raw.get("name"))
    if name is None:
        return None
    return StaticMetadata(name=name, source_file=Constants.PKG_INFO_FILE)


def read_pyproject(directory: Path) -> Optional[StaticMetadata]:
    """Read the project name from ``pyproject.toml``.

    The standard ``[project]`` table is checked first; ``[tool.poetry]`` is
    only consulted when the former has no usable name.
    """
    try:
        with open(directory / Constants.PYPROJECT_TOML_FILE, "rb") as fh:
            data = toml.load(fh) or {}
    except (OSError, toml.TOMLDecodeError, UnicodeDecodeError):
        return None

    project = data.get("project")
    if isinstance(project, dict):
        name = _valid_name(project.get("name"))
        if name is not None:
            return StaticMetadata(
                name=name, source_file=Constants.PYPROJECT_TOML_FILE, table="project"
            )

    tool = data.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    if isinstance(poetry, dict):
        name = _valid_name(poetry.get("name"))
        if name is not None:
            return StaticMetadata(
                name=name, source_file=Constants.PYPROJECT_TOML_FILE, table="tool.poetry"
            )

    return None


def read_setup_cfg(directory: Path) -> Optional[StaticMetadata]:
    """Read ``[metadata] name`` from a setuptools ``setup.cfg``.

    Inline ``#``/``;`` comments are stripped and nothing is inherited from a
    ``[DEFAULT]`` section.
    """
    parser = configparser.ConfigParser(
        interpolation=None,
        strict=False,
        allow_no_value=True,
        inline_comment_prefixes=("#", ";"),
        default_section=_NO_DEFAULT_SECTION,
    )
    parser.optionxform = str  # type: ignore[assignment]  # keys are case-sensitive
    try:
        read_ok = parser.read(directory / Constants.SETUP_CFG_FILE, encoding="utf-8")
    except (configparser.Error, OSError, UnicodeDecodeError):
        return None
    if not read_ok or not parser.has_section("metadata"):
        return None

    name = _valid_name(parser.get("metadata", "name", fallback=None))
    if name is None:
        return None
    return StaticMetadata(name=name, source_file=Constants.SETUP_CFG_FILE, table="metadata")


STATIC_READERS: List[Callable[[Path], Optional[StaticMetadata]]] = [
    read_pkg_info,
    read_pyproject,
    read_setup_cfg,
]


def read_static_metadata(directory: Path) -> Optional[StaticMetadata]:
    """Return the first name found by ``STATIC_READERS``, or None."""
    for reader in STATIC_READERS:
        metadata = reader(directory)
        if metadata is None:
            continue
        if is_debug_enabled(logger):
            where = metadata.source_file
            if metadata.table:
                where = f"[{metadata.table}] in {where}"
            logger.debug(
                "Found static metadata for %s in %s (%s)",
                directory, where, metadata.name,
                extra=extra_context(
                    event="static_metadata",
                    component="static_metadata",
                    outcome="found",
                    target=str(directory),
                    source_file=metadata.source_file,
                    table=metadata.table,
                ),
            )
        return metadata
    return None
