"""Data models for requirement name resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from packaging.utils import InvalidName, NormalizedName, canonicalize_name

from .errors import InvalidPackageName

# Validated, PEP 503 normalized package name
PackageName = NormalizedName


def parse_package_name(raw: str) -> PackageName:
    """Validate ``raw`` against the package-name grammar and normalize it.

    Raises:
        InvalidPackageName: if ``raw`` is not a valid package name.
    """
    if not isinstance(raw, str):
        raise InvalidPackageName(f"Package name must be a string, got {type(raw).__name__}")
    try:
        return canonicalize_name(raw.strip(), validate=True)
    except InvalidName as exc:
        raise InvalidPackageName(str(exc)) from exc


class Scheme(Enum):
    """URL schemes accepted for unnamed requirements."""
    FILE = "file"
    HTTP = "http"
    HTTPS = "https"
    GIT_SSH = "git+ssh"
    GIT_HTTPS = "git+https"

    @classmethod
    def parse(cls, raw: str) -> Optional["Scheme"]:
        """Return the matching scheme, or None when unsupported."""
        try:
            return cls(raw.lower())
        except ValueError:
            return None


class SourceKind(Enum):
    """Classification of a locator, used to pick strategies and build inputs."""
    PATH = "path"
    DIRECT = "direct"
    GIT = "git"


@dataclass(frozen=True)
class SourceUrl:
    """A classified source handed to the metadata builder."""
    kind: SourceKind
    url: str
    path: Optional[Path] = None  # only set for SourceKind.PATH


@dataclass
class Requirement:
    """A named requirement.

    Used both for already-named inputs and for resolved output. Resolved
    requirements are pinned to their locator via ``url`` and never carry a
    version ``specifier``.
    """
    name: PackageName
    extras: List[str] = field(default_factory=list)
    url: Optional[str] = None
    specifier: Optional[str] = None
    marker: Optional[str] = None

    def __str__(self) -> str:
        text = str(self.name)
        if self.extras:
            text += "[" + ",".join(self.extras) + "]"
        if self.url:
            text += f" @ {self.url}"
        elif self.specifier:
            text += self.specifier
        if self.marker:
            text += f" ; {self.marker}"
        return text


@dataclass
class UnnamedRequirement:
    """A requirement given only as a locator (path, archive URL or VCS URL)."""
    url: str
    extras: List[str] = field(default_factory=list)
    marker: Optional[str] = None  # opaque, copied forward verbatim


# Closed set of inputs accepted by the batch resolver
RequirementEntry = Union[Requirement, UnnamedRequirement]


@dataclass
class BuildMetadata:
    """Metadata returned by the external build step; only ``name`` is consumed."""
    name: PackageName
    version: Optional[str] = None


@dataclass(frozen=True)
class StaticMetadata:
    """Name found in a static metadata file, kept for the debug trace only."""
    name: PackageName
    source_file: str
    table: Optional[str] = None
