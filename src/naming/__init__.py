"""Name resolution for requirements given only as a locator.

This package turns unnamed requirements (a local path, a direct archive URL
or a git URL) into named ones so they can be indexed by a dependency
resolver:
- filenames.py: wheel and sdist filename conventions
- locator.py: URL helpers and source classification
- static_metadata.py: PKG-INFO / pyproject.toml / setup.cfg readers
- resolver.py: per-requirement fallback chain and bounded batch resolution
- builder.py / reporter.py: boundary to the external metadata build step

Embedding applications call ``configure()`` (re-exported from
``common.config``) once at startup to load the YAML config, apply
environment overrides and set up logging before resolving.
"""

from common.config import configure

from .builder import MetadataBuilder
from .errors import (
    InvalidPackageName,
    MalformedFilenameError,
    NameResolutionError,
    SourceBuildError,
    UnsupportedSchemeError,
)
from .locator import classify_source, path_to_url
from .models import (
    BuildMetadata,
    Requirement,
    RequirementEntry,
    SourceKind,
    SourceUrl,
    UnnamedRequirement,
    parse_package_name,
)
from .reporter import LoggingReporter, Reporter
from .resolver import NamedRequirementsResolver, resolve_requirements

__all__ = [
    # Setup
    "configure",
    # Models
    "BuildMetadata",
    "Requirement",
    "RequirementEntry",
    "SourceKind",
    "SourceUrl",
    "UnnamedRequirement",
    "parse_package_name",
    # Resolution
    "NamedRequirementsResolver",
    "resolve_requirements",
    "classify_source",
    "path_to_url",
    # Build boundary
    "MetadataBuilder",
    "Reporter",
    "LoggingReporter",
    # Errors
    "NameResolutionError",
    "InvalidPackageName",
    "MalformedFilenameError",
    "SourceBuildError",
    "UnsupportedSchemeError",
]
