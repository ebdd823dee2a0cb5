"""Attach package names to requirements that were given only as a locator.

``NamedRequirementsResolver`` takes a mix of named and unnamed requirements
and returns named requirements in the same order. Unnamed ones go through a
fallback chain, cheapest strategy first:

  1. wheel filename          (a malformed wheel filename is fatal)
  2. sdist filename          (best effort)
  3. source classification   (unsupported schemes are fatal)
  4. static metadata         (local directories only; best effort)
  5. external metadata build (failure is fatal)
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from constants import Constants

from .builder import MetadataBuilder
from .errors import SourceBuildError
from .filenames import sdist_name, wheel_name
from .locator import classify_source, has_wheel_extension, url_filename
from .models import (
    PackageName,
    Requirement,
    RequirementEntry,
    SourceKind,
    StaticMetadata,
    UnnamedRequirement,
    parse_package_name,
)
from .reporter import Reporter
from .static_metadata import read_static_metadata

logger = logging.getLogger(__name__)


def _named(requirement: UnnamedRequirement, name: PackageName) -> Requirement:
    """Pin ``name`` to the requirement's locator; extras and marker copied as-is."""
    return Requirement(
        name=name,
        extras=list(requirement.extras),
        url=requirement.url,
        specifier=None,
        marker=requirement.marker,
    )


def _read_directory(path: Path) -> Optional[StaticMetadata]:
    if not path.is_dir():
        return None
    return read_static_metadata(path)


class NamedRequirementsResolver:
    """Resolve every unnamed requirement in a list to a concrete name."""

    def __init__(
        self,
        requirements: Iterable[RequirementEntry],
        builder: MetadataBuilder,
        max_concurrency: Optional[int] = None,
    ):
        """Initialize the resolver.

        Args:
            requirements: Named and unnamed requirements, in manifest order.
            builder: Metadata builder used when no static strategy applies.
            max_concurrency: Ceiling on resolutions in flight at once.
                Defaults to ``Constants.MAX_CONCURRENCY``.
        """
        limit = Constants.MAX_CONCURRENCY if max_concurrency is None else max_concurrency
        if limit < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._requirements: List[RequirementEntry] = list(requirements)
        self._builder = builder
        self._max_concurrency = limit
        self._reporter: Optional[Reporter] = None

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def with_reporter(self, reporter: Reporter) -> "NamedRequirementsResolver":
        """Return a resolver that passes ``reporter`` to every build."""
        resolver = NamedRequirementsResolver(
            self._requirements, self._builder, self._max_concurrency
        )
        resolver._reporter = reporter  # pylint: disable=protected-access
        return resolver

    async def resolve(self) -> List[Requirement]:
        """Resolve all requirements, preserving input order.

        Already-named requirements are returned untouched. The first failure
        cancels the remaining work and propagates; no partial list is
        returned.

        Raises:
            NameResolutionError: if any unnamed requirement cannot be named.
        """
        requirements, self._requirements = self._requirements, []
        results: List[Optional[Requirement]] = [None] * len(requirements)
        pending: Dict["asyncio.Task[Requirement]", int] = {}
        unnamed_count = 0

        with Timer() as timer:
            try:
                for index, requirement in enumerate(requirements):
                    if isinstance(requirement, Requirement):
                        results[index] = requirement
                        continue
                    if not isinstance(requirement, UnnamedRequirement):
                        raise TypeError(
                            f"Unexpected requirement type: {type(requirement).__name__}"
                        )
                    while len(pending) >= self._max_concurrency:
                        await self._collect(pending, results)
                    task = asyncio.create_task(
                        self.resolve_requirement(requirement, self._builder, self._reporter)
                    )
                    pending[task] = index
                    unnamed_count += 1

                while pending:
                    await self._collect(pending, results)
            except BaseException:
                await self._cancel_all(pending)
                raise

        if unnamed_count and is_debug_enabled(logger):
            logger.debug(
                "Resolved %d unnamed requirement(s)",
                unnamed_count,
                extra=extra_context(
                    event="batch_resolved",
                    component="resolver",
                    outcome="success",
                    count=unnamed_count,
                    duration_ms=timer.duration_ms(),
                ),
            )
        return results  # type: ignore[return-value]

    @staticmethod
    async def _collect(
        pending: Dict["asyncio.Task[Requirement]", int],
        results: List[Optional[Requirement]],
    ) -> None:
        """Wait for at least one task and store its result at its input index."""
        done, _ = await asyncio.wait(list(pending), return_when=asyncio.FIRST_COMPLETED)
        finished = sorted(((pending.pop(task), task) for task in done), key=lambda item: item[0])

        failure: Optional[BaseException] = None
        for index, task in finished:
            if task.cancelled():
                failure = failure or asyncio.CancelledError()
                continue
            exc = task.exception()
            if exc is not None:
                failure = failure or exc
                continue
            results[index] = task.result()
        if failure is not None:
            raise failure

    @staticmethod
    async def _cancel_all(pending: Dict["asyncio.Task[Requirement]", int]) -> None:
        tasks = list(pending)
        pending.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @staticmethod
    async def resolve_requirement(
        requirement: UnnamedRequirement,
        builder: MetadataBuilder,
        reporter: Optional[Reporter] = None,
    ) -> Requirement:
        """Infer the package name for a single unnamed requirement.

        Raises:
            MalformedFilenameError: the locator names a malformed wheel.
            UnsupportedSchemeError: the locator scheme is not supported.
            SourceBuildError: the metadata build failed.
        """
        url = requirement.url

        # Ex) `anyio-4.3.0-py3-none-any.whl`
        if has_wheel_extension(url):
            name = wheel_name(url_filename(url))
            logger.debug("Using wheel filename for %s (%s)", safe_url(url), name)
            return _named(requirement, name)

        # Ex) `anyio-4.3.0.tar.gz`; a convention, not guaranteed to match
        try:
            name = sdist_name(url_filename(url))
        except ValueError:
            name = None
        if name is not None:
            logger.debug("Using source archive filename for %s (%s)", safe_url(url), name)
            return _named(requirement, name)

        source = classify_source(url)

        if source.kind is SourceKind.PATH and source.path is not None:
            metadata = await asyncio.to_thread(_read_directory, source.path)
            if metadata is not None:
                return _named(requirement, metadata.name)

        # Last resort: run the build backend to get authoritative metadata.
        with Timer() as timer:
            try:
                metadata = await builder.build_metadata(source, reporter=reporter)
                name = parse_package_name(metadata.name)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.debug(
                    "Metadata build failed for %s: %s",
                    safe_url(url), exc,
                    extra=extra_context(
                        event="build_metadata",
                        component="resolver",
                        outcome="error",
                        target=safe_url(url),
                        duration_ms=timer.duration_ms(),
                    ),
                )
                raise SourceBuildError(url, exc) from exc

        if is_debug_enabled(logger):
            logger.debug(
                "Built metadata for %s (%s)",
                safe_url(url), name,
                extra=extra_context(
                    event="build_metadata",
                    component="resolver",
                    outcome="success",
                    target=safe_url(url),
                    duration_ms=timer.duration_ms(),
                ),
            )
        return _named(requirement, name)


async def resolve_requirements(
    requirements: Iterable[RequirementEntry],
    builder: MetadataBuilder,
    reporter: Optional[Reporter] = None,
    max_concurrency: Optional[int] = None,
) -> List[Requirement]:
    """Convenience wrapper around ``NamedRequirementsResolver.resolve``."""
    resolver = NamedRequirementsResolver(requirements, builder, max_concurrency)
    if reporter is not None:
        resolver = resolver.with_reporter(reporter)
    return await resolver.resolve()
