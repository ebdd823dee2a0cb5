"""Boundary to the external source-distribution build step.

The resolver never builds anything itself. When every static strategy has
missed, it hands a classified ``SourceUrl`` (and the shared reporter, if any)
to a ``MetadataBuilder``, which is expected to fetch the source if it is
remote, run its build backend, and return authoritative metadata. Retries,
sandboxing and process cleanup belong to the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .models import BuildMetadata, SourceUrl
from .reporter import Reporter


class MetadataBuilder(ABC):
    """Builds (or fetches) metadata for a source that has no static name."""

    @abstractmethod
    async def build_metadata(
        self, source: SourceUrl, reporter: Optional[Reporter] = None
    ) -> BuildMetadata:
        """Return metadata for ``source``.

        Args:
            source: Classified locator (path, direct URL or git URL).
            reporter: Shared progress reporter, or None.

        Raises:
            Exception: any failure; the resolver wraps it in SourceBuildError.
        """
