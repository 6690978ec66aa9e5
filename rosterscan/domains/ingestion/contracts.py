"""
Ingestion Contracts - Interfaces for ingestion domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import ExtractionUnit, SourceFile


@runtime_checkable
class Loader(Protocol):
    """
    Contract for document loaders.

    Example:
        >>> class MyLoader:
        ...     async def load(self, file: SourceFile) -> list[ExtractionUnit]:
        ...         ...
        >>> assert isinstance(MyLoader(), Loader)
    """

    async def load(self, file: SourceFile) -> list[ExtractionUnit]:
        """
        Convert a document into extraction units.

        Args:
            file: Uploaded document

        Returns:
            Units ordered by page number ascending, 1-based

        Raises:
            DocumentUnreadableError: The document as a whole cannot be read
        """
        ...
