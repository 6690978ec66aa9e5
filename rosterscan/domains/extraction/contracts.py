"""
Extraction Contracts - Interfaces for extraction domain.

The extractor is the seam for swapping the extraction backend, or for a
local fake in tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from rosterscan.domains.ingestion.models import ExtractionUnit

from .models import ExtractedRecord


@runtime_checkable
class Extractor(Protocol):
    """
    Contract for record extraction implementations.

    Example:
        >>> class MyExtractor:
        ...     def check_credentials(self) -> None: ...
        ...     async def extract(self, unit: ExtractionUnit) -> list[ExtractedRecord]:
        ...         ...
        >>> assert isinstance(MyExtractor(), Extractor)
    """

    def check_credentials(self) -> None:
        """
        Verify a credential is configured before any request.

        Raises:
            AuthenticationMissingError: No usable credential
        """
        ...

    async def extract(self, unit: ExtractionUnit) -> list[ExtractedRecord]:
        """
        Extract roster records from one unit.

        Args:
            unit: Page image and/or text with file and page identifiers

        Returns:
            Records found on the unit, possibly empty

        Raises:
            ExtractionServiceError: Classified service failure
        """
        ...
