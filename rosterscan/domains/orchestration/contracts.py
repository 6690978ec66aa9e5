"""
Orchestration Contracts - Interfaces for orchestration domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from rosterscan.domains.extraction.models import ExtractedRecord
from rosterscan.domains.ingestion.models import ExtractionUnit

from .models import PipelineRun, ProcessingStatus


@runtime_checkable
class PipelineListener(Protocol):
    """
    Observer of a pipeline run.

    Events arrive in program order: a status before and after each file,
    one record batch per unit, then exactly one terminal event.
    """

    def on_status(self, status: ProcessingStatus) -> None:
        """Progress changed."""
        ...

    def on_records(self, unit: ExtractionUnit, records: list[ExtractedRecord]) -> None:
        """A unit finished extraction (records may be empty)."""
        ...

    def on_completed(self, run: PipelineRun) -> None:
        """Run finished; summary is set."""
        ...

    def on_failed(self, run: PipelineRun) -> None:
        """Run aborted; failure is set, partial records kept."""
        ...
