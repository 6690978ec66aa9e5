"""
Orchestration Models - Data types for orchestration domain.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from rosterscan.config.errors import ErrorCode, RosterScanError
from rosterscan.domains.extraction.models import ExtractedRecord


class RunState(str, Enum):
    """Lifecycle of a pipeline run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class FailurePolicy(str, Enum):
    """What an extraction error on one unit does to the run."""

    ABORT = "abort"  # stop the run on the first error
    DEGRADE = "degrade"  # transient unit errors yield zero records, run continues


class ProcessingStatus(BaseModel):
    """Progress snapshot."""

    total: int = 0  # files in the batch
    current: int = 0  # 0-based index of the file being processed; total when done
    filename: str = ""


class RunFailure(BaseModel):
    """Terminal error of a failed run."""

    code: ErrorCode
    message: str
    remedy: str = ""
    source_file: str | None = None
    page_number: int | None = None

    @classmethod
    def from_error(
        cls,
        error: RosterScanError,
        source_file: str | None = None,
        page_number: int | None = None,
    ) -> "RunFailure":
        """Build from a classified error."""
        return cls(
            code=error.code,
            message=error.message,
            remedy=error.remedy,
            source_file=source_file,
            page_number=page_number,
        )


class UnitWarning(BaseModel):
    """A unit that contributed no records because its extraction failed."""

    source_file: str
    page_number: int
    code: ErrorCode
    message: str


class RunSummary(BaseModel):
    """Classification summary of a completed run."""

    record_count: int = 0
    file_count: int = 0
    records_per_file: dict[str, int] = Field(default_factory=dict)
    duplicate_names: list[str] = Field(default_factory=list)
    skipped_units: int = 0


class PipelineRun(BaseModel):
    """
    Run context owned by the pipeline.

    Records are appended as each unit finishes, so a snapshot taken while the
    run is active shows partial results.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    files: list[str] = Field(default_factory=list)
    state: RunState = RunState.IDLE
    status: ProcessingStatus | None = None
    records: list[ExtractedRecord] = Field(default_factory=list)
    summary: RunSummary | None = None
    failure: RunFailure | None = None
    warnings: list[UnitWarning] = Field(default_factory=list)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (RunState.COMPLETED, RunState.FAILED)

    @property
    def duplicate_names(self) -> list[str]:
        """Names occurring more than once (advisory only)."""
        return self.summary.duplicate_names if self.summary else []


class SessionSnapshot(BaseModel):
    """Read-only view of the review session."""

    state: RunState = RunState.IDLE
    pending_files: list[str] = Field(default_factory=list)
    run: PipelineRun | None = None
