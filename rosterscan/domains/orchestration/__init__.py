"""
Orchestration Domain - Batch pipeline and session coordination.

This domain handles:
- Sequential file/page processing with progress events
- Abort-or-degrade failure policy
- Duplicate-name advisory
- Session state (pending files, current run, reset)
"""

from .contracts import PipelineListener
from .models import (
    FailurePolicy,
    PipelineRun,
    ProcessingStatus,
    RunFailure,
    RunState,
    RunSummary,
    SessionSnapshot,
    UnitWarning,
)
from .pipeline import ExtractionPipeline, find_duplicate_names
from .session import ReviewSession

__all__ = [
    # Contracts
    "PipelineListener",
    # Models
    "FailurePolicy",
    "PipelineRun",
    "ProcessingStatus",
    "RunFailure",
    "RunState",
    "RunSummary",
    "SessionSnapshot",
    "UnitWarning",
    # Implementations
    "ExtractionPipeline",
    "ReviewSession",
    "find_duplicate_names",
]
