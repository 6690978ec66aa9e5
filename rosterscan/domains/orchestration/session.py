"""
Review Session - Pending files and the current run for one user session.

The session is the only owner of the run context; callers get deep-copied
snapshots and can never mutate the live run.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from rosterscan.config.errors import PipelineBusyError, ValidationError

from .models import PipelineRun, RunState, SessionSnapshot

if TYPE_CHECKING:
    from rosterscan.domains.extraction import ExtractedRecord
    from rosterscan.domains.ingestion import SourceFile

    from .contracts import PipelineListener
    from .pipeline import ExtractionPipeline

logger = logging.getLogger(__name__)

__all__ = ["ReviewSession"]


class ReviewSession:
    """
    Single-flight session around an ExtractionPipeline.

    Example:
        >>> session = ReviewSession(pipeline)
        >>> session.select_files([SourceFile.from_path("roster.pdf")])
        >>> await session.start()
        >>> print(session.snapshot().state)
    """

    def __init__(
        self,
        pipeline: ExtractionPipeline,
        listener: PipelineListener | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._listener = listener
        self._pending: list[SourceFile] = []
        self._run: PipelineRun | None = None
        self._busy = False

    @property
    def busy(self) -> bool:
        """True from begin() until the run reaches a terminal state."""
        return self._busy

    def select_files(self, files: Sequence[SourceFile]) -> None:
        """Replace the pending files and clear previous results."""
        self._ensure_idle()
        self._pending = list(files)
        self._run = None
        logger.info("Selected %d files", len(self._pending))

    def begin(self) -> PipelineRun:
        """
        Accept the pending batch as a new run.

        Returns:
            Snapshot of the new run (state IDLE)

        Raises:
            PipelineBusyError: A run is active
            ValidationError: No files are pending
        """
        self._ensure_idle()
        if not self._pending:
            raise ValidationError("No files selected")
        self._busy = True
        self._run = PipelineRun(files=[f.name for f in self._pending])
        return self._run.model_copy(deep=True)

    async def execute(self) -> PipelineRun:
        """
        Run the batch accepted by begin().

        Returns:
            Snapshot of the run in its terminal state
        """
        run = self._run
        if run is None or run.state != RunState.IDLE:
            raise ValidationError("No accepted run to execute; call begin() first")
        try:
            await self._pipeline.run(self._pending, listener=self._listener, run=run)
        finally:
            self._busy = False
        return run.model_copy(deep=True)

    async def start(self) -> PipelineRun:
        """Begin and execute in one call."""
        self.begin()
        return await self.execute()

    def reset(self) -> None:
        """Forget pending files and results."""
        self._ensure_idle()
        self._pending = []
        self._run = None
        logger.info("Session reset")

    def snapshot(self) -> SessionSnapshot:
        """Deep copy of the session state."""
        return SessionSnapshot(
            state=self._run.state if self._run else RunState.IDLE,
            pending_files=[f.name for f in self._pending],
            run=self._run.model_copy(deep=True) if self._run else None,
        )

    def records(self) -> list[ExtractedRecord]:
        """Copy of the records gathered so far (partial while running)."""
        if self._run is None:
            return []
        return [r.model_copy() for r in self._run.records]

    def _ensure_idle(self) -> None:
        if self._busy:
            raise PipelineBusyError()
