"""
Extraction Pipeline - Drives loader and extractor over a batch of files.

Files are processed strictly in input order and each file's units strictly in
page order, one request at a time. Records are appended to the run as each
unit finishes. The first error aborts the run unless the failure policy
allows the unit to be skipped.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from rosterscan.config.errors import (
    ErrorCode,
    ExtractionServiceError,
    PipelineBusyError,
    RosterScanError,
    ValidationError,
)

from .models import (
    FailurePolicy,
    PipelineRun,
    ProcessingStatus,
    RunFailure,
    RunState,
    RunSummary,
    UnitWarning,
)

if TYPE_CHECKING:
    from rosterscan.domains.extraction import ExtractedRecord, Extractor
    from rosterscan.domains.ingestion import ExtractionUnit, Loader, SourceFile

    from .contracts import PipelineListener

logger = logging.getLogger(__name__)

__all__ = ["ExtractionPipeline", "find_duplicate_names"]

# Never skipped: the same credential would fail every following unit
DEGRADABLE_CODES = frozenset(
    {ErrorCode.RATE_LIMITED, ErrorCode.SERVICE_UNAVAILABLE, ErrorCode.UNKNOWN}
)


def find_duplicate_names(records: Sequence[ExtractedRecord]) -> list[str]:
    """
    Names that occur more than once, compared after trimming.

    Empty names are ignored. Order follows first appearance.
    """
    counts = Counter(name for name in (r.name.strip() for r in records) if name)
    return [name for name, count in counts.items() if count > 1]


class _NullListener:
    def on_status(self, status: ProcessingStatus) -> None:
        pass

    def on_records(self, unit: ExtractionUnit, records: list[ExtractedRecord]) -> None:
        pass

    def on_completed(self, run: PipelineRun) -> None:
        pass

    def on_failed(self, run: PipelineRun) -> None:
        pass


class ExtractionPipeline:
    """
    Sequential document-to-records pipeline.

    Example:
        >>> pipeline = ExtractionPipeline(DocumentLoader(), RosterExtractor(client))
        >>> run = await pipeline.run([SourceFile.from_path("roster.pdf")])
        >>> print(run.state, len(run.records), run.duplicate_names)
    """

    def __init__(
        self,
        loader: Loader,
        extractor: Extractor,
        policy: FailurePolicy = FailurePolicy.ABORT,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            loader: Document loader
            extractor: Record extractor
            policy: Whether transient unit errors abort the run
        """
        self._loader = loader
        self._extractor = extractor
        self.policy = policy
        self._active = False

    @property
    def is_running(self) -> bool:
        return self._active

    async def run(
        self,
        files: Sequence[SourceFile],
        listener: PipelineListener | None = None,
        run: PipelineRun | None = None,
    ) -> PipelineRun:
        """
        Process a batch of files.

        Args:
            files: Input documents, processed in order
            listener: Optional observer of progress and records
            run: Fresh run context to fill; created if None

        Returns:
            The run in a terminal state (COMPLETED or FAILED)

        Raises:
            PipelineBusyError: Another run is active
            ValidationError: The given run context was already started
        """
        if self._active:
            raise PipelineBusyError()
        if run is None:
            run = PipelineRun(files=[f.name for f in files])
        elif run.state != RunState.IDLE:
            raise ValidationError(f"Run {run.id} has already been started")

        self._active = True
        try:
            await self._execute(files, run, listener or _NullListener())
        finally:
            self._active = False
        return run

    async def _execute(
        self,
        files: Sequence[SourceFile],
        run: PipelineRun,
        listener: PipelineListener,
    ) -> None:
        start_time = time.time()
        total = len(files)
        run.state = RunState.RUNNING
        run.started_at = datetime.now()
        run.status = ProcessingStatus(total=total, current=0, filename="")
        logger.info("Run %s started: %d files, policy=%s", run.id, total, self.policy.value)

        current_file: str | None = None
        current_page: int | None = None
        try:
            self._extractor.check_credentials()

            for index, file in enumerate(files):
                current_file, current_page = file.name, None
                self._set_status(run, listener, index, file.name)

                units = await self._loader.load(file)
                logger.info("Loaded %s: %d units", file.name, len(units))

                for unit in units:
                    current_page = unit.page_number
                    records = await self._extract_unit(unit, run)
                    run.records.extend(records)
                    listener.on_records(unit, records)

                self._set_status(run, listener, index + 1, file.name)

        except RosterScanError as e:
            self._fail(run, listener, RunFailure.from_error(e, current_file, current_page))
            return
        except Exception as e:
            logger.exception("Unexpected error in run %s", run.id)
            failure = RunFailure(
                code=ErrorCode.UNKNOWN,
                message=str(e) or e.__class__.__name__,
                source_file=current_file,
                page_number=current_page,
            )
            self._fail(run, listener, failure)
            return

        run.summary = self._summarize(files, run)
        run.state = RunState.COMPLETED
        run.finished_at = datetime.now()
        if run.summary.duplicate_names:
            logger.warning(
                "Run %s: duplicate names need review: %s",
                run.id,
                ", ".join(run.summary.duplicate_names),
            )
        logger.info(
            "Run %s completed: %d records from %d files in %.1fs",
            run.id,
            len(run.records),
            total,
            time.time() - start_time,
        )
        listener.on_completed(run)

    async def _extract_unit(
        self, unit: ExtractionUnit, run: PipelineRun
    ) -> list[ExtractedRecord]:
        try:
            return await self._extractor.extract(unit)
        except ExtractionServiceError as e:
            if self.policy != FailurePolicy.DEGRADE or e.code not in DEGRADABLE_CODES:
                raise
            logger.warning(
                "Skipping %s page %d: %s",
                unit.source_file,
                unit.page_number,
                e,
            )
            run.warnings.append(
                UnitWarning(
                    source_file=unit.source_file,
                    page_number=unit.page_number,
                    code=e.code,
                    message=e.message,
                )
            )
            return []

    def _set_status(
        self,
        run: PipelineRun,
        listener: PipelineListener,
        current: int,
        filename: str,
    ) -> None:
        total = run.status.total if run.status else len(run.files)
        run.status = ProcessingStatus(total=total, current=current, filename=filename)
        listener.on_status(run.status.model_copy())

    def _fail(
        self,
        run: PipelineRun,
        listener: PipelineListener,
        failure: RunFailure,
    ) -> None:
        run.failure = failure
        run.state = RunState.FAILED
        run.finished_at = datetime.now()
        logger.error(
            "Run %s failed at %s page %s: [%s] %s (%d records kept)",
            run.id,
            failure.source_file or "-",
            failure.page_number or "-",
            failure.code.value,
            failure.message,
            len(run.records),
        )
        listener.on_failed(run)

    def _summarize(self, files: Sequence[SourceFile], run: PipelineRun) -> RunSummary:
        per_file: dict[str, int] = {f.name: 0 for f in files}
        for record in run.records:
            per_file[record.source_file] = per_file.get(record.source_file, 0) + 1
        return RunSummary(
            record_count=len(run.records),
            file_count=len(files),
            records_per_file=per_file,
            duplicate_names=find_duplicate_names(run.records),
            skipped_units=len(run.warnings),
        )
