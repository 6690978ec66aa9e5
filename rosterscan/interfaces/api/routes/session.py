"""
Session Routes - Upload, run, review and export.

A run is started as a background task; clients poll GET /api/session for
progress and read partial records while it is active.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from rosterscan.config import NotFoundError, Settings, ValidationError, get_settings
from rosterscan.domains.export import export_filename, to_csv, to_plain_text
from rosterscan.domains.extraction import ExtractedRecord
from rosterscan.domains.ingestion import SourceFile, is_supported_upload
from rosterscan.domains.orchestration import (
    ProcessingStatus,
    ReviewSession,
    RunFailure,
    RunState,
    RunSummary,
    UnitWarning,
)
from rosterscan.interfaces.api.deps import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionResponse(BaseModel):
    """Session state for the review screen."""

    state: RunState
    credential_status: str
    pending_files: list[str] = Field(default_factory=list)
    run_id: str | None = None
    status: ProcessingStatus | None = None
    record_count: int = 0
    duplicate_names: list[str] = Field(default_factory=list)
    summary: RunSummary | None = None
    failure: RunFailure | None = None
    warnings: list[UnitWarning] = Field(default_factory=list)


class UploadResponse(BaseModel):
    """Accepted and rejected uploads."""

    accepted: list[str]
    rejected: list[str]


class RecordsResponse(BaseModel):
    """Records gathered so far."""

    state: RunState
    records: list[ExtractedRecord]
    total: int


def _session_response(session: ReviewSession, settings: Settings) -> SessionResponse:
    snapshot = session.snapshot()
    run = snapshot.run
    return SessionResponse(
        state=snapshot.state,
        credential_status=settings.credential_status,
        pending_files=snapshot.pending_files,
        run_id=run.id if run else None,
        status=run.status if run else None,
        record_count=len(run.records) if run else 0,
        duplicate_names=run.duplicate_names if run else [],
        summary=run.summary if run else None,
        failure=run.failure if run else None,
        warnings=run.warnings if run else [],
    )


@router.get("", response_model=SessionResponse)
async def get_session_state(
    session: ReviewSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Current session state, progress and failure details."""
    return _session_response(session, settings)


@router.post("/files", response_model=UploadResponse)
async def upload_files(
    files: list[UploadFile] = File(...),
    session: ReviewSession = Depends(get_session),
):
    """
    Replace the pending batch.

    Unsupported file types are dropped; at least one PDF or Word file is
    required.
    """
    accepted: list[SourceFile] = []
    rejected: list[str] = []
    for upload in files:
        name = upload.filename or ""
        if not name or not is_supported_upload(name, upload.content_type):
            rejected.append(name)
            continue
        accepted.append(
            SourceFile(
                name=name,
                data=await upload.read(),
                content_type=upload.content_type,
            )
        )

    if not accepted:
        raise ValidationError(
            "No supported files. Upload PDF or Word files.",
            {"rejected": rejected},
        )
    if rejected:
        logger.info("Ignored unsupported uploads: %s", rejected)

    session.select_files(accepted)
    return UploadResponse(accepted=[f.name for f in accepted], rejected=rejected)


@router.post("/run", response_model=SessionResponse, status_code=202)
async def start_run(
    background_tasks: BackgroundTasks,
    session: ReviewSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Start extracting the pending batch."""
    run = session.begin()
    logger.info("Run %s accepted: %d files", run.id, len(run.files))
    background_tasks.add_task(session.execute)
    return _session_response(session, settings)


@router.get("/records", response_model=RecordsResponse)
async def list_records(session: ReviewSession = Depends(get_session)):
    """Records in display order (partial while running)."""
    records = session.records()
    return RecordsResponse(
        state=session.snapshot().state,
        records=records,
        total=len(records),
    )


@router.get("/export.csv")
async def export_csv(session: ReviewSession = Depends(get_session)):
    """Download records as UTF-8 CSV with BOM."""
    records = _exportable_records(session)
    return Response(
        content=to_csv(records).encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers=_attachment(export_filename("csv")),
    )


@router.get("/export.txt")
async def export_txt(session: ReviewSession = Depends(get_session)):
    """Download records as plain text, one line per record."""
    records = _exportable_records(session)
    return Response(
        content=to_plain_text(records).encode("utf-8"),
        media_type="text/plain; charset=utf-8",
        headers=_attachment(export_filename("txt")),
    )


@router.post("/reset", response_model=SessionResponse)
async def reset_session(
    session: ReviewSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Clear pending files and results."""
    session.reset()
    return _session_response(session, settings)


def _exportable_records(session: ReviewSession) -> list[ExtractedRecord]:
    records = session.records()
    if not records:
        raise NotFoundError("No records to export")
    return records


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}
