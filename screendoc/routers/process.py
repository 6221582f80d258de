"""
Process router - runs a documentation job for an uploaded screenshot.

The upload is stored under UPLOAD_DIR for the duration of the job and
removed afterwards whatever the outcome. Progress events go to the
watchers of ``job_id`` (see routers/progress.py) when one is given.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from screendoc.ai.pipeline import PipelineState
from screendoc.core.exceptions import InvalidScreenshotError
from screendoc.db.session import get_db
from screendoc.deps import ServiceContainer, get_services
from screendoc.schemas.history import HistoryEntryOut
from screendoc.schemas.process import ProcessFailure, ProcessResponse
from screendoc.services.history_store import HistoryStore
from screendoc.services.image_loader import PathSource
from screendoc.services.progress_channel import EventKind, ProgressEvent

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/api", tags=["process"])


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------

def _store_upload(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def _notify(services: ServiceContainer, job_id: Optional[str], kind: EventKind, message: str, **metadata) -> None:
    await services.progress.emit(job_id, ProgressEvent(kind, "server", message, metadata or None))


# ---------------------------------------------------------------------------
# ENDPOINTS
# ---------------------------------------------------------------------------

@router.post(
    "/process",
    response_model=ProcessResponse,
    responses={422: {"model": ProcessFailure}, 500: {"model": ProcessFailure}},
)
async def process_screenshot(
    screenshot: Optional[UploadFile] = File(None),
    app_name: str = Form(""),
    description: str = Form(""),
    vendor: Optional[str] = Form(None),
    links: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    job_id: Optional[str] = Form(None),
    services: ServiceContainer = Depends(get_services),
    db: Session = Depends(get_db),
):
    """
    Generate an interactive guide for one screenshot.

    Responses:
    - 200: package written, history entry returned
    - 400: no upload, no app name or unusable image
    - 422: package generated but flagged for manual review
    - 500: a generation stage failed
    """
    if screenshot is None or not screenshot.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    if not app_name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="App name is required")

    data = await screenshot.read()
    upload_path = services.upload_dir / services.uploads.name_for(screenshot.filename)
    await asyncio.to_thread(_store_upload, upload_path, data)

    await _notify(
        services, job_id, EventKind.START, "Starting documentation generation",
        app_name=app_name, filename=screenshot.filename, size=f"{len(data) / 1024:.2f} KB",
    )

    try:
        outcome = await services.documentation.process(
            PathSource(upload_path),
            app_name=app_name.strip(),
            description=description or "User interface screenshot",
            vendor=vendor,
            links=links,
            notes=notes,
            progress=services.progress.reporter(job_id),
        )
    except InvalidScreenshotError as e:
        await _notify(services, job_id, EventKind.ERROR, "Invalid screenshot", error=str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    finally:
        await asyncio.to_thread(services.diagnostics.remove_file, upload_path, "remove_upload")

    result = outcome.result
    if not outcome.deliverable:
        await _notify(services, job_id, EventKind.ERROR, "Documentation generation failed", error=result.reason)
        code = (
            status.HTTP_422_UNPROCESSABLE_ENTITY
            if result.status == PipelineState.NEEDS_REVIEW
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        failure = ProcessFailure(error=result.reason, details=result.to_dict())
        return JSONResponse(status_code=code, content=failure.model_dump())

    entry = HistoryStore(db).add(
        app_name=outcome.context.app_name,
        description=outcome.context.description,
        vendor=outcome.context.vendor,
        original_filename=screenshot.filename,
        output_path=str(outcome.output_path),
        output_filename=outcome.output_filename,
        run_metadata=result.metadata(),
        validation=result.validation.to_dict() if result.validation else None,
        cost_estimate=outcome.cost_estimate,
    )

    score = result.validation.overall_score if result.validation else None
    await _notify(
        services, job_id, EventKind.COMPLETE, "Documentation generated successfully",
        processing_time=f"{result.processing_time_ms / 1000:.1f}s",
        validation_score=f"{score}/100",
        estimated_cost=f"${outcome.cost_estimate:.4f}",
    )

    return ProcessResponse(message=result.reason, entry=HistoryEntryOut.model_validate(entry))
