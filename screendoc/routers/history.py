"""
History router - finished jobs and their packages.

Endpoints:
- GET /api/history: all entries, newest first
- DELETE /api/history/{entry_id}: stop its preview, delete its package, drop it
- GET /api/download/{filename}: a package from OUTPUT_DIR
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from screendoc.db.session import get_db
from screendoc.deps import ServiceContainer, get_services
from screendoc.schemas.history import HistoryEntryOut, HistoryListResponse
from screendoc.services.history_store import HistoryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["history"])


def _history_response(store: HistoryStore) -> HistoryListResponse:
    return HistoryListResponse(
        history=[HistoryEntryOut.model_validate(entry) for entry in store.list_entries()]
    )


def resolve_download(output_dir: Path, filename: str) -> Optional[Path]:
    """Path of ``filename`` inside ``output_dir``, or None if it is not a file there."""
    root = output_dir.resolve()
    try:
        target = (root / filename).resolve()
    except (OSError, ValueError):
        return None
    if target.parent != root or not target.is_file():
        return None
    return target


@router.get("/history", response_model=HistoryListResponse)
def list_history(db: Session = Depends(get_db)):
    return _history_response(HistoryStore(db))


@router.delete("/history/{entry_id}", response_model=HistoryListResponse)
async def delete_history_entry(
    entry_id: str,
    services: ServiceContainer = Depends(get_services),
    db: Session = Depends(get_db),
):
    """
    Remove an entry. Stopping its preview server and deleting its package
    are best-effort; unknown ids are ignored.
    """
    store = HistoryStore(db)
    entry = store.get(entry_id)
    if entry is not None:
        await services.previews.stop(entry_id)
        await asyncio.to_thread(services.diagnostics.remove_file, entry.output_path, "remove_output")
        store.delete(entry_id)

    return _history_response(store)


@router.get("/download/{filename}")
async def download_package(filename: str, services: ServiceContainer = Depends(get_services)):
    path = await asyncio.to_thread(resolve_download, services.output_dir, filename)
    if path is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return FileResponse(path, filename=path.name, media_type="application/zip")
