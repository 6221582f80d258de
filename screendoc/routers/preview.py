"""
Preview router - start/stop the per-entry preview servers.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from screendoc.core.exceptions import PreviewError
from screendoc.db.session import get_db
from screendoc.deps import ServiceContainer, get_services
from screendoc.schemas.preview import ServeResponse, ServerInfo, ServersResponse, StopResponse
from screendoc.services.history_store import HistoryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["preview"])


@router.post("/serve/{entry_id}", response_model=ServeResponse)
async def serve_entry(
    entry_id: str,
    services: ServiceContainer = Depends(get_services),
    db: Session = Depends(get_db),
):
    """Serve the package of a history entry; idempotent per entry."""
    entry = HistoryStore(db).get(entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")

    package_path = Path(entry.output_path)
    if not package_path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Artifact file not found")

    try:
        server = await services.previews.start(entry_id, package_path)
    except PreviewError as e:
        logger.error(f"Error starting preview server for {entry_id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return ServeResponse(port=server.port, url=server.url)


@router.post("/stop/{entry_id}", response_model=StopResponse)
async def stop_entry(entry_id: str, services: ServiceContainer = Depends(get_services)):
    if not await services.previews.stop(entry_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Server not found or already stopped",
        )
    return StopResponse()


@router.get("/servers", response_model=ServersResponse)
def list_servers(services: ServiceContainer = Depends(get_services)):
    return ServersResponse(
        servers={
            server.job_id: ServerInfo(port=server.port, url=server.url)
            for server in services.previews.list_servers()
        }
    )
