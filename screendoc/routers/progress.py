"""
Progress router - live feed of pipeline milestones for one job.

Connection URL: ws://host:port/ws/jobs/<job_id>

The client picks the job id and passes the same value as ``job_id`` to
POST /api/process. Messages are ProgressEvent records:
{
    "kind": "start" | "info" | "complete" | "error",
    "stage": "analysis",
    "message": "UI Analyst working",
    "metadata": {...},
    "timestamp": "ISO-8601"
}
Anything the client sends is ignored.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from screendoc.services.progress_channel import EventKind, ProgressEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["websocket"])


@router.websocket("/jobs/{job_id}")
async def job_progress(websocket: WebSocket, job_id: str):
    channel = websocket.app.state.services.progress
    await channel.attach(job_id, websocket)

    try:
        await websocket.send_json(
            ProgressEvent(EventKind.START, "system", "Progress feed connected", {"job_id": job_id}).to_dict()
        )
        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        logger.info(f"Job {job_id}: progress feed disconnected")

    finally:
        channel.detach(job_id, websocket)
