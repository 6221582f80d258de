"""
Job Progress Channel - live pipeline milestones over WebSocket.

This service maps a job id to the WebSocket connections watching it:
- attach/detach handle the connection lifecycle
- emit delivers one event to every watcher of a job, immediately
- nothing is buffered: events emitted while nobody watches are lost

A job may be watched from several connections at once (e.g. two browser
tabs); each of them receives every event.

Using in-memory storage; all mutation happens on the event loop thread.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    START = "start"
    INFO = "info"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    """One milestone of a pipeline run."""
    kind: EventKind
    stage: str
    message: str
    metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "stage": self.stage,
            "message": self.message,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


# Callback handed to the pipeline; never raises
ProgressReporter = Callable[[ProgressEvent], Awaitable[None]]


class ProgressChannel:
    """Registry of job id -> watching WebSocket connections."""

    def __init__(self):
        self._subscribers: Dict[str, List[WebSocket]] = {}

    async def attach(self, job_id: str, websocket: WebSocket) -> None:
        """Accept the connection and start delivering events of ``job_id`` to it."""
        await websocket.accept()
        self._subscribers.setdefault(job_id, []).append(websocket)
        logger.info(f"Job {job_id}: watcher attached ({len(self._subscribers[job_id])} total)")

    def detach(self, job_id: str, websocket: Optional[WebSocket] = None) -> None:
        """
        Stop delivering events of ``job_id``.

        With a websocket only that connection is removed, otherwise every
        watcher of the job is.
        """
        watchers = self._subscribers.get(job_id)
        if not watchers:
            return

        if websocket is None:
            del self._subscribers[job_id]
        else:
            remaining = [ws for ws in watchers if ws is not websocket]
            if remaining:
                self._subscribers[job_id] = remaining
            else:
                del self._subscribers[job_id]
        logger.info(f"Job {job_id}: watcher detached")

    def is_attached(self, job_id: str) -> bool:
        return bool(self._subscribers.get(job_id))

    def subscriber_count(self, job_id: str) -> int:
        return len(self._subscribers.get(job_id, ()))

    async def emit(self, job_id: Optional[str], event: ProgressEvent) -> int:
        """
        Deliver ``event`` to every watcher of ``job_id``.

        Returns:
            Number of connections the event reached (0 if nobody watches)
        """
        if not job_id or job_id not in self._subscribers:
            return 0

        payload = event.to_dict()
        delivered = 0
        for websocket in list(self._subscribers[job_id]):
            try:
                await websocket.send_json(payload)
                delivered += 1
            except Exception as e:
                # Connection is gone; drop it
                logger.warning(f"Job {job_id}: failed to deliver {event.kind.value} event: {e}")
                self.detach(job_id, websocket)
        return delivered

    def reporter(self, job_id: Optional[str]) -> Optional[ProgressReporter]:
        """Bind ``emit`` to one job, for handing to the pipeline."""
        if not job_id:
            return None

        async def report(event: ProgressEvent) -> None:
            await self.emit(job_id, event)

        return report
