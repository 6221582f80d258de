"""
Process schemas - response formats for POST /api/process.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel

from screendoc.schemas.history import HistoryEntryOut


class ProcessResponse(BaseModel):
    """
    Successful job.

    Example response:
    {
        "success": true,
        "message": "Documentation generated successfully",
        "entry": {"id": "...", "output_filename": "acme-viewer-guide-2025-01-31.zip", ...}
    }
    """
    success: bool = True
    message: str
    entry: HistoryEntryOut


class ProcessFailure(BaseModel):
    """Job that produced no deliverable package; ``details`` is the pipeline result."""
    success: bool = False
    error: str
    details: Optional[Dict[str, Any]] = None
