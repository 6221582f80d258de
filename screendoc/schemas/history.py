"""
History schemas - response formats for finished documentation jobs.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class HistoryEntryOut(BaseModel):
    """
    One finished job, as listed in the history.

    Built straight from the ORM object (from_attributes).
    """
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    timestamp: datetime = Field(validation_alias="created_at")
    app_name: str
    description: str
    vendor: Optional[str] = None
    original_filename: str
    output_path: str
    output_filename: str
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="run_metadata")
    validation: Optional[Dict[str, Any]] = None
    cost_estimate: float = 0.0


class HistoryListResponse(BaseModel):
    success: bool = True
    history: List[HistoryEntryOut]
