"""
HistoryEntry model - one finished documentation job.

Entries are written when a job produces a deliverable package and are
removed explicitly by the user. The id doubles as the preview server key.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from screendoc.db.base import Base


class HistoryEntry(Base):
    __tablename__ = "history_entries"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )

    app_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    vendor: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    original_filename: Mapped[str] = mapped_column(String(255), default="")

    # output_path: archive location relative to the working directory
    output_path: Mapped[str] = mapped_column(String(500), nullable=False)
    output_filename: Mapped[str] = mapped_column(String(255), nullable=False)

    # run_metadata: workflow id, timing, token usage, complexity
    run_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    validation: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    cost_estimate: Mapped[float] = mapped_column(Float, default=0.0)

    def __repr__(self) -> str:
        return f"<HistoryEntry {self.id} {self.app_name!r}>"
