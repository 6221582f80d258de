"""
History store - append/list/delete of finished job summaries.

A thin layer over the HistoryEntry table. It validates nothing beyond
the id; what goes into an entry is decided by the caller.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from screendoc.models.history_entry import HistoryEntry

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Usage:
        store = HistoryStore(db)
        entry = store.add(app_name="Acme Viewer", output_path="output/x.zip", ...)
        entries = store.list_entries()
    """

    def __init__(self, db: Session):
        self.db = db

    def add(self, **fields: Any) -> HistoryEntry:
        entry = HistoryEntry(**fields)
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        logger.info(f"History entry {entry.id} added for {entry.app_name}")
        return entry

    def list_entries(self) -> List[HistoryEntry]:
        """All entries, newest first."""
        stmt = select(HistoryEntry).order_by(HistoryEntry.created_at.desc())
        return list(self.db.scalars(stmt))

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        return self.db.get(HistoryEntry, entry_id)

    def delete(self, entry_id: str) -> Optional[HistoryEntry]:
        """Remove an entry; returns it, or None if it did not exist."""
        entry = self.get(entry_id)
        if entry is None:
            return None
        self.db.delete(entry)
        self.db.commit()
        logger.info(f"History entry {entry_id} deleted")
        return entry


