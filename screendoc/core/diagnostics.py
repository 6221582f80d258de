"""
Diagnostics sink for best-effort cleanup.

Deleting uploads, output archives and extracted preview directories must
never fail a request. Those operations report here instead: every attempt
is recorded, failures are logged as warnings and kept for inspection.
"""

import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger("screendoc.diagnostics")


@dataclass
class CleanupRecord:
    """One cleanup attempt and its outcome."""
    operation: str
    target: str
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def succeeded(self) -> bool:
        return self.error is None


class DiagnosticsSink:
    """Collects cleanup attempts; keeps at most ``max_records`` of them."""

    def __init__(self, max_records: int = 500):
        self._records: List[CleanupRecord] = []
        self._max_records = max_records

    def record(self, operation: str, target: Union[str, Path], error: Optional[BaseException] = None) -> CleanupRecord:
        entry = CleanupRecord(
            operation=operation,
            target=str(target),
            error=str(error) if error is not None else None,
        )
        self._records.append(entry)
        if len(self._records) > self._max_records:
            self._records = self._records[-self._max_records:]

        if error is not None:
            logger.warning(f"Cleanup failed ({operation}) for {target}: {error}")
        else:
            logger.debug(f"Cleanup done ({operation}) for {target}")
        return entry

    def remove_file(self, path: Union[str, Path], operation: str = "remove_file") -> bool:
        """Delete a file, recording the attempt. Returns True on success."""
        try:
            Path(path).unlink()
        except OSError as e:
            self.record(operation, path, e)
            return False
        self.record(operation, path)
        return True

    def remove_tree(self, path: Union[str, Path], operation: str = "remove_tree") -> bool:
        """Delete a directory tree, recording the attempt. Returns True on success."""
        try:
            shutil.rmtree(path)
        except OSError as e:
            self.record(operation, path, e)
            return False
        self.record(operation, path)
        return True

    @property
    def records(self) -> List[CleanupRecord]:
        return list(self._records)

    @property
    def failures(self) -> List[CleanupRecord]:
        return [r for r in self._records if not r.succeeded]

    def attempted(self, operation: str, target: Union[str, Path, None] = None) -> bool:
        """True if a cleanup of this kind (and target, when given) was recorded."""
        for r in self._records:
            if r.operation == operation and (target is None or r.target == str(target)):
                return True
        return False

    def clear(self) -> None:
        self._records = []
