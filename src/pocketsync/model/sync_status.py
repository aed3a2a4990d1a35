from __future__ import annotations

"""
Sync status models for the manual sync workflow.

SyncStatus is process-wide state for one signed-in session. It is cached to a
JSON file so the CLI can report the last sync between runs, but it is not a
domain entity and is never uploaded.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from pocketsync.config import MAX_STATUS_ERRORS


class SyncState(str, Enum):
    idle = "idle"
    in_progress = "in_progress"


class SyncOutcome(str, Enum):
    completed = "completed"
    failed = "failed"


class SyncError(BaseModel):
    message: str
    timestamp: datetime
    operation: str


class SyncStatus(BaseModel):
    last_manual_sync: Optional[datetime] = None
    has_local_changes: bool = False
    is_online: bool = False
    state: SyncState = SyncState.idle
    last_outcome: Optional[SyncOutcome] = None
    local_data_count: dict[str, int] = Field(default_factory=dict)
    errors: list[SyncError] = Field(default_factory=list)

    @property
    def in_progress(self) -> bool:
        return self.state == SyncState.in_progress

    def record_error(self, message: str, operation: str, at: datetime) -> None:
        """Append an error, keeping only the most recent ones."""
        self.errors.append(SyncError(message=message, timestamp=at, operation=operation))
        if len(self.errors) > MAX_STATUS_ERRORS:
            del self.errors[: len(self.errors) - MAX_STATUS_ERRORS]


class SyncStatusCache:
    """JSON file cache for SyncStatus between CLI runs."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> SyncStatus:
        if not self.path.exists():
            return SyncStatus()
        status = SyncStatus.model_validate_json(self.path.read_text(encoding="utf-8"))
        # A crashed run must not leave the session locked
        status.state = SyncState.idle
        return status

    def save(self, status: SyncStatus) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(status.model_dump_json(indent=2), encoding="utf-8")

    def discard(self) -> None:
        if self.path.exists():
            self.path.unlink()


__all__ = ["SyncState", "SyncOutcome", "SyncError", "SyncStatus", "SyncStatusCache"]
