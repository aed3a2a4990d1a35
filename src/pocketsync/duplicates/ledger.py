"""
Cleaned-duplicate ledger.

A suppression list of transaction ids removed as duplicates, so that no
later download, import or upload brings them back. Stored as one JSON blob
mapping id -> {cleanedAt, reason, fingerprint}, independent of the record
stores. Entries expire after the retention window: they are pruned whenever
the ledger is written and ignored when read after expiry.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from pocketsync.config import CLEANUP_RETENTION_DAYS

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CleanedDuplicateEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cleaned_at: datetime = Field(alias="cleanedAt")
    reason: str
    fingerprint: str


class CleanupStatistics(BaseModel):
    total_tracked: int
    by_reason: dict[str, int]
    oldest_cleanup: Optional[datetime] = None
    newest_cleanup: Optional[datetime] = None
    recent_cleanups: int = 0


class CleanedDuplicateLedger:
    """JSON-file ledger of recently cleaned duplicate ids."""

    def __init__(
        self,
        path: Path,
        clock: Callable[[], datetime] = utc_now,
        retention: timedelta = timedelta(days=CLEANUP_RETENTION_DAYS),
    ):
        self.path = Path(path)
        self.clock = clock
        self.retention = retention

    def _read(self) -> dict[str, CleanedDuplicateEntry]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
            return {tid: CleanedDuplicateEntry.model_validate(entry) for tid, entry in raw.items()}
        except (ValueError, AttributeError) as exc:
            # Unreadable ledger is treated as empty; the next write replaces it
            logger.warning("Ignoring unreadable cleaned-duplicate ledger %s: %s", self.path, exc)
            return {}

    def _write(self, entries: dict[str, CleanedDuplicateEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {tid: e.model_dump(mode="json", by_alias=True) for tid, e in entries.items()}
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def _is_fresh(self, entry: CleanedDuplicateEntry, now: datetime) -> bool:
        return entry.cleaned_at >= now - self.retention

    def entries(self) -> dict[str, CleanedDuplicateEntry]:
        """Unexpired entries keyed by transaction id."""
        now = self.clock()
        return {tid: e for tid, e in self._read().items() if self._is_fresh(e, now)}

    def track(self, transaction_id: str, reason: str, fingerprint: Optional[str] = None) -> CleanedDuplicateEntry:
        """Record a cleaned duplicate and prune expired entries."""
        now = self.clock()
        entry = CleanedDuplicateEntry(
            cleaned_at=now,
            reason=reason,
            fingerprint=fingerprint or f"cleanup_{transaction_id}_{int(now.timestamp() * 1000)}",
        )
        entries = {tid: e for tid, e in self._read().items() if self._is_fresh(e, now)}
        entries[str(transaction_id)] = entry
        self._write(entries)
        logger.info("Tracked cleaned duplicate %s (%s)", transaction_id, reason)
        return entry

    def is_recently_cleaned(self, transaction_id: str) -> bool:
        return str(transaction_id) in self.entries()

    def matching_fingerprint(self, fingerprint: str) -> dict[str, CleanedDuplicateEntry]:
        return {tid: e for tid, e in self.entries().items() if e.fingerprint == fingerprint}

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()

    def statistics(self) -> CleanupStatistics:
        entries = self.entries()
        now = self.clock()
        stamps = [e.cleaned_at for e in entries.values()]
        return CleanupStatistics(
            total_tracked=len(entries),
            by_reason=dict(Counter(e.reason for e in entries.values())),
            oldest_cleanup=min(stamps) if stamps else None,
            newest_cleanup=max(stamps) if stamps else None,
            recent_cleanups=sum(1 for s in stamps if s > now - timedelta(days=1)),
        )


__all__ = ["CleanedDuplicateLedger", "CleanedDuplicateEntry", "CleanupStatistics"]
