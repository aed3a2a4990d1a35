"""
Local record store implementation using SQLite.

One database file holds every entity type. Each record is kept as its JSON
document plus the few columns needed for querying (id, tombstone, ordering).

Design:
- Soft delete: `delete` stamps `deletedAt` and keeps the row; `get_all`
  skips tombstones, `get_all_including_deleted` returns them.
- `get_by_id` finds tombstones too, so a merge can update them in place.
- `clear` is the only hard delete; replace policies use it before reloading.
- Records are stored verbatim; the store never stamps timestamps itself.
- Blocking sqlite calls run in a worker thread so callers can await them.

Privacy: local-only SQLite. Nothing here touches the network.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from pocketsync.errors import RecordConflictError, RecordNotFoundError, StoreError
from pocketsync.model.records import EntityType
from pocketsync.storage.record_store import StoreRecord, StoreSet, record_id


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocalDatabase:
    """SQLite file backing every local record store.

    Usage:
        db = LocalDatabase(workspace.local_store_path)
        stores = db.stores()
        await stores[EntityType.expenses].add({...})
    """

    def __init__(self, db_path: Path, clock: Callable[[], datetime] = utc_now):
        """Initialize the database, creating the file and schema if needed.

        Args:
            db_path: Path to SQLite database file
            clock: Source of "now" used for tombstones
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.clock = clock
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open local database {self.db_path}: {exc}") from exc

    def _init_schema(self) -> None:
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    entity_type TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    deleted_at TEXT,
                    inserted_seq INTEGER NOT NULL,
                    PRIMARY KEY (entity_type, id)
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_records_active
                ON records(entity_type, deleted_at)
            """)
            conn.commit()
        finally:
            conn.close()

    def stores(self) -> StoreSet:
        return {entity: LocalRecordStore(self, entity) for entity in EntityType}

    def counts(self) -> dict[str, int]:
        """Active record count per entity type (plus `total`)."""
        conn = self._connect()
        try:
            rows = conn.execute("""
                SELECT entity_type, COUNT(*) FROM records
                WHERE deleted_at IS NULL
                GROUP BY entity_type
            """).fetchall()
        finally:
            conn.close()
        found = dict(rows)
        counts = {entity.value: int(found.get(entity.value, 0)) for entity in EntityType}
        counts["total"] = sum(counts.values())
        return counts

    def estimate_storage(self) -> dict[str, float]:
        """Bytes used by the database file and bytes still free on its disk."""
        used = self.db_path.stat().st_size if self.db_path.exists() else 0
        available = shutil.disk_usage(self.db_path.parent).free
        quota = used + available
        return {
            "used": used,
            "available": available,
            "percentage": (used / quota) * 100 if quota else 0.0,
        }

    # --- synchronous primitives, called from worker threads ---

    def _select(self, entity_type: EntityType, include_deleted: bool) -> list[StoreRecord]:
        query = "SELECT data FROM records WHERE entity_type = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        query += " ORDER BY inserted_seq"
        conn = self._connect()
        try:
            rows = conn.execute(query, (entity_type.value,)).fetchall()
        finally:
            conn.close()
        return [json.loads(data) for (data,) in rows]

    def _select_one(self, entity_type: EntityType, rid: str) -> Optional[StoreRecord]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT data FROM records WHERE entity_type = ? AND id = ?",
                (entity_type.value, rid),
            ).fetchone()
        finally:
            conn.close()
        return json.loads(row[0]) if row else None

    def _insert(self, entity_type: EntityType, record: StoreRecord) -> StoreRecord:
        rid = record_id(record)
        conn = self._connect()
        try:
            seq = conn.execute("SELECT COALESCE(MAX(inserted_seq), 0) + 1 FROM records").fetchone()[0]
            conn.execute(
                """
                INSERT INTO records (entity_type, id, data, deleted_at, inserted_seq)
                VALUES (?, ?, ?, ?, ?)
            """,
                (entity_type.value, rid, json.dumps(record), record.get("deletedAt"), seq),
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            raise RecordConflictError(entity_type.value, rid) from exc
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to add {entity_type.value} {rid}: {exc}") from exc
        finally:
            conn.close()
        return record

    def _replace(self, entity_type: EntityType, record: StoreRecord) -> StoreRecord:
        rid = record_id(record)
        conn = self._connect()
        try:
            cursor = conn.execute(
                """
                UPDATE records SET data = ?, deleted_at = ?
                WHERE entity_type = ? AND id = ?
            """,
                (json.dumps(record), record.get("deletedAt"), entity_type.value, rid),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(entity_type.value, rid)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to update {entity_type.value} {rid}: {exc}") from exc
        finally:
            conn.close()
        return record

    def _tombstone(self, entity_type: EntityType, rid: str) -> str:
        existing = self._select_one(entity_type, rid)
        if existing is None:
            raise RecordNotFoundError(entity_type.value, rid)
        now = self.clock().isoformat()
        existing["deletedAt"] = now
        existing["lastModified"] = now
        self._replace(entity_type, existing)
        return rid

    def _purge(self, entity_type: EntityType) -> int:
        conn = self._connect()
        try:
            cursor = conn.execute("DELETE FROM records WHERE entity_type = ?", (entity_type.value,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()


class LocalRecordStore:
    """Async per-entity view over a LocalDatabase. `scope_id` is ignored."""

    def __init__(self, database: LocalDatabase, entity_type: EntityType):
        self.database = database
        self.entity_type = entity_type

    async def get_all(self, scope_id: Optional[str] = None) -> list[StoreRecord]:
        return await asyncio.to_thread(self.database._select, self.entity_type, False)

    async def get_all_including_deleted(self, scope_id: Optional[str] = None) -> list[StoreRecord]:
        return await asyncio.to_thread(self.database._select, self.entity_type, True)

    async def get_by_id(self, record_id: str, scope_id: Optional[str] = None) -> Optional[StoreRecord]:
        return await asyncio.to_thread(self.database._select_one, self.entity_type, str(record_id))

    async def add(self, record: StoreRecord, scope_id: Optional[str] = None) -> StoreRecord:
        return await asyncio.to_thread(self.database._insert, self.entity_type, dict(record))

    async def update(self, record: StoreRecord, scope_id: Optional[str] = None) -> StoreRecord:
        return await asyncio.to_thread(self.database._replace, self.entity_type, dict(record))

    async def delete(self, record_id: str, scope_id: Optional[str] = None) -> str:
        return await asyncio.to_thread(self.database._tombstone, self.entity_type, str(record_id))

    async def clear(self) -> int:
        """Hard-delete every record of this type, tombstones included."""
        return await asyncio.to_thread(self.database._purge, self.entity_type)


__all__ = ["LocalDatabase", "LocalRecordStore", "utc_now"]
