"""
Record store contract shared by the local and remote adapters.

Every entity type gets one store. Records are plain JSON-compatible dicts; the
local adapter speaks the local (camelCase) shape and the remote adapter the
remote (snake_case) shape. `scope_id` identifies the signed-in user: the
remote adapter requires it, the local adapter ignores it.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from pocketsync.model.records import EntityType

StoreRecord = dict[str, Any]


@runtime_checkable
class RecordStore(Protocol):
    entity_type: EntityType

    async def get_all(self, scope_id: Optional[str] = None) -> list[StoreRecord]:
        """Active records only."""
        ...

    async def get_all_including_deleted(self, scope_id: Optional[str] = None) -> list[StoreRecord]:
        ...

    async def get_by_id(self, record_id: str, scope_id: Optional[str] = None) -> Optional[StoreRecord]:
        ...

    async def add(self, record: StoreRecord, scope_id: Optional[str] = None) -> StoreRecord:
        """Insert; raises RecordConflictError when the id already exists."""
        ...

    async def update(self, record: StoreRecord, scope_id: Optional[str] = None) -> StoreRecord:
        """Replace; raises RecordNotFoundError when the id is unknown."""
        ...

    async def delete(self, record_id: str, scope_id: Optional[str] = None) -> str:
        ...


StoreSet = dict[EntityType, RecordStore]


def record_id(record: StoreRecord) -> str:
    """Normalized id of a store record (ids may arrive as numbers)."""
    value = record.get("id")
    if value is None or value == "":
        raise ValueError("record has no id")
    return str(value)


__all__ = ["RecordStore", "StoreRecord", "StoreSet", "record_id"]
