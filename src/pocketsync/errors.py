"""
Error taxonomy for pocketsync.

Precondition errors (OfflineError, UnauthenticatedError, SyncInProgressError,
ValidationError) are raised before any store is touched. StoreError and its
subclasses come from the record store adapters. ItemError describes a single
record failing inside a batch; batches capture it into their stats instead of
letting it escape.
"""
from __future__ import annotations

from typing import Optional


class PocketSyncError(Exception):
    """Base class for all pocketsync errors."""


class OfflineError(PocketSyncError):
    def __init__(self, message: str = "Cannot sync while offline. Please check your internet connection."):
        super().__init__(message)


class UnauthenticatedError(PocketSyncError):
    def __init__(self, message: str = "User not authenticated. Please sign in to sync with the cloud."):
        super().__init__(message)


class SyncInProgressError(PocketSyncError):
    def __init__(self, message: str = "A sync operation is already in progress."):
        super().__init__(message)


class ValidationError(PocketSyncError):
    """Malformed import envelope or record."""


class StoreError(PocketSyncError):
    """Underlying read/write failure in a record store."""


class RecordConflictError(StoreError):
    """A record with the same id already exists."""

    def __init__(self, entity_type: str, record_id: str):
        self.entity_type = entity_type
        self.record_id = record_id
        super().__init__(f"{entity_type} record {record_id} already exists")


class RecordNotFoundError(StoreError):
    def __init__(self, entity_type: str, record_id: str):
        self.entity_type = entity_type
        self.record_id = record_id
        super().__init__(f"{entity_type} record {record_id} not found")


class RemoteUnavailableError(StoreError):
    """The remote store could not be reached (network, DNS, CORS-like failures)."""


class ItemError(PocketSyncError):
    """A single record failed during a batch operation."""

    def __init__(self, entity_type: str, record_id: Optional[str], cause: Exception | str):
        self.entity_type = entity_type
        self.record_id = record_id
        self.cause = cause
        super().__init__(f"{entity_type} {record_id or '<no id>'}: {cause}")


__all__ = [
    "PocketSyncError",
    "OfflineError",
    "UnauthenticatedError",
    "SyncInProgressError",
    "ValidationError",
    "StoreError",
    "RecordConflictError",
    "RecordNotFoundError",
    "RemoteUnavailableError",
    "ItemError",
]
