"""
Storage layer for pocketsync.

Record store adapters over the local SQLite database and the remote
PostgREST backend, both honouring the contract in record_store.
"""

from pocketsync.storage.local_store import LocalDatabase, LocalRecordStore
from pocketsync.storage.record_store import RecordStore, StoreRecord, StoreSet
from pocketsync.storage.remote_store import RemoteDatabase, RemoteRecordStore

__all__ = [
    "LocalDatabase",
    "LocalRecordStore",
    "RecordStore",
    "StoreRecord",
    "StoreSet",
    "RemoteDatabase",
    "RemoteRecordStore",
]
