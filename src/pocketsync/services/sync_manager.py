"""
Manual sync orchestrator - user-triggered movement of data between stores.

Nothing here runs on its own: every upload, download, export and import is
started explicitly by the caller. Entity types are processed one at a time in
dependency order (parents before children), and items within a type one at a
time.

Failure semantics:
- Preconditions (offline, signed out, already running, malformed import) raise
  before any store is touched.
- A single record failing is captured in that type's stats and the batch
  continues.
- Losing the remote (network or auth) aborts the rest of the operation. Types
  already written stay written; the result reports success=False with the
  partial stats. Re-running is safe because every write is an upsert.
- Any other exception escaping an operation (a local purge failing, say) ends
  the run the same way.

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pocketsync.config import EXPORT_TYPE, EXPORT_VERSION, LARGE_DATASET_THRESHOLD, STALE_SYNC_DAYS
from pocketsync.duplicates.ledger import CleanedDuplicateLedger
from pocketsync.errors import (
    ItemError,
    OfflineError,
    RecordConflictError,
    RemoteUnavailableError,
    StoreError,
    SyncInProgressError,
    UnauthenticatedError,
    ValidationError,
)
from pocketsync.model.records import SYNC_ORDER, EntityType
from pocketsync.model.sync_status import SyncOutcome, SyncState, SyncStatus, SyncStatusCache
from pocketsync.model.transcoder import to_local, to_remote
from pocketsync.services.session import ConnectivityObserver, Session, SessionExitHook, StaticConnectivity
from pocketsync.storage.local_store import LocalDatabase, utc_now
from pocketsync.storage.record_store import StoreRecord, StoreSet, record_id

logger = logging.getLogger(__name__)

# Errors that end the whole operation instead of a single item
ABORTING_ERRORS = (RemoteUnavailableError, UnauthenticatedError)

EXPORT_ORDER: tuple[EntityType, ...] = (
    EntityType.expenses,
    EntityType.categories,
    EntityType.wallets,
    EntityType.transfers,
    EntityType.tags,
    EntityType.budgets,
    EntityType.recurring,
)

UNSYNCED_EXIT_WARNING = "You have unsaved changes. Consider backing up your data before leaving."


@dataclass
class TypeStats:
    """Per-entity-type counters for one operation.

    `succeeded` counts records uploaded, downloaded or imported depending on
    the operation.
    """

    total: int = 0
    succeeded: int = 0
    errors: int = 0
    skipped: int = 0
    failures: list[str] = field(default_factory=list)


@dataclass
class SyncResult:
    success: bool
    operation: str
    stats: dict[str, TypeStats] = field(default_factory=dict)
    message: str = ""
    error: Optional[str] = None

    @property
    def total_errors(self) -> int:
        return sum(s.errors for s in self.stats.values())

    @property
    def total_succeeded(self) -> int:
        return sum(s.succeeded for s in self.stats.values())


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class ExportMetadata(_CamelModel):
    total_expenses: int = 0
    total_categories: int = 0
    total_wallets: int = 0
    total_transfers: int = 0
    total_tags: int = 0
    total_budgets: int = 0
    total_recurring: int = 0
    has_local_changes: bool = False
    last_manual_sync: Optional[datetime] = None


class ExportEnvelope(_CamelModel):
    """Versioned snapshot of every local entity type."""

    version: str
    export_type: str = EXPORT_TYPE
    export_date: Optional[datetime] = None
    user_id: Optional[str] = "anonymous"
    data: dict[str, list[dict[str, Any]]]
    metadata: ExportMetadata = Field(default_factory=ExportMetadata)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def parse_envelope(payload: Union[ExportEnvelope, dict, str]) -> ExportEnvelope:
    """Validate an import payload; raises ValidationError on malformed input."""
    if isinstance(payload, ExportEnvelope):
        return payload
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Invalid backup file format: {exc}") from exc
    if not isinstance(payload, dict) or not payload.get("version") or not isinstance(payload.get("data"), dict):
        raise ValidationError("Invalid backup file format: a version and a data object are required")
    try:
        return ExportEnvelope.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid backup file format: {exc.error_count()} problems in payload") from exc


@dataclass
class DataAge:
    last_sync: datetime
    age_in_days: int
    age_in_hours: int


@dataclass
class Recommendation:
    type: str
    priority: str
    message: str
    action: str


@dataclass
class DetailedStatus:
    status: SyncStatus
    data_age: Optional[DataAge]
    storage_usage: Optional[dict[str, float]]
    recommendations: list[Recommendation]


class ManualSyncManager:
    """
    Orchestrates manual upload, download, export and import for one session.

    Usage:
        manager = ManualSyncManager(session, local_db, remote.stores(), ledger)
        result = await manager.upload_to_cloud()

    `remote` may be None when no backend is configured; export, import and
    status still work. The in-progress guard is a plain in-memory flag: it
    stops a second operation in this process, not in another process sharing
    the same data directory.
    """

    def __init__(
        self,
        session: Session,
        local: LocalDatabase,
        remote: Optional[StoreSet],
        ledger: CleanedDuplicateLedger,
        status_cache: Optional[SyncStatusCache] = None,
        connectivity: Optional[ConnectivityObserver] = None,
        exit_hook: Optional[SessionExitHook] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session = session
        self.database = local
        self.local: StoreSet = local.stores()
        self.remote = remote
        self.ledger = ledger
        self.status_cache = status_cache
        self.connectivity = connectivity or StaticConnectivity(online=remote is not None)
        self.clock = clock
        self._running = False

        # Connectivity is probed only by operations that need the remote
        self.status = status_cache.load() if status_cache else SyncStatus()
        self._refresh_counts()

        if exit_hook is not None:
            exit_hook.on_exit_attempt(self._unsynced_warning)

    # ------------------------------------------------------------------
    # Local change tracking
    # ------------------------------------------------------------------

    def mark_local_change(self) -> None:
        self.status.has_local_changes = True
        self._refresh_counts()
        self._save()

    def clear_local_changes(self) -> None:
        self.status.has_local_changes = False
        self._save()

    def sign_out(self) -> Optional[str]:
        """End the session and drop its sync status.

        Returns the unsynced-changes warning when local changes were never
        backed up; the local store itself is left alone.
        """
        self._ensure_idle()
        warning = self._unsynced_warning()
        self.session.sign_out()
        if self.status_cache is not None:
            self.status_cache.discard()
        self.status = SyncStatus()
        self._refresh_counts()
        logger.info("Signed out; cached sync status discarded")
        return warning

    def _unsynced_warning(self) -> Optional[str]:
        return UNSYNCED_EXIT_WARNING if self.status.has_local_changes else None

    # ------------------------------------------------------------------
    # Upload / download
    # ------------------------------------------------------------------

    async def upload_to_cloud(self, allow_cleaned: bool = False) -> SyncResult:
        """Copy every local record to the remote store, insert-or-update."""
        await self._require_remote("upload")
        stats = {entity.value: TypeStats() for entity in SYNC_ORDER}

        async def body() -> None:
            cleaned = self._cleaned_ids(allow_cleaned)
            for entity in SYNC_ORDER:
                await self._upload_type(entity, stats[entity.value], cleaned)

        return await self._execute("upload", stats, body, "Data uploaded to cloud successfully!", completes_sync=True)

    async def download_from_cloud(
        self,
        replace_local: bool = False,
        merge_with_local: bool = True,
        allow_cleaned: bool = False,
    ) -> SyncResult:
        """Copy every remote record into the local store.

        replace_local purges every local type before downloading and cannot be
        undone. Without it, merge_with_local updates records whose id already
        exists locally and adds the rest; merge_with_local=False purges each
        type just before writing it.
        """
        await self._require_remote("download")
        stats = {entity.value: TypeStats() for entity in SYNC_ORDER}

        async def body() -> None:
            if replace_local:
                await self._clear_all_local()
            cleaned = self._cleaned_ids(allow_cleaned)
            purge_each = not replace_local and not merge_with_local
            for entity in SYNC_ORDER:
                await self._download_type(entity, stats[entity.value], cleaned, purge_each)

        return await self._execute(
            "download", stats, body, "Data downloaded from cloud successfully!", completes_sync=True
        )

    async def _upload_type(self, entity: EntityType, stats: TypeStats, cleaned: set[str]) -> None:
        local = self.local[entity]
        remote = self.remote[entity]
        scope = self.session.user_id
        try:
            # Expense tombstones travel too so deletions reach the remote
            if entity is EntityType.expenses:
                records = await local.get_all_including_deleted()
            else:
                records = await local.get_all()
        except StoreError as exc:
            self._item_failed("upload", stats, ItemError(entity.value, None, exc))
            return

        stats.total = len(records)
        logger.info("Uploading %d %s", len(records), entity.value)
        for record in records:
            if self._suppressed(entity, record, cleaned):
                stats.skipped += 1
                continue
            try:
                payload = to_remote(entity, record)
                try:
                    await remote.add(payload, scope)
                except RecordConflictError:
                    await remote.update(payload, scope)
            except ABORTING_ERRORS:
                raise
            except Exception as exc:
                self._item_failed("upload", stats, ItemError(entity.value, record.get("id"), exc))
                continue
            stats.succeeded += 1

    async def _download_type(self, entity: EntityType, stats: TypeStats, cleaned: set[str], purge_first: bool) -> None:
        local = self.local[entity]
        remote = self.remote[entity]
        scope = self.session.user_id
        try:
            if entity is EntityType.expenses:
                rows = await remote.get_all_including_deleted(scope)
            else:
                rows = await remote.get_all(scope)
        except ABORTING_ERRORS:
            raise
        except StoreError as exc:
            self._item_failed("download", stats, ItemError(entity.value, None, exc))
            return

        stats.total = len(rows)
        logger.info("Downloading %d %s", len(rows), entity.value)
        if purge_first:
            await local.clear()

        for row in rows:
            try:
                record = to_local(entity, row)
                if self._suppressed(entity, record, cleaned):
                    stats.skipped += 1
                    continue
                if purge_first or await local.get_by_id(record_id(record)) is None:
                    await local.add(record)
                else:
                    await local.update(record)
            except Exception as exc:
                self._item_failed("download", stats, ItemError(entity.value, row.get("id"), exc))
                continue
            stats.succeeded += 1

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    async def export_local_data(self) -> ExportEnvelope:
        """Snapshot every active local record; empty stores give empty lists."""
        data: dict[str, list[StoreRecord]] = {}
        for entity in EXPORT_ORDER:
            data[entity.value] = await self.local[entity].get_all()

        totals = {f"total_{name}": len(records) for name, records in data.items()}
        return ExportEnvelope(
            version=EXPORT_VERSION,
            export_type=EXPORT_TYPE,
            export_date=self.clock(),
            user_id=self.session.user_id or "anonymous",
            data=data,
            metadata=ExportMetadata(
                **totals,
                has_local_changes=self.status.has_local_changes,
                last_manual_sync=self.status.last_manual_sync,
            ),
        )

    async def write_export(self, path: Path) -> ExportEnvelope:
        envelope = await self.export_local_data()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(envelope.to_json(), encoding="utf-8")
        logger.info("Exported %d records to %s", sum(len(v) for v in envelope.data.values()), path)
        return envelope

    async def import_local_data(
        self,
        payload: Union[ExportEnvelope, dict, str],
        replace_existing: bool = False,
        allow_cleaned: bool = False,
    ) -> SyncResult:
        """Load a backup into the local store.

        The envelope is validated before anything is written. replace_existing
        purges every local type first; otherwise each record is added, falling
        back to an update when its id already exists.
        """
        self._ensure_idle()
        try:
            envelope = parse_envelope(payload)
        except ValidationError as exc:
            self.status.record_error(str(exc), "import", self.clock())
            self._save()
            raise
        stats = {entity.value: TypeStats() for entity in SYNC_ORDER}

        async def body() -> None:
            if replace_existing:
                await self._clear_all_local()
            cleaned = self._cleaned_ids(allow_cleaned)
            for entity in SYNC_ORDER:
                await self._import_type(entity, envelope.data.get(entity.value) or [], stats[entity.value], cleaned)

        result = await self._execute("import", stats, body, "Data imported successfully!", completes_sync=False)
        self.mark_local_change()
        return result

    async def _import_type(
        self, entity: EntityType, items: list[StoreRecord], stats: TypeStats, cleaned: set[str]
    ) -> None:
        store = self.local[entity]
        stats.total = len(items)
        for item in items:
            if self._suppressed(entity, item, cleaned):
                stats.skipped += 1
                continue
            try:
                record_id(item)
                try:
                    await store.add(item)
                except RecordConflictError:
                    await store.update(item)
            except Exception as exc:
                self._item_failed("import", stats, ItemError(entity.value, item.get("id"), exc))
                continue
            stats.succeeded += 1

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_detailed_status(self) -> DetailedStatus:
        self.status.is_online = self.connectivity.is_online()
        self._refresh_counts()
        self._save()
        data_age = self._data_age()
        return DetailedStatus(
            status=self.status,
            data_age=data_age,
            storage_usage=self._storage_usage(),
            recommendations=self._recommendations(data_age),
        )

    def _data_age(self) -> Optional[DataAge]:
        last_sync = self.status.last_manual_sync
        if last_sync is None:
            return None
        age = self.clock() - last_sync
        return DataAge(
            last_sync=last_sync,
            age_in_days=age.days,
            age_in_hours=int(age.total_seconds() // 3600),
        )

    def _storage_usage(self) -> Optional[dict[str, float]]:
        try:
            return self.database.estimate_storage()
        except OSError as exc:
            logger.warning("Could not estimate storage usage: %s", exc)
            return None

    def _recommendations(self, data_age: Optional[DataAge]) -> list[Recommendation]:
        recommendations = []
        if self.status.has_local_changes:
            recommendations.append(
                Recommendation(
                    type="backup",
                    priority="medium",
                    message="You have unsaved changes. Consider backing up your data.",
                    action="export_or_upload",
                )
            )
        if data_age is not None and data_age.age_in_days > STALE_SYNC_DAYS:
            recommendations.append(
                Recommendation(
                    type="backup",
                    priority="high",
                    message=f"Your data hasn't been backed up for {data_age.age_in_days} days.",
                    action="export_or_upload",
                )
            )
        if self.status.local_data_count.get("total", 0) > LARGE_DATASET_THRESHOLD:
            recommendations.append(
                Recommendation(
                    type="performance",
                    priority="low",
                    message="You have a lot of local data. Consider periodic exports for backup.",
                    action="export",
                )
            )
        return recommendations

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_idle(self) -> None:
        if self._running:
            raise SyncInProgressError()

    async def _require_remote(self, operation: str) -> None:
        """Claim the manager, then raise before any mutation when the remote cannot be used."""
        self._ensure_idle()
        # Claimed before the probe yields so a second operation is refused
        self._running = True
        try:
            await self._check_remote(operation)
        except BaseException:
            self._running = False
            raise

    async def _check_remote(self, operation: str) -> None:
        # Probe off the event loop; it may block on the network
        self.status.is_online = await asyncio.to_thread(self.connectivity.is_online)
        try:
            if not self.status.is_online:
                raise OfflineError(f"Cannot {operation} while offline. Please check your internet connection.")
            if not self.session.is_authenticated:
                raise UnauthenticatedError(f"User not authenticated. Please sign in to {operation}.")
            if self.remote is None:
                raise StoreError("Remote store is not configured. Run `pocketsync init --remote-url ...` first.")
        except (OfflineError, UnauthenticatedError, StoreError) as exc:
            self.status.record_error(str(exc), operation, self.clock())
            self._save()
            raise

    async def _execute(
        self,
        operation: str,
        stats: dict[str, TypeStats],
        body: Callable[[], Awaitable[None]],
        success_message: str,
        completes_sync: bool,
    ) -> SyncResult:
        self._running = True
        self.status.state = SyncState.in_progress
        self._save()
        try:
            await body()
        except Exception as exc:
            # Anything escaping the body fails the run; records already written stay
            logger.error("%s aborted: %s", operation.capitalize(), exc)
            self.status.record_error(str(exc), operation, self.clock())
            self.status.last_outcome = SyncOutcome.failed
            result = SyncResult(
                success=False,
                operation=operation,
                stats=stats,
                message=f"{operation.capitalize()} stopped early; records already written were kept.",
                error=str(exc),
            )
        else:
            result = SyncResult(success=True, operation=operation, stats=stats, message=success_message)
            self.status.last_outcome = SyncOutcome.completed
            if result.total_errors:
                result.message = f"{success_message} {result.total_errors} records failed."
            elif completes_sync:
                self.status.last_manual_sync = self.clock()
                self.status.has_local_changes = False
        finally:
            self._running = False
            self.status.state = SyncState.idle
            self._refresh_counts()
            self._save()

        logger.info(
            "%s finished: %d succeeded, %d errors",
            operation.capitalize(),
            result.total_succeeded,
            result.total_errors,
        )
        return result

    async def _clear_all_local(self) -> None:
        for entity in SYNC_ORDER:
            removed = await self.local[entity].clear()
            logger.info("Cleared %d local %s", removed, entity.value)

    def _cleaned_ids(self, allow_cleaned: bool) -> set[str]:
        return set() if allow_cleaned else set(self.ledger.entries())

    @staticmethod
    def _suppressed(entity: EntityType, record: StoreRecord, cleaned: set[str]) -> bool:
        """A cleaned duplicate must not come back; tombstones always pass."""
        if entity is not EntityType.expenses or not cleaned or record.get("deletedAt"):
            return False
        return str(record.get("id")) in cleaned

    def _item_failed(self, operation: str, stats: TypeStats, error: ItemError) -> None:
        logger.warning("%s failed for %s", operation.capitalize(), error)
        stats.errors += 1
        stats.failures.append(str(error))
        self.status.record_error(str(error), operation, self.clock())

    def _refresh_counts(self) -> None:
        self.status.local_data_count = self.database.counts()

    def _save(self) -> None:
        if self.status_cache is not None:
            self.status_cache.save(self.status)


__all__ = [
    "ManualSyncManager",
    "SyncResult",
    "TypeStats",
    "ExportEnvelope",
    "ExportMetadata",
    "DetailedStatus",
    "DataAge",
    "Recommendation",
    "parse_envelope",
    "UNSYNCED_EXIT_WARNING",
]
