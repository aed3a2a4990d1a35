"""
Duplicate grouping and bounded, auditable cleanup.

Grouping is pivot based: each unprocessed transaction collects every later
unprocessed transaction that scores as its duplicate. Members are not
re-checked against each other, so a group can hold two members that would
not score as duplicates of one another. The survivor of a group is the most
recent copy (lastModified, then updatedAt, createdAt, date).

Cleanup deletes at most `max_to_delete` records, continues past individual
failures, and records every real deletion in the cleaned-duplicate ledger.
A dry run walks the same path without touching the store or the ledger.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from pocketsync.config import (
    DEFAULT_MAX_TO_DELETE,
    RECENTLY_DELETED_DAYS,
    SAFE_CLEANUP_MAX_TO_DELETE,
    SUGGESTION_THRESHOLD,
)
from pocketsync.duplicates.ledger import CleanedDuplicateEntry, CleanedDuplicateLedger
from pocketsync.duplicates.scorer import DuplicateScore, fingerprint, score_duplicate
from pocketsync.model.records import Transaction
from pocketsync.storage.record_store import RecordStore

logger = logging.getLogger(__name__)

AUTOMATIC_CLEANUP = "automatic_duplicate_cleanup"
MANUAL_CLEANUP = "manual_duplicate_cleanup"

NETWORK_ERROR_PATTERN = re.compile(r"networkerror|cors|fetch|connection|timed? ?out", re.IGNORECASE)
NETWORK_RECOMMENDATION = (
    "Troubleshoot network issues: check your connection and the remote URL, then retry the cleanup."
)
LEDGER_RECOMMENDATION = (
    "Some deleted duplicates could not be recorded in the cleaned-duplicate ledger; "
    "check that the data directory is writable, or a later download may bring them back."
)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class DuplicateGroup:
    transactions: list[Transaction]
    to_keep: Transaction
    to_delete: list[Transaction]

    @property
    def count(self) -> int:
        return len(self.transactions)

    def choose_keeper(self, transaction_id: str) -> "DuplicateGroup":
        """Return a copy of the group keeping the given member instead."""
        keeper = next((t for t in self.transactions if t.id == str(transaction_id)), None)
        if keeper is None:
            raise ValueError(f"Transaction {transaction_id} is not in this group")
        return DuplicateGroup(
            transactions=list(self.transactions),
            to_keep=keeper,
            to_delete=[t for t in self.transactions if t.id != keeper.id],
        )


def _most_recent_first(transactions: list[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda t: t.recency or _EPOCH, reverse=True)


def find_duplicates(transactions: list[Transaction]) -> list[DuplicateGroup]:
    """Group transactions that score as duplicates of a shared pivot."""
    groups: list[DuplicateGroup] = []
    processed: set[int] = set()

    for i, pivot in enumerate(transactions):
        if i in processed:
            continue
        members = [pivot]
        for j in range(i + 1, len(transactions)):
            if j in processed:
                continue
            if score_duplicate(pivot, transactions[j]).is_duplicate:
                members.append(transactions[j])
                processed.add(j)
        processed.add(i)

        if len(members) > 1:
            ordered = _most_recent_first(members)
            groups.append(DuplicateGroup(transactions=ordered, to_keep=ordered[0], to_delete=ordered[1:]))

    return groups


@dataclass
class DuplicateSummary:
    total_groups: int
    total_duplicates: int
    duplicates_by_amount: dict[str, int]
    largest_group: int


def summarize(groups: list[DuplicateGroup]) -> DuplicateSummary:
    by_amount: dict[str, int] = {}
    for group in groups:
        key = str(group.transactions[0].amount)
        by_amount[key] = by_amount.get(key, 0) + len(group.to_delete)
    return DuplicateSummary(
        total_groups=len(groups),
        total_duplicates=sum(len(g.to_delete) for g in groups),
        duplicates_by_amount=by_amount,
        largest_group=max((g.count for g in groups), default=0),
    )


@dataclass
class CleanupError:
    id: str
    error: str


@dataclass
class CleanupReport:
    dry_run: bool
    processed: int = 0
    deleted: int = 0
    deleted_ids: list[str] = field(default_factory=list)
    errors: list[CleanupError] = field(default_factory=list)
    untracked_ids: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class CleanupOutcome:
    success: bool
    message: str
    summary: Optional[DuplicateSummary] = None
    report: Optional[CleanupReport] = None
    error: Optional[str] = None


@dataclass
class ScoredMatch:
    transaction: Transaction
    score: DuplicateScore
    deleted_at: Optional[datetime] = None


@dataclass
class PreAddCheck:
    duplicates: list[ScoredMatch] = field(default_factory=list)
    suggestions: list[ScoredMatch] = field(default_factory=list)
    deleted_duplicates: list[ScoredMatch] = field(default_factory=list)
    ledger_matches: dict[str, CleanedDuplicateEntry] = field(default_factory=dict)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicates)

    @property
    def blocks_insert(self) -> bool:
        """True when inserting would duplicate or resurrect something."""
        return bool(self.duplicates or self.deleted_duplicates or self.ledger_matches)


def check_before_add(
    new: Transaction,
    existing: Iterable[Transaction],
    recently_deleted: Iterable[Transaction] = (),
    ledger: Optional[CleanedDuplicateLedger] = None,
    now: Optional[datetime] = None,
) -> PreAddCheck:
    """Pre-insertion guard against duplicates and resurrected deletions."""
    result = PreAddCheck()
    for other in existing:
        score = score_duplicate(new, other)
        if score.is_duplicate:
            result.duplicates.append(ScoredMatch(other, score))
        elif score.confidence > SUGGESTION_THRESHOLD:
            result.suggestions.append(ScoredMatch(other, score))

    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=RECENTLY_DELETED_DAYS)
    for deleted in recently_deleted:
        if deleted.deleted_at is None or deleted.deleted_at <= cutoff:
            continue
        score = score_duplicate(new, deleted)
        if score.is_duplicate:
            result.deleted_duplicates.append(ScoredMatch(deleted, score, deleted.deleted_at))

    if ledger is not None:
        result.ledger_matches = ledger.matching_fingerprint(fingerprint(new))
    return result


class DuplicateCleaner:
    """Finds and removes duplicate expenses in one store.

    Works against either the local or the remote expense store. For the
    remote one pass `scope_id` and a `decode` that maps rows to the local
    record shape (see pocketsync.model.transcoder.to_local).
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: CleanedDuplicateLedger,
        scope_id: Optional[str] = None,
        decode: Optional[Callable[[dict], dict]] = None,
    ):
        self.store = store
        self.ledger = ledger
        self.scope_id = scope_id
        self.decode = decode

    async def load_active(self) -> list[Transaction]:
        records = await self.store.get_all_including_deleted(self.scope_id)
        if self.decode is not None:
            records = [self.decode(r) for r in records]
        transactions = [Transaction.from_record(r) for r in records]
        return [t for t in transactions if not t.is_deleted]

    async def find_duplicates(self) -> list[DuplicateGroup]:
        return find_duplicates(await self.load_active())

    async def remove_duplicates(
        self,
        groups: list[DuplicateGroup],
        dry_run: bool = False,
        max_to_delete: int = DEFAULT_MAX_TO_DELETE,
        reason: str = AUTOMATIC_CLEANUP,
    ) -> CleanupReport:
        report = CleanupReport(dry_run=dry_run)

        for group in groups:
            if report.deleted >= max_to_delete:
                break
            report.processed += 1

            for duplicate in group.to_delete:
                if report.deleted >= max_to_delete:
                    break
                try:
                    if not dry_run:
                        await self.store.delete(duplicate.id, self.scope_id)
                except Exception as exc:
                    logger.warning("Failed to delete duplicate %s: %s", duplicate.id, exc)
                    report.errors.append(CleanupError(id=duplicate.id, error=str(exc)))
                    continue
                if not dry_run:
                    try:
                        self.ledger.track(duplicate.id, reason, fingerprint(duplicate))
                    except (OSError, ValueError) as exc:
                        logger.warning("Deleted %s but could not record it in the ledger: %s", duplicate.id, exc)
                        report.untracked_ids.append(duplicate.id)
                report.deleted += 1
                report.deleted_ids.append(duplicate.id)
                logger.info(
                    "%s duplicate %s (amount %s, date %s)",
                    "Would delete" if dry_run else "Deleted",
                    duplicate.id,
                    duplicate.amount,
                    duplicate.date,
                )

        if any(NETWORK_ERROR_PATTERN.search(e.error) for e in report.errors):
            report.recommendations.append(NETWORK_RECOMMENDATION)
        if report.untracked_ids:
            report.recommendations.append(LEDGER_RECOMMENDATION)
        return report

    async def perform_safe_cleanup(
        self,
        max_to_delete: int = SAFE_CLEANUP_MAX_TO_DELETE,
        dry_run: bool = True,
        reason: str = AUTOMATIC_CLEANUP,
    ) -> CleanupOutcome:
        """Scan, summarize and remove duplicates; dry run unless told otherwise."""
        try:
            groups = await self.find_duplicates()
        except Exception as exc:
            logger.error("Duplicate scan failed: %s", exc)
            return CleanupOutcome(success=False, message="Duplicate scan failed.", error=str(exc))

        if not groups:
            return CleanupOutcome(success=True, message="No duplicate transactions found.")

        summary = summarize(groups)
        report = await self.remove_duplicates(groups, dry_run=dry_run, max_to_delete=max_to_delete, reason=reason)
        if dry_run:
            message = (
                f"Found {summary.total_duplicates} duplicates in {summary.total_groups} groups. "
                "Run with --write to delete them."
            )
        else:
            message = f"Removed {report.deleted} duplicate transactions."
            if report.errors:
                message += f" {len(report.errors)} could not be removed."
        return CleanupOutcome(success=True, message=message, summary=summary, report=report)


__all__ = [
    "AUTOMATIC_CLEANUP",
    "MANUAL_CLEANUP",
    "DuplicateGroup",
    "DuplicateSummary",
    "CleanupReport",
    "CleanupError",
    "CleanupOutcome",
    "PreAddCheck",
    "ScoredMatch",
    "DuplicateCleaner",
    "find_duplicates",
    "summarize",
    "check_before_add",
]
