"""
Recurring transaction materialization.

Each due occurrence of a recurring rule becomes an ordinary expense dated on
the occurrence. Occurrences are counted from the rule's start date, so a rule
starting on the 31st lands on the last day of shorter months and returns to
the 31st afterwards.

Materialized expense ids are derived from the rule id and the occurrence
date; running twice for the same day does not create a second copy.

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from pocketsync.errors import RecordConflictError
from pocketsync.model.records import EntityType, Frequency, RecurringRule, Transaction
from pocketsync.services.expense_service import apply_to_wallet
from pocketsync.storage.local_store import utc_now
from pocketsync.storage.record_store import StoreSet

logger = logging.getLogger(__name__)

RECURRING_TAG = "recurring"

STEPS: dict[Frequency, relativedelta] = {
    Frequency.daily: relativedelta(days=1),
    Frequency.weekly: relativedelta(weeks=1),
    Frequency.biweekly: relativedelta(weeks=2),
    Frequency.monthly: relativedelta(months=1),
    Frequency.quarterly: relativedelta(months=3),
    Frequency.annually: relativedelta(years=1),
}


def occurrence(frequency: Frequency, anchor: date, index: int) -> date:
    """The index-th occurrence counted from the anchor (index 0 is the anchor)."""
    return anchor + STEPS[frequency] * index


def next_occurrence(frequency: Frequency, anchor: date, after: date) -> date:
    """First occurrence strictly after `after`."""
    index = 0
    current = anchor
    while current <= after:
        index += 1
        current = occurrence(frequency, anchor, index)
    return current


@dataclass
class Materialized:
    rule_id: str
    occurrence: date
    expense_id: str
    created: bool


@dataclass
class RecurringRunReport:
    dry_run: bool
    today: date
    materialized: list[Materialized] = field(default_factory=list)
    rules_advanced: int = 0

    @property
    def created(self) -> int:
        return sum(1 for m in self.materialized if m.created)


class RecurringService:
    """Materializes due recurring rules into the local stores."""

    def __init__(
        self,
        stores: StoreSet,
        on_change: Optional[Callable[[], None]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.rules = stores[EntityType.recurring]
        self.expenses = stores[EntityType.expenses]
        self.wallets = stores[EntityType.wallets]
        self.on_change = on_change
        self.clock = clock

    def due_dates(self, rule: RecurringRule, today: date) -> list[date]:
        dates = []
        current = rule.next_date
        while current <= today and (rule.end_date is None or current <= rule.end_date):
            dates.append(current)
            current = next_occurrence(rule.frequency, rule.start_date, current)
        return dates

    async def process_due(self, today: date, dry_run: bool = False) -> RecurringRunReport:
        report = RecurringRunReport(dry_run=dry_run, today=today)
        now = self.clock()

        for record in await self.rules.get_all():
            rule = RecurringRule.from_record(record)
            due = self.due_dates(rule, today)
            if not due:
                continue

            for when in due:
                expense = self._expense_for(rule, when, now)
                created = True
                if not dry_run:
                    created = await self._materialize(rule, expense, now)
                report.materialized.append(Materialized(rule.id, when, expense.id, created))

            following = next_occurrence(rule.frequency, rule.start_date, due[-1])
            report.rules_advanced += 1
            if not dry_run:
                advanced = rule.model_copy(update={"next_date": following, "updated_at": now, "last_modified": now})
                await self.rules.update(advanced.to_record())
            logger.info("Rule %s: %d occurrences due, next on %s", rule.id, len(due), following)

        if report.materialized and not dry_run and self.on_change is not None:
            self.on_change()
        return report

    def _expense_for(self, rule: RecurringRule, when: date, now: datetime) -> Transaction:
        tags = list(rule.tags)
        if RECURRING_TAG not in tags:
            tags.append(RECURRING_TAG)
        return Transaction(
            id=f"{rule.id}-{when.isoformat()}",
            amount=rule.amount,
            description=rule.description,
            category=rule.category,
            wallet_id=rule.wallet_id,
            date=when,
            is_income=rule.is_income,
            tags=tags,
            notes=rule.notes,
            created_at=now,
            updated_at=now,
            last_modified=now,
        )

    async def _materialize(self, rule: RecurringRule, expense: Transaction, now: datetime) -> bool:
        try:
            await self.expenses.add(expense.to_record())
        except RecordConflictError:
            logger.info("Occurrence %s already materialized", expense.id)
            return False
        await apply_to_wallet(self.wallets, rule.wallet_id, rule.amount, rule.is_income, now)
        return True


__all__ = ["RecurringService", "RecurringRunReport", "Materialized", "next_occurrence", "occurrence", "STEPS"]
