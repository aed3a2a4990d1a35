"""
Guarded expense entry.

Adding an expense goes through the pre-insertion duplicate check: a record
that scores as a duplicate of an active expense, of one deleted in the last
few days, or of one recently removed by duplicate cleanup is refused unless
the caller forces it. Accepted records get timestamps, move the wallet
balance and flag a local change.

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional

import pydantic

from pocketsync.duplicates.cleanup import PreAddCheck, check_before_add
from pocketsync.duplicates.ledger import CleanedDuplicateLedger
from pocketsync.errors import ValidationError
from pocketsync.model.records import EntityType, Transaction, Wallet
from pocketsync.storage.local_store import utc_now
from pocketsync.storage.record_store import RecordStore, StoreSet

logger = logging.getLogger(__name__)


async def apply_to_wallet(
    wallets: RecordStore,
    wallet_id: Optional[str],
    amount: Decimal,
    is_income: bool,
    now: datetime,
) -> Optional[Wallet]:
    """Move a wallet balance by one transaction; unknown wallets are ignored."""
    if not wallet_id:
        return None
    existing = await wallets.get_by_id(wallet_id)
    if existing is None:
        logger.warning("Wallet %s not found; balance not adjusted", wallet_id)
        return None
    wallet = Wallet.from_record(existing)
    if wallet.is_deleted:
        return None
    updated = wallet.apply(amount, is_income).model_copy(update={"updated_at": now, "last_modified": now})
    await wallets.update(updated.to_record())
    return updated


@dataclass
class AddExpenseResult:
    added: bool
    transaction: Transaction
    check: PreAddCheck

    @property
    def message(self) -> str:
        if self.added:
            return f"Added expense {self.transaction.id}."
        if self.check.ledger_matches:
            return "An identical transaction was removed as a duplicate recently; use --force to add it anyway."
        if self.check.deleted_duplicates:
            return "A matching transaction was deleted recently; use --force to add it anyway."
        return "This looks like a duplicate of an existing transaction; use --force to add it anyway."


class ExpenseService:
    """Adds expenses to the local store behind the duplicate guard."""

    def __init__(
        self,
        stores: StoreSet,
        ledger: CleanedDuplicateLedger,
        on_change: Optional[Callable[[], None]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.expenses = stores[EntityType.expenses]
        self.wallets = stores[EntityType.wallets]
        self.ledger = ledger
        self.on_change = on_change
        self.clock = clock

    async def check(self, transaction: Transaction) -> PreAddCheck:
        records = await self.expenses.get_all_including_deleted()
        known = [Transaction.from_record(r) for r in records]
        return check_before_add(
            transaction,
            existing=[t for t in known if not t.is_deleted],
            recently_deleted=[t for t in known if t.is_deleted],
            ledger=self.ledger,
            now=self.clock(),
        )

    async def add_expense(self, record: dict[str, Any], force: bool = False) -> AddExpenseResult:
        now = self.clock()
        data = dict(record)
        data.setdefault("id", uuid.uuid4().hex)
        try:
            transaction = Transaction.from_record(data)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid expense: {exc.error_count()} problems") from exc

        check = await self.check(transaction)
        if check.blocks_insert and not force:
            logger.info("Refused expense %s: %d duplicates", transaction.id, len(check.duplicates))
            return AddExpenseResult(added=False, transaction=transaction, check=check)

        transaction = transaction.model_copy(
            update={
                "created_at": transaction.created_at or now,
                "updated_at": now,
                "last_modified": now,
            }
        )
        await self.expenses.add(transaction.to_record())
        await apply_to_wallet(self.wallets, transaction.wallet_id, transaction.amount, transaction.is_income, now)
        if self.on_change is not None:
            self.on_change()
        return AddExpenseResult(added=True, transaction=transaction, check=check)


__all__ = ["ExpenseService", "AddExpenseResult", "apply_to_wallet"]
