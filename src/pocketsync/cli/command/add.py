from __future__ import annotations

"""
Add an expense or income through the duplicate guard.
"""

import asyncio
from datetime import date
from typing import Optional

from rich.table import Table

from pocketsync.duplicates.cleanup import PreAddCheck, ScoredMatch
from pocketsync.errors import PocketSyncError
from pocketsync.model.records import Transaction
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.services.expense_service import ExpenseService
from pocketsync.workspace import Workspace

from .util import console, fmt_amount, open_runtime


def _matches_table(title: str, matches: list[ScoredMatch]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Amount", justify="right")
    table.add_column("Description")
    table.add_column("Confidence", justify="right")
    table.add_column("Reasons")
    for match in matches:
        txn = match.transaction
        table.add_row(
            txn.id,
            txn.date.isoformat(),
            fmt_amount(txn.amount, txn.is_income),
            txn.description[:40],
            f"{match.score.confidence}%",
            ", ".join(match.score.reasons),
        )
    return table


def _print_check(check: PreAddCheck) -> None:
    if check.duplicates:
        console.print(_matches_table("Possible duplicates", check.duplicates))
    if check.deleted_duplicates:
        console.print(_matches_table("Recently deleted matches", check.deleted_duplicates))
    if check.ledger_matches:
        for tid, entry in check.ledger_matches.items():
            console.print(f"[yellow]Removed as a duplicate on {entry.cleaned_at:%Y-%m-%d}:[/] {tid} ({entry.reason})")
    if check.suggestions:
        console.print(_matches_table("Similar transactions", check.suggestions))


def run(
    *,
    workspace: Workspace,
    settings: RemoteSettings,
    amount: str,
    description: str,
    on: Optional[date] = None,
    category: Optional[str] = None,
    wallet: Optional[str] = None,
    income: bool = False,
    tags: Optional[list[str]] = None,
    notes: str = "",
    force: bool = False,
    write: bool = False,
) -> int:
    """Add a transaction after checking it against existing ones.

    Args:
        workspace: Workspace providing data paths
        settings: Remote settings
        amount: Positive amount
        description: Short description
        on: Transaction date (default: today)
        category: Category id
        wallet: Wallet id whose balance moves
        income: Record as income instead of expense
        tags: Tag ids
        notes: Free-form notes
        force: Insert even when it looks like a duplicate
        write: Persist the transaction (default: dry-run)

    Returns:
        Exit code (0 = added or would be added, 1 = refused or invalid)
    """
    record = {
        "amount": amount,
        "description": description,
        "date": (on or date.today()).isoformat(),
        "category": category,
        "walletId": wallet,
        "isIncome": income,
        "tags": tags or [],
        "notes": notes,
    }

    async def add():
        async with open_runtime(workspace, settings) as rt:
            service = ExpenseService(rt.local.stores(), rt.ledger, on_change=rt.manager.mark_local_change)
            if write:
                return await service.add_expense(record, force=force)
            candidate = Transaction.from_record({"id": "new", **record})
            return await service.check(candidate)

    try:
        outcome = asyncio.run(add())
    except (PocketSyncError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    if not write:
        _print_check(outcome)
        if outcome.blocks_insert and not force:
            console.print("[yellow]Dry run:[/] this transaction would be refused; use --force to add it anyway.")
            return 1
        console.print("[yellow]Dry run:[/] transaction would be added. Use --write to save it.")
        return 0

    _print_check(outcome.check)
    if not outcome.added:
        console.print(f"[red]{outcome.message}[/]")
        return 1
    console.print(f"[green]{outcome.message}[/]")
    return 0
