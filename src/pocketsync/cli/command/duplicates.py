from __future__ import annotations

"""
Find and remove duplicate expenses in the local store or the remote backup.

Detection is score based: amount, description similarity, date proximity,
category, wallet and creation time all add evidence; pairs scoring 65 or more
are duplicates. Within each group the most recently modified copy is kept.

Safety:
- Dry-run by default; --write deletes.
- At most --max records are deleted per run.
- Every deletion is recorded in the cleaned-duplicate ledger so that later
  downloads and imports do not bring the record back.
"""

import asyncio
from functools import partial
from typing import Optional

import httpx
from rich.table import Table

from pocketsync.config import DEFAULT_MAX_TO_DELETE
from pocketsync.duplicates.cleanup import MANUAL_CLEANUP, DuplicateCleaner, DuplicateGroup, summarize
from pocketsync.errors import PocketSyncError
from pocketsync.model.records import EntityType
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.model.transcoder import to_local
from pocketsync.workspace import Workspace

from .util import console, fmt_amount, open_runtime


def _groups_table(groups: list[DuplicateGroup]) -> Table:
    table = Table(title="Duplicate groups", show_lines=True)
    table.add_column("Group", justify="right")
    table.add_column("Action")
    table.add_column("ID", style="dim")
    table.add_column("Date")
    table.add_column("Amount", justify="right")
    table.add_column("Description")
    table.add_column("Created")
    for n, group in enumerate(groups, start=1):
        for txn in group.transactions:
            action = "[green]keep[/]" if txn.id == group.to_keep.id else "[red]delete[/]"
            created = f"{txn.created_at:%Y-%m-%d %H:%M}" if txn.created_at else ""
            table.add_row(
                str(n),
                action,
                txn.id,
                txn.date.isoformat(),
                fmt_amount(txn.amount, txn.is_income),
                txn.description[:40],
                created,
            )
    return table


def run(
    *,
    workspace: Workspace,
    settings: RemoteSettings,
    remote: bool = False,
    max_to_delete: int = DEFAULT_MAX_TO_DELETE,
    write: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Scan for duplicate expenses and optionally remove them.

    Args:
        workspace: Workspace providing data paths
        settings: Remote settings (needed with --remote)
        remote: Scan the remote backup instead of the local store
        max_to_delete: Hard cap on deletions for this run
        write: Actually delete (default: dry-run)
        transport: Override for the HTTP transport

    Returns:
        Exit code (0 = success, 1 = error)
    """
    if remote and not (settings.url and settings.user_id):
        console.print("[red]Error:[/] --remote needs a remote URL and a user id (see config/remote.yml)")
        return 1

    async def scan_and_clean():
        async with open_runtime(workspace, settings, transport=transport) as rt:
            if remote:
                store = rt.remote.stores()[EntityType.expenses]
                cleaner = DuplicateCleaner(
                    store,
                    rt.ledger,
                    scope_id=settings.user_id,
                    decode=partial(to_local, EntityType.expenses),
                )
            else:
                cleaner = DuplicateCleaner(rt.local.stores()[EntityType.expenses], rt.ledger)

            groups = await cleaner.find_duplicates()
            if not groups:
                return groups, None
            report = await cleaner.remove_duplicates(
                groups,
                dry_run=not write,
                max_to_delete=max_to_delete,
                reason=MANUAL_CLEANUP,
            )
            if report.deleted and write and not remote:
                rt.manager.mark_local_change()
            return groups, report

    where = "remote backup" if remote else "local store"
    console.print(f"[bold cyan]Scanning {where} for duplicate expenses...[/]")
    try:
        groups, report = asyncio.run(scan_and_clean())
    except PocketSyncError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    if not groups:
        console.print("[green]No duplicate transactions found.[/]")
        return 0

    console.print(_groups_table(groups))
    summary = summarize(groups)
    console.print(
        f"{summary.total_groups} groups, {summary.total_duplicates} duplicates, "
        f"largest group {summary.largest_group}"
    )

    if report.dry_run:
        console.print(f"[yellow]Dry run:[/] would delete {report.deleted} records (cap {max_to_delete}).")
        console.print("[dim]Use --write to delete them.[/dim]")
    else:
        console.print(f"[green]Deleted {report.deleted} duplicate records.[/]")

    for error in report.errors:
        console.print(f"  [red]Failed[/] {error.id}: {error.error}")
    for recommendation in report.recommendations:
        console.print(f"[yellow]Tip:[/] {recommendation}")

    return 1 if report.errors else 0
