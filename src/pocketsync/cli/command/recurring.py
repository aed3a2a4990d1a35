from __future__ import annotations

"""
Materialize due recurring transactions.
"""

import asyncio
from datetime import date
from typing import Optional

from rich.table import Table

from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.services.recurring_service import RecurringService
from pocketsync.workspace import Workspace

from .util import console, open_runtime


def run(
    *,
    workspace: Workspace,
    settings: RemoteSettings,
    today: Optional[date] = None,
    write: bool = False,
) -> int:
    """Create expenses for every recurring rule that has come due.

    Args:
        workspace: Workspace providing data paths
        settings: Remote settings
        today: Process rules due on or before this date (default: today)
        write: Persist the new expenses (default: dry-run)

    Returns:
        Exit code (always 0)
    """
    today = today or date.today()

    async def process():
        async with open_runtime(workspace, settings) as rt:
            service = RecurringService(rt.local.stores(), on_change=rt.manager.mark_local_change)
            return await service.process_due(today, dry_run=not write)

    report = asyncio.run(process())

    if not report.materialized:
        console.print(f"[green]No recurring transactions due on or before {today.isoformat()}.[/]")
        return 0

    table = Table(title=f"Recurring transactions due by {today.isoformat()}")
    table.add_column("Rule", style="cyan")
    table.add_column("Date")
    table.add_column("Expense ID", style="dim")
    table.add_column("Status")
    for item in report.materialized:
        if report.dry_run:
            status = "[yellow]would create[/]"
        elif item.created:
            status = "[green]created[/]"
        else:
            status = "[dim]already exists[/dim]"
        table.add_row(item.rule_id, item.occurrence.isoformat(), item.expense_id, status)
    console.print(table)

    if report.dry_run:
        console.print("[dim]Dry run. Use --write to create these transactions.[/dim]")
    else:
        console.print(f"[green]Created {report.created} transactions from {report.rules_advanced} rules.[/]")
    return 0
