from __future__ import annotations

"""
Show or clear the cleaned-duplicate ledger.
"""

from rich.table import Table

from pocketsync.duplicates.ledger import CleanedDuplicateLedger
from pocketsync.workspace import Workspace

from .util import console


def run(*, workspace: Workspace, clear: bool = False) -> int:
    """List recently cleaned duplicates, or forget them all with --clear.

    Returns:
        Exit code (always 0)
    """
    ledger = CleanedDuplicateLedger(workspace.cleaned_duplicates_path)

    if clear:
        ledger.clear()
        console.print("[green]Cleaned-duplicate ledger cleared.[/]")
        return 0

    entries = ledger.entries()
    if not entries:
        console.print("[dim]No duplicates cleaned in the last 7 days.[/dim]")
        return 0

    table = Table(title="Recently cleaned duplicates")
    table.add_column("Transaction ID", style="cyan")
    table.add_column("Cleaned")
    table.add_column("Reason")
    table.add_column("Fingerprint", style="dim")
    for tid, entry in sorted(entries.items(), key=lambda item: item[1].cleaned_at):
        table.add_row(tid, f"{entry.cleaned_at:%Y-%m-%d %H:%M}", entry.reason, entry.fingerprint)
    console.print(table)

    stats = ledger.statistics()
    by_reason = ", ".join(f"{reason}: {count}" for reason, count in stats.by_reason.items())
    console.print(f"{stats.total_tracked} tracked ({by_reason}); {stats.recent_cleanups} in the last 24 hours")
    return 0
