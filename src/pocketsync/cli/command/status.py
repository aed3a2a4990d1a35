from __future__ import annotations

"""
Show local data counts, sync state and backup recommendations.
"""

import asyncio
from typing import Optional

from rich.table import Table

from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.services.session import ConnectivityObserver
from pocketsync.workspace import Workspace

from .util import console, open_runtime

_PRIORITY_STYLE = {"high": "bold red", "medium": "yellow", "low": "dim"}


def _human_bytes(value: float) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            return f"{value:,.1f} {unit}"
        value /= 1024
    return f"{value:,.1f} TB"


def run(
    *,
    workspace: Workspace,
    settings: RemoteSettings,
    connectivity: Optional[ConnectivityObserver] = None,
) -> int:
    """Display detailed sync status.

    Args:
        workspace: Workspace providing data paths
        settings: Remote settings (used only to probe connectivity)
        connectivity: Override for the connectivity probe

    Returns:
        Exit code (always 0)
    """

    async def collect():
        async with open_runtime(workspace, settings, connectivity=connectivity) as rt:
            return await asyncio.to_thread(rt.manager.get_detailed_status)

    detailed = asyncio.run(collect())
    status = detailed.status

    table = Table(title="Local data", show_lines=False)
    table.add_column("Type", style="cyan")
    table.add_column("Records", justify="right")
    for name, count in status.local_data_count.items():
        if name != "total":
            table.add_row(name, str(count))
    table.add_row("[bold]total[/]", f"[bold]{status.local_data_count.get('total', 0)}[/]")
    console.print(table)

    online = "[green]online[/]" if status.is_online else "[yellow]offline[/]"
    console.print(f"Remote: {online}  User: {settings.user_id or '[dim]signed out[/]'}")
    if detailed.data_age is None:
        console.print("Last manual sync: [dim]never[/dim]")
    else:
        console.print(
            f"Last manual sync: {detailed.data_age.last_sync:%Y-%m-%d %H:%M} UTC "
            f"({detailed.data_age.age_in_days} days ago)"
        )
    if status.last_outcome is not None:
        console.print(f"Last outcome: {status.last_outcome.value}")
    changes = "[yellow]yes[/]" if status.has_local_changes else "no"
    console.print(f"Unsynced local changes: {changes}")

    if detailed.storage_usage:
        usage = detailed.storage_usage
        console.print(
            f"Storage: {_human_bytes(usage['used'])} used, "
            f"{_human_bytes(usage['available'])} free ({usage['percentage']:.4f}%)"
        )

    if status.errors:
        console.print("\n[bold]Recent errors:[/]")
        for error in status.errors[-5:]:
            console.print(f"  [red]{error.timestamp:%Y-%m-%d %H:%M}[/] {error.operation}: {error.message}")

    if detailed.recommendations:
        console.print("\n[bold]Recommendations:[/]")
        for rec in detailed.recommendations:
            style = _PRIORITY_STYLE.get(rec.priority, "white")
            console.print(f"  [{style}]{rec.priority}[/] {rec.message}")

    return 0
