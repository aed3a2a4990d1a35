from __future__ import annotations

"""
Export every local record to a versioned JSON backup file.
"""

import asyncio
from datetime import date
from pathlib import Path
from typing import Optional

from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.workspace import Workspace

from .util import console, open_runtime


def default_export_path(workspace: Workspace, today: Optional[date] = None) -> Path:
    today = today or date.today()
    return workspace.exports_dir / f"pocketsync-backup-{today.isoformat()}.json"


def run(*, workspace: Workspace, settings: RemoteSettings, output: Optional[Path] = None) -> int:
    """Write a JSON backup of all local data.

    Args:
        workspace: Workspace providing data paths
        settings: Remote settings (the user id is recorded in the backup)
        output: Destination file (default: exports/pocketsync-backup-<date>.json)

    Returns:
        Exit code (always 0)
    """
    path = output or default_export_path(workspace)

    async def export():
        async with open_runtime(workspace, settings) as rt:
            return await rt.manager.write_export(path)

    envelope = asyncio.run(export())
    meta = envelope.metadata
    console.print(f"[green]Exported to[/] {path}")
    console.print(
        f"  expenses: {meta.total_expenses}, categories: {meta.total_categories}, "
        f"wallets: {meta.total_wallets}, transfers: {meta.total_transfers}, "
        f"tags: {meta.total_tags}, budgets: {meta.total_budgets}, recurring: {meta.total_recurring}"
    )
    return 0
