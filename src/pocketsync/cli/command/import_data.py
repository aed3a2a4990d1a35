from __future__ import annotations

"""
Import a JSON backup into the local store.
"""

import asyncio
from pathlib import Path

from rich.prompt import Confirm

from pocketsync.errors import PocketSyncError
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.workspace import Workspace

from .util import console, open_runtime, print_sync_result


def run(
    *,
    workspace: Workspace,
    settings: RemoteSettings,
    file: Path,
    replace: bool = False,
    allow_cleaned: bool = False,
    yes: bool = False,
) -> int:
    """Import a backup produced by `pocketsync export`.

    Args:
        workspace: Workspace providing data paths
        settings: Remote settings
        file: Backup file to read
        replace: Purge all local data before importing
        allow_cleaned: Also import expenses recently removed as duplicates
        yes: Skip the confirmation for --replace

    Returns:
        Exit code (0 = success, 1 = missing or invalid file)
    """
    if not file.exists():
        console.print(f"[red]Error:[/] Backup file not found: {file}")
        return 1

    if replace and not yes:
        console.print("[yellow]This will permanently delete ALL local data before importing.[/]")
        if not Confirm.ask("Continue?", default=False):
            console.print("[dim]Import cancelled.[/dim]")
            return 1

    async def load():
        async with open_runtime(workspace, settings) as rt:
            return await rt.manager.import_local_data(
                file.read_text(encoding="utf-8"),
                replace_existing=replace,
                allow_cleaned=allow_cleaned,
            )

    try:
        result = asyncio.run(load())
    except PocketSyncError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    print_sync_result(result, "Imported")
    return 0 if result.success else 1
