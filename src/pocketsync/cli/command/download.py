from __future__ import annotations

"""
Manually download the remote backup into the local store.
"""

import asyncio
from typing import Optional

import httpx
from rich.prompt import Confirm

from pocketsync.errors import PocketSyncError
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.services.session import ConnectivityObserver
from pocketsync.workspace import Workspace

from .util import console, open_runtime, print_sync_result


def run(
    *,
    workspace: Workspace,
    settings: RemoteSettings,
    replace: bool = False,
    merge: bool = True,
    yes: bool = False,
    allow_cleaned: bool = False,
    connectivity: Optional[ConnectivityObserver] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Download remote data into the local store.

    Args:
        workspace: Workspace providing data paths
        settings: Remote connection settings
        replace: Purge all local data before downloading
        merge: Update existing local records instead of purging each type first
        yes: Skip the confirmation for destructive modes
        allow_cleaned: Also download expenses recently removed as duplicates
        connectivity: Override for the connectivity probe
        transport: Override for the HTTP transport

    Returns:
        Exit code (0 = success, 1 = refused, declined or aborted)
    """
    if (replace or not merge) and not yes:
        what = "ALL local data" if replace else "local records missing from the cloud"
        console.print(f"[yellow]This will permanently delete {what}.[/]")
        if not Confirm.ask("Continue?", default=False):
            console.print("[dim]Download cancelled.[/dim]")
            return 1

    async def download():
        async with open_runtime(workspace, settings, connectivity=connectivity, transport=transport) as rt:
            return await rt.manager.download_from_cloud(
                replace_local=replace,
                merge_with_local=merge,
                allow_cleaned=allow_cleaned,
            )

    console.print("[bold cyan]Downloading data from the cloud...[/]")
    try:
        result = asyncio.run(download())
    except PocketSyncError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    print_sync_result(result, "Downloaded")
    return 0 if result.success else 1
