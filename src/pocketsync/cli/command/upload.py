from __future__ import annotations

"""
Manually upload every local record to the remote backup.
"""

import asyncio
from typing import Optional

import httpx

from pocketsync.errors import PocketSyncError
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.services.session import ConnectivityObserver
from pocketsync.workspace import Workspace

from .util import console, open_runtime, print_sync_result


def run(
    *,
    workspace: Workspace,
    settings: RemoteSettings,
    allow_cleaned: bool = False,
    connectivity: Optional[ConnectivityObserver] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Upload local data to the remote store.

    Args:
        workspace: Workspace providing data paths
        settings: Remote connection settings
        allow_cleaned: Also upload expenses recently removed as duplicates
        connectivity: Override for the connectivity probe
        transport: Override for the HTTP transport

    Returns:
        Exit code (0 = every type uploaded, 1 = refused or aborted)
    """

    async def upload():
        async with open_runtime(workspace, settings, connectivity=connectivity, transport=transport) as rt:
            return await rt.manager.upload_to_cloud(allow_cleaned=allow_cleaned)

    console.print("[bold cyan]Uploading local data to the cloud...[/]")
    try:
        result = asyncio.run(upload())
    except PocketSyncError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    print_sync_result(result, "Uploaded")
    return 0 if result.success else 1
