from __future__ import annotations

"""
Sign out: forget the stored user id and discard the cached sync status.
"""

import asyncio

from pocketsync.model.remote_settings import RemoteSettings, load_remote_settings, save_remote_settings
from pocketsync.services.session import StaticConnectivity
from pocketsync.workspace import Workspace

from .util import console, open_runtime


def run(*, workspace: Workspace, settings: RemoteSettings) -> int:
    """Sign out of the remote backend.

    Local data is kept. The user id saved in config/remote.yml is removed so
    later commands run signed out until a new one is given.

    Returns:
        Exit code (always 0)
    """

    async def sign_out():
        # Signing out never needs the network
        async with open_runtime(workspace, settings, connectivity=StaticConnectivity(False)) as rt:
            return rt.manager.sign_out()

    warning = asyncio.run(sign_out())
    if warning:
        console.print(f"[yellow]{warning}[/]")

    stored = load_remote_settings(workspace.remote_config)
    if stored.user_id:
        save_remote_settings(workspace.remote_config, stored.model_copy(update={"user_id": None}))

    console.print("[green]Signed out.[/] Local data is unchanged.")
    return 0
