from __future__ import annotations

import asyncio
from pathlib import Path

from pocketsync.cli.command.status import run
from pocketsync.model.records import EntityType
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.model.sync_status import SyncStatusCache
from pocketsync.services.session import StaticConnectivity
from pocketsync.storage.local_store import LocalDatabase
from pocketsync.workspace import Workspace


def it_should_show_counts_and_cache_the_status(tmp_path: Path, capsys):
    workspace = Workspace(root=tmp_path)
    store = LocalDatabase(workspace.local_store_path).stores()[EntityType.categories]
    asyncio.run(store.add({"id": "c1", "name": "Food"}))

    code = run(workspace=workspace, settings=RemoteSettings(), connectivity=StaticConnectivity(False))

    assert code == 0
    out = capsys.readouterr().out
    assert "offline" in out
    assert "never" in out
    status = SyncStatusCache(workspace.sync_status_path).load()
    assert status.local_data_count["categories"] == 1
    assert status.local_data_count["total"] == 1
