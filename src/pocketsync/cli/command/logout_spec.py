from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path

from pocketsync.cli.command.logout import run
from pocketsync.model.records import EntityType
from pocketsync.model.remote_settings import RemoteSettings, load_remote_settings, save_remote_settings
from pocketsync.model.sync_status import SyncStatus, SyncStatusCache
from pocketsync.storage.local_store import LocalDatabase
from pocketsync.workspace import Workspace

SETTINGS = RemoteSettings(url="https://db.example", api_key="anon-key", user_id="u1")


class DescribeLogout:
    def it_should_forget_the_user_and_discard_the_cached_status(self, tmp_path: Path, capsys):
        workspace = Workspace(root=tmp_path)
        save_remote_settings(workspace.remote_config, SETTINGS)
        SyncStatusCache(workspace.sync_status_path).save(
            SyncStatus(last_manual_sync=datetime(2024, 1, 10, tzinfo=timezone.utc))
        )
        store = LocalDatabase(workspace.local_store_path).stores()[EntityType.categories]
        asyncio.run(store.add({"id": "c1", "name": "Food"}))

        code = run(workspace=workspace, settings=SETTINGS)

        assert code == 0
        assert not workspace.sync_status_path.exists()
        stored = load_remote_settings(workspace.remote_config)
        assert stored.user_id is None
        assert stored.url == "https://db.example"
        assert LocalDatabase(workspace.local_store_path).counts()["categories"] == 1
        assert "Signed out" in capsys.readouterr().out

    def it_should_warn_about_changes_that_were_never_backed_up(self, tmp_path: Path, capsys):
        workspace = Workspace(root=tmp_path)
        SyncStatusCache(workspace.sync_status_path).save(SyncStatus(has_local_changes=True))

        code = run(workspace=workspace, settings=RemoteSettings())

        assert code == 0
        assert "unsaved changes" in capsys.readouterr().out
        assert not workspace.sync_status_path.exists()
