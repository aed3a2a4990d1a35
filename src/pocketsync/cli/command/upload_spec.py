from __future__ import annotations

import asyncio
from pathlib import Path

import httpx

from pocketsync.cli.command.upload import run
from pocketsync.model.records import EntityType
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.model.sync_status import SyncStatusCache
from pocketsync.services.session import StaticConnectivity
from pocketsync.storage.local_store import LocalDatabase
from pocketsync.storage.remote_store_spec import FakePostgrest
from pocketsync.workspace import Workspace

SETTINGS = RemoteSettings(url="https://db.example", api_key="anon-key", user_id="u1", access_token="jwt")


def _seed(workspace: Workspace) -> None:
    stores = LocalDatabase(workspace.local_store_path).stores()

    async def add():
        await stores[EntityType.wallets].add({"id": "w1", "name": "Cash", "type": "cash", "balance": "90"})
        await stores[EntityType.expenses].add(
            {"id": "A", "amount": "10", "description": "Lunch", "date": "2024-01-10", "walletId": "w1", "tags": []}
        )

    asyncio.run(add())


def it_should_upload_local_records_and_clear_pending_changes(tmp_path: Path):
    workspace = Workspace(root=tmp_path)
    _seed(workspace)
    server = FakePostgrest()

    code = run(
        workspace=workspace,
        settings=SETTINGS,
        connectivity=StaticConnectivity(True),
        transport=httpx.MockTransport(server),
    )

    assert code == 0
    expenses = server.tables["expenses"]
    assert [row["id"] for row in expenses] == ["A"]
    assert expenses[0]["wallet_id"] == "w1"
    assert expenses[0]["user_id"] == "u1"
    status = SyncStatusCache(workspace.sync_status_path).load()
    assert status.last_manual_sync is not None
    assert status.has_local_changes is False


def it_should_refuse_to_upload_while_offline(tmp_path: Path, capsys):
    workspace = Workspace(root=tmp_path)
    _seed(workspace)
    server = FakePostgrest()

    code = run(
        workspace=workspace,
        settings=SETTINGS,
        connectivity=StaticConnectivity(False),
        transport=httpx.MockTransport(server),
    )

    assert code == 1
    assert server.requests == []
    assert "Error" in capsys.readouterr().out


def it_should_refuse_to_upload_without_a_signed_in_user(tmp_path: Path):
    workspace = Workspace(root=tmp_path)
    _seed(workspace)
    server = FakePostgrest()

    code = run(
        workspace=workspace,
        settings=SETTINGS.model_copy(update={"user_id": None, "access_token": None}),
        connectivity=StaticConnectivity(True),
        transport=httpx.MockTransport(server),
    )

    assert code == 1
    assert server.requests == []
