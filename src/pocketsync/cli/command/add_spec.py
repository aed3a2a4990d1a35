from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from pathlib import Path

from pocketsync.cli.command.add import run
from pocketsync.model.records import EntityType
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.storage.local_store import LocalDatabase
from pocketsync.workspace import Workspace

OFFLINE = RemoteSettings()


def _seed(workspace: Workspace) -> None:
    stores = LocalDatabase(workspace.local_store_path).stores()

    async def add():
        await stores[EntityType.wallets].add({"id": "w1", "name": "Cash", "type": "cash", "balance": "100"})
        await stores[EntityType.expenses].add(
            {"id": "A", "amount": "10", "description": "Lunch", "date": "2024-01-10", "walletId": "w1", "tags": []}
        )

    asyncio.run(add())


def _all(workspace: Workspace, entity: EntityType) -> list[dict]:
    return asyncio.run(LocalDatabase(workspace.local_store_path).stores()[entity].get_all())


def _lunch(workspace: Workspace, **kwargs) -> int:
    return run(
        workspace=workspace,
        settings=OFFLINE,
        amount="10",
        description="Lunch",
        on=date(2024, 1, 10),
        wallet="w1",
        **kwargs,
    )


def it_should_not_persist_anything_without_write(tmp_path: Path):
    workspace = Workspace(root=tmp_path)
    _seed(workspace)

    code = run(workspace=workspace, settings=OFFLINE, amount="4.25", description="Coffee", on=date(2024, 1, 11))

    assert code == 0
    assert [r["id"] for r in _all(workspace, EntityType.expenses)] == ["A"]


def it_should_add_the_expense_and_debit_the_wallet_with_write(tmp_path: Path):
    workspace = Workspace(root=tmp_path)
    _seed(workspace)

    code = run(
        workspace=workspace,
        settings=OFFLINE,
        amount="4.25",
        description="Coffee",
        on=date(2024, 1, 11),
        wallet="w1",
        tags=["morning"],
        write=True,
    )

    assert code == 0
    added = [r for r in _all(workspace, EntityType.expenses) if r["id"] != "A"]
    assert len(added) == 1
    assert added[0]["description"] == "Coffee"
    assert added[0]["tags"] == ["morning"]
    [wallet] = _all(workspace, EntityType.wallets)
    assert Decimal(wallet["balance"]) == Decimal("95.75")


def it_should_refuse_a_duplicate(tmp_path: Path, capsys):
    workspace = Workspace(root=tmp_path)
    _seed(workspace)

    code = _lunch(workspace, write=True)

    assert code == 1
    assert len(_all(workspace, EntityType.expenses)) == 1
    assert "Possible duplicates" in capsys.readouterr().out


def it_should_add_a_duplicate_when_forced(tmp_path: Path):
    workspace = Workspace(root=tmp_path)
    _seed(workspace)

    code = _lunch(workspace, write=True, force=True)

    assert code == 0
    assert len(_all(workspace, EntityType.expenses)) == 2


def it_should_reject_an_amount_that_is_not_a_number(tmp_path: Path):
    workspace = Workspace(root=tmp_path)

    code = run(workspace=workspace, settings=OFFLINE, amount="ten", description="Lunch", write=True)

    assert code == 1
