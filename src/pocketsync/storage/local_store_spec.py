"""
Tests for the local SQLite record store.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import pytest

from pocketsync.errors import RecordConflictError, RecordNotFoundError
from pocketsync.model.records import EntityType
from pocketsync.storage.local_store import LocalDatabase
from pocketsync.storage.record_store import RecordStore

FIXED_NOW = datetime(2024, 2, 1, 9, 30, tzinfo=timezone.utc)


class DescribeLocalRecordStore:
    @pytest.fixture
    def database(self, tmp_path: Path):
        return LocalDatabase(tmp_path / "data" / "local.db", clock=lambda: FIXED_NOW)

    @pytest.fixture
    def expenses(self, database):
        return database.stores()[EntityType.expenses]

    def it_should_satisfy_the_record_store_contract(self, expenses):
        assert isinstance(expenses, RecordStore)

    def it_should_add_and_read_back_records_verbatim(self, expenses):
        record = {"id": "a", "amount": "10", "walletId": "w1", "tags": ["t"]}

        async def scenario():
            await expenses.add(record)
            return await expenses.get_all(), await expenses.get_by_id("a")

        all_records, by_id = asyncio.run(scenario())

        assert all_records == [record]
        assert by_id == record

    def it_should_reject_adding_an_existing_id(self, expenses):
        async def scenario():
            await expenses.add({"id": "a", "amount": "10"})
            await expenses.add({"id": "a", "amount": "20"})

        with pytest.raises(RecordConflictError):
            asyncio.run(scenario())

    def it_should_reject_updating_an_unknown_id(self, expenses):
        with pytest.raises(RecordNotFoundError):
            asyncio.run(expenses.update({"id": "missing"}))

    def it_should_soft_delete_with_a_tombstone(self, expenses):
        async def scenario():
            await expenses.add({"id": "a", "amount": "10"})
            await expenses.add({"id": "b", "amount": "20"})
            await expenses.delete("a")
            return (
                await expenses.get_all(),
                await expenses.get_all_including_deleted(),
                await expenses.get_by_id("a"),
            )

        active, everything, tombstone = asyncio.run(scenario())

        assert [r["id"] for r in active] == ["b"]
        assert [r["id"] for r in everything] == ["a", "b"]
        assert tombstone["deletedAt"] == FIXED_NOW.isoformat()

    def it_should_keep_entity_types_apart(self, database):
        stores = database.stores()

        async def scenario():
            await stores[EntityType.expenses].add({"id": "same"})
            await stores[EntityType.categories].add({"id": "same", "name": "Food"})
            return await stores[EntityType.categories].get_all()

        assert asyncio.run(scenario()) == [{"id": "same", "name": "Food"}]

    def it_should_count_active_records_per_type(self, database):
        stores = database.stores()

        async def scenario():
            await stores[EntityType.expenses].add({"id": "a"})
            await stores[EntityType.expenses].add({"id": "b"})
            await stores[EntityType.expenses].delete("b")
            await stores[EntityType.wallets].add({"id": "w"})

        asyncio.run(scenario())
        counts = database.counts()

        assert counts["expenses"] == 1
        assert counts["wallets"] == 1
        assert counts["tags"] == 0
        assert counts["total"] == 2

    def it_should_purge_tombstones_on_clear(self, expenses):
        async def scenario():
            await expenses.add({"id": "a"})
            await expenses.delete("a")
            removed = await expenses.clear()
            await expenses.add({"id": "a"})
            return removed, await expenses.get_all()

        removed, remaining = asyncio.run(scenario())

        assert removed == 1
        assert remaining == [{"id": "a"}]

    def it_should_estimate_storage_usage(self, database):
        usage = database.estimate_storage()
        assert usage["used"] > 0
        assert 0 <= usage["percentage"] <= 100
