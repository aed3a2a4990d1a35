from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone

import pytest

from pocketsync.model.records import EntityType, Frequency
from pocketsync.services.recurring_service import RecurringService, next_occurrence
from pocketsync.storage.local_store import LocalDatabase

NOW = datetime(2024, 3, 5, 8, 0, tzinfo=timezone.utc)

RENT = {
    "id": "rent",
    "amount": "500",
    "description": "Rent",
    "walletId": "w1",
    "frequency": "monthly",
    "startDate": "2024-01-31",
    "nextDate": "2024-01-31",
    "tags": ["home"],
}


class DescribeNextOccurrence:
    @pytest.mark.parametrize(
        "frequency,after,expected",
        [
            (Frequency.daily, date(2024, 1, 31), date(2024, 2, 1)),
            (Frequency.weekly, date(2024, 1, 31), date(2024, 2, 7)),
            (Frequency.biweekly, date(2024, 1, 31), date(2024, 2, 14)),
            (Frequency.monthly, date(2024, 1, 31), date(2024, 2, 29)),
            (Frequency.monthly, date(2024, 2, 29), date(2024, 3, 31)),
            (Frequency.quarterly, date(2024, 1, 31), date(2024, 4, 30)),
            (Frequency.annually, date(2024, 1, 31), date(2025, 1, 31)),
        ],
    )
    def it_should_step_from_the_start_date(self, frequency, after, expected):
        assert next_occurrence(frequency, date(2024, 1, 31), after) == expected

    def it_should_return_the_anchor_when_it_is_still_ahead(self):
        assert next_occurrence(Frequency.monthly, date(2024, 5, 1), date(2024, 1, 1)) == date(2024, 5, 1)


class DescribeRecurringService:
    @pytest.fixture
    def database(self, tmp_path):
        db = LocalDatabase(tmp_path / "local.db", clock=lambda: NOW)
        stores = db.stores()

        async def seed():
            await stores[EntityType.wallets].add({"id": "w1", "name": "Bank", "type": "bank", "balance": "2000"})
            await stores[EntityType.recurring].add(RENT)

        asyncio.run(seed())
        return db

    @pytest.fixture
    def changes(self):
        return []

    @pytest.fixture
    def service(self, database, changes):
        return RecurringService(database.stores(), on_change=lambda: changes.append(True), clock=lambda: NOW)

    def it_should_materialize_every_due_occurrence(self, service, database, changes):
        report = asyncio.run(service.process_due(date(2024, 3, 5)))
        stores = database.stores()

        async def read():
            return (
                await stores[EntityType.expenses].get_all(),
                await stores[EntityType.recurring].get_by_id("rent"),
                await stores[EntityType.wallets].get_by_id("w1"),
            )

        expenses, rule, wallet = asyncio.run(read())

        assert [m.occurrence for m in report.materialized] == [date(2024, 1, 31), date(2024, 2, 29)]
        assert [e["date"] for e in expenses] == ["2024-01-31", "2024-02-29"]
        assert expenses[0]["tags"] == ["home", "recurring"]
        assert rule["nextDate"] == "2024-03-31"
        assert wallet["balance"] == "1000"
        assert changes == [True]

    def it_should_not_write_anything_on_a_dry_run(self, service, database, changes):
        report = asyncio.run(service.process_due(date(2024, 3, 5), dry_run=True))

        assert report.created == 2
        assert database.counts()["expenses"] == 0
        assert changes == []

    def it_should_not_materialize_the_same_occurrence_twice(self, service, database):
        async def scenario():
            await service.process_due(date(2024, 2, 1))
            rule = await database.stores()[EntityType.recurring].get_by_id("rent")
            await database.stores()[EntityType.recurring].update({**rule, "nextDate": "2024-01-31"})
            return await service.process_due(date(2024, 2, 1))

        report = asyncio.run(scenario())

        assert report.created == 0
        assert database.counts()["expenses"] == 1

    def it_should_stop_at_the_end_date(self, service, database):
        rule = {**RENT, "id": "gym", "endDate": "2024-02-15"}
        asyncio.run(database.stores()[EntityType.recurring].add(rule))

        report = asyncio.run(service.process_due(date(2024, 3, 5)))

        gym = [m.occurrence for m in report.materialized if m.rule_id == "gym"]
        assert gym == [date(2024, 1, 31)]
