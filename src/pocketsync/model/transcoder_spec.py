"""
Tests for local/remote field transcoding.
"""

from __future__ import annotations

import pytest

from pocketsync.model.records import EntityType
from pocketsync.model.transcoder import to_local, to_remote


EXPENSE = {
    "id": "exp-1",
    "amount": "50000",
    "description": "Lunch",
    "category": "food",
    "walletId": "w-cash",
    "date": "2024-01-10",
    "isIncome": False,
    "tags": ["t-work"],
    "notes": "",
    "photoUrl": "blob:abc",
    "createdAt": "2024-01-10T12:00:00+00:00",
    "lastModified": "2024-01-10T12:00:00+00:00",
}

TRANSFER = {
    "id": "tr-1",
    "fromWallet": "w-bank",
    "toWallet": "w-cash",
    "fromWalletName": "Bank",
    "toWalletName": "Cash",
    "amount": "100",
    "date": "2024-01-11",
    "notes": "ATM",
    "photoUrl": None,
}

RECURRING = {
    "id": "rec-1",
    "amount": "12.99",
    "description": "Music",
    "walletId": "w-card",
    "isIncome": False,
    "tags": [],
    "frequency": "monthly",
    "startDate": "2024-01-31",
    "nextDate": "2024-02-29",
    "endDate": None,
}


class DescribeToRemote:
    def it_should_rename_expense_fields(self):
        remote = to_remote(EntityType.expenses, EXPENSE)

        assert remote["wallet_id"] == "w-cash"
        assert remote["is_income"] is False
        assert remote["photo_url"] == "blob:abc"
        assert remote["created_at"] == EXPENSE["createdAt"]
        assert "walletId" not in remote
        assert "isIncome" not in remote

    def it_should_rename_transfer_wallet_references_and_names(self):
        remote = to_remote("transfers", TRANSFER)

        assert remote["from_wallet_id"] == "w-bank"
        assert remote["to_wallet_id"] == "w-cash"
        assert remote["from_wallet_name"] == "Bank"
        assert remote["to_wallet_name"] == "Cash"

    def it_should_not_mutate_its_input(self):
        original = dict(EXPENSE)
        to_remote(EntityType.expenses, EXPENSE)
        assert EXPENSE == original

    def it_should_reject_unknown_entity_types(self):
        with pytest.raises(ValueError):
            to_remote("invoices", {"id": "x"})


class DescribeToLocal:
    def it_should_drop_the_scope_column(self):
        local = to_local(EntityType.categories, {"id": "c1", "name": "Food", "user_id": "u1"})
        assert local == {"id": "c1", "name": "Food"}

    def it_should_default_missing_tags_to_empty_list(self):
        local = to_local(EntityType.expenses, {"id": "e1", "amount": 1, "tags": None})
        assert local["tags"] == []

    def it_should_not_invent_tags_for_untagged_types(self):
        local = to_local(EntityType.wallets, {"id": "w1", "name": "Cash"})
        assert "tags" not in local


class DescribeRoundTrip:
    @pytest.mark.parametrize(
        "entity_type,record",
        [
            (EntityType.expenses, EXPENSE),
            (EntityType.transfers, TRANSFER),
            (EntityType.recurring, RECURRING),
            (EntityType.wallets, {"id": "w1", "name": "Cash", "type": "cash", "balance": "10"}),
            (EntityType.budgets, {"id": "b1", "category": "food", "amount": "300", "period": "monthly"}),
            (EntityType.expenses, {**EXPENSE, "deletedAt": "2024-01-12T08:00:00+00:00"}),
        ],
    )
    def it_should_restore_the_local_record(self, entity_type, record):
        assert to_local(entity_type, to_remote(entity_type, record)) == record
