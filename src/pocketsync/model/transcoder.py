"""
Field transcoding between the local record shape and the remote record shape.

Local records use camelCase keys (walletId, isIncome, photoUrl); the remote
tables use snake_case columns (wallet_id, is_income, photo_url). Both
functions are pure: they copy their input, rename the keys they know about
and leave every other key untouched, so `to_local(t, to_remote(t, r)) == r`
for every valid local record `r`.

The remote scope column (`user_id`) belongs to the remote adapter, not to the
record, and is dropped by `to_local`.
"""
from __future__ import annotations

from typing import Any, Mapping

from pocketsync.model.records import EntityType

SCOPE_COLUMN = "user_id"

_COMMON: dict[str, str] = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "lastModified": "last_modified",
    "deletedAt": "deleted_at",
}

_TRANSACTION_FIELDS: dict[str, str] = {
    "walletId": "wallet_id",
    "isIncome": "is_income",
    "photoUrl": "photo_url",
}

LOCAL_TO_REMOTE: dict[EntityType, dict[str, str]] = {
    EntityType.expenses: {**_COMMON, **_TRANSACTION_FIELDS},
    EntityType.recurring: {
        **_COMMON,
        **_TRANSACTION_FIELDS,
        "startDate": "start_date",
        "endDate": "end_date",
        "nextDate": "next_date",
    },
    EntityType.transfers: {
        **_COMMON,
        "fromWallet": "from_wallet_id",
        "toWallet": "to_wallet_id",
        "fromWalletName": "from_wallet_name",
        "toWalletName": "to_wallet_name",
        "photoUrl": "photo_url",
    },
    EntityType.categories: dict(_COMMON),
    EntityType.tags: dict(_COMMON),
    EntityType.wallets: dict(_COMMON),
    EntityType.budgets: dict(_COMMON),
}

REMOTE_TO_LOCAL: dict[EntityType, dict[str, str]] = {
    entity: {remote: local for local, remote in mapping.items()}
    for entity, mapping in LOCAL_TO_REMOTE.items()
}

# Entity types whose records carry a tag list
_TAGGED = {EntityType.expenses, EntityType.recurring}


def _entity(entity_type: EntityType | str) -> EntityType:
    try:
        return EntityType(entity_type)
    except ValueError:
        raise ValueError(f"Unknown entity type: {entity_type}") from None


def _rename(record: Mapping[str, Any], mapping: Mapping[str, str]) -> dict[str, Any]:
    return {mapping.get(key, key): value for key, value in record.items()}


def to_remote(entity_type: EntityType | str, record: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a local record to the remote column naming."""
    entity = _entity(entity_type)
    return _rename(record, LOCAL_TO_REMOTE[entity])


def to_local(entity_type: EntityType | str, record: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a remote row to the local record naming.

    Drops the scope column and defaults a missing tag list to empty.
    """
    entity = _entity(entity_type)
    local = _rename(
        {k: v for k, v in record.items() if k != SCOPE_COLUMN},
        REMOTE_TO_LOCAL[entity],
    )
    if entity in _TAGGED and local.get("tags") is None:
        local["tags"] = []
    return local


__all__ = ["to_remote", "to_local", "LOCAL_TO_REMOTE", "REMOTE_TO_LOCAL", "SCOPE_COLUMN"]
