from .records import (
    MODEL_BY_TYPE,
    SYNC_ORDER,
    Active,
    Budget,
    Category,
    Deleted,
    EntityType,
    Frequency,
    Record,
    RecurringRule,
    Tag,
    Transaction,
    Transfer,
    Wallet,
    WalletType,
)
from .transcoder import to_local, to_remote

__all__ = [
    # models
    "Record",
    "Transaction",
    "Category",
    "Tag",
    "Wallet",
    "Budget",
    "Transfer",
    "RecurringRule",
    "Active",
    "Deleted",
    # enums and constants
    "EntityType",
    "Frequency",
    "WalletType",
    "SYNC_ORDER",
    "MODEL_BY_TYPE",
    # transcoding
    "to_local",
    "to_remote",
]
