from __future__ import annotations

"""
Domain models for the finance records pocketsync keeps in sync.

Scope
- Pure Pydantic v2 models; no I/O.
- Stores exchange plain JSON-compatible dicts in the local (camelCase) shape.
  Models are built from those dicts with `from_record` and turned back with
  `to_record`.

Soft delete
- At the domain layer a record is either Active or Deleted(at). The store
  boundary represents the same thing as a nullable `deletedAt` key; the
  translation happens only in `from_record` / `to_record`.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class EntityType(str, Enum):
    expenses = "expenses"
    categories = "categories"
    tags = "tags"
    wallets = "wallets"
    budgets = "budgets"
    transfers = "transfers"
    recurring = "recurring"


# Parents before the children that reference them
SYNC_ORDER: tuple[EntityType, ...] = (
    EntityType.categories,
    EntityType.tags,
    EntityType.wallets,
    EntityType.budgets,
    EntityType.recurring,
    EntityType.transfers,
    EntityType.expenses,
)


class WalletType(str, Enum):
    cash = "cash"
    bank = "bank"
    credit_card = "credit_card"
    e_wallet = "e_wallet"
    savings = "savings"


class Frequency(str, Enum):
    daily = "daily"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    quarterly = "quarterly"
    annually = "annually"


# ------------------------------
# Soft-delete state
# ------------------------------


class Active(BaseModel):
    kind: Literal["active"] = "active"


class Deleted(BaseModel):
    kind: Literal["deleted"] = "deleted"
    at: datetime


RecordState = Annotated[Union[Active, Deleted], Field(discriminator="kind")]


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so mixed sources compare cleanly."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def parse_calendar_date(value: Any) -> Any:
    """Accept ISO dates with or without a time component."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


def parse_decimal(value: Any) -> Any:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc


class Record(BaseModel):
    """Fields every stored entity shares."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    state: RecordState = Field(default_factory=Active, exclude=True)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("created_at", "updated_at", "last_modified", mode="before")
    @classmethod
    def coerce_timestamp(cls, value: Any) -> Optional[datetime]:
        return parse_timestamp(value)

    @property
    def is_deleted(self) -> bool:
        return isinstance(self.state, Deleted)

    @property
    def deleted_at(self) -> Optional[datetime]:
        return self.state.at if isinstance(self.state, Deleted) else None

    def mark_deleted(self, at: datetime) -> "Record":
        return self.model_copy(update={"state": Deleted(at=as_utc(at))})

    @property
    def recency(self) -> Optional[datetime]:
        """Timestamp used to pick the most recent copy of a record."""
        for value in (self.last_modified, self.updated_at, self.created_at):
            if value is not None:
                return value
        txn_date = getattr(self, "date", None)
        if isinstance(txn_date, date):
            return datetime(txn_date.year, txn_date.month, txn_date.day, tzinfo=timezone.utc)
        return None

    @classmethod
    def from_record(cls, record: dict):
        """Build a model from a local-shape store record."""
        data = dict(record)
        deleted_at = parse_timestamp(data.pop("deletedAt", None))
        model = cls.model_validate(data)
        if deleted_at is not None:
            model = model.model_copy(update={"state": Deleted(at=deleted_at)})
        return model

    def to_record(self) -> dict:
        """Dump to the local-shape store record (camelCase, JSON-compatible)."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if isinstance(self.state, Deleted):
            data["deletedAt"] = self.state.at.isoformat()
        return data


class _Money(Record):
    amount: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value: Any) -> Decimal:
        return parse_decimal(value)

    @field_serializer("amount")
    def serialize_amount(self, value: Decimal) -> str:
        """Serialize Decimal to string to preserve precision."""
        return str(value)


class Transaction(_Money):
    """An expense or income entry (entity type `expenses`)."""

    description: str = ""
    category: Optional[str] = None
    wallet_id: Optional[str] = None
    date: date
    is_income: bool = False
    tags: list[str] = Field(default_factory=list)
    notes: str = ""
    photo_url: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        return parse_calendar_date(value)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value: Any) -> list[str]:
        if value is None:
            return []
        return [str(t.get("id")) if isinstance(t, dict) else str(t) for t in value]

    @field_validator("wallet_id", "category", mode="before")
    @classmethod
    def coerce_reference(cls, value: Any) -> Optional[str]:
        return None if value is None or value == "" else str(value)

    @field_validator("notes", "description", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class Category(Record):
    name: str
    color: Optional[str] = None


class Tag(Record):
    name: str
    color: Optional[str] = None


class Wallet(Record):
    name: str
    color: Optional[str] = None
    type: WalletType = WalletType.cash
    balance: Decimal = Decimal("0")

    @field_validator("balance", mode="before")
    @classmethod
    def coerce_balance(cls, value: Any) -> Decimal:
        return parse_decimal(value)

    @field_serializer("balance")
    def serialize_balance(self, value: Decimal) -> str:
        return str(value)

    def apply(self, amount: Decimal, is_income: bool) -> "Wallet":
        """Return a copy with a transaction's effect applied to the balance."""
        delta = amount if is_income else -amount
        return self.model_copy(update={"balance": self.balance + delta})


class Budget(_Money):
    category: str
    period: str = "monthly"
    notes: str = ""


class Transfer(_Money):
    from_wallet: str
    to_wallet: str
    from_wallet_name: Optional[str] = None
    to_wallet_name: Optional[str] = None
    date: date
    notes: str = ""
    photo_url: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, value: Any) -> Any:
        return parse_calendar_date(value)


class RecurringRule(_Money):
    """Template for materializing Transactions on a schedule."""

    description: str = ""
    category: Optional[str] = None
    wallet_id: Optional[str] = None
    is_income: bool = False
    tags: list[str] = Field(default_factory=list)
    notes: str = ""
    photo_url: Optional[str] = None
    frequency: Frequency = Frequency.monthly
    start_date: date
    end_date: Optional[date] = None
    next_date: date

    @field_validator("start_date", "end_date", "next_date", mode="before")
    @classmethod
    def coerce_dates(cls, value: Any) -> Any:
        if value == "":
            return None
        return parse_calendar_date(value)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value: Any) -> list[str]:
        return [] if value is None else [str(t) for t in value]


MODEL_BY_TYPE: dict[EntityType, type[Record]] = {
    EntityType.expenses: Transaction,
    EntityType.categories: Category,
    EntityType.tags: Tag,
    EntityType.wallets: Wallet,
    EntityType.budgets: Budget,
    EntityType.transfers: Transfer,
    EntityType.recurring: RecurringRule,
}


__all__ = [
    "EntityType",
    "SYNC_ORDER",
    "WalletType",
    "Frequency",
    "Active",
    "Deleted",
    "RecordState",
    "Record",
    "Transaction",
    "Category",
    "Tag",
    "Wallet",
    "Budget",
    "Transfer",
    "RecurringRule",
    "MODEL_BY_TYPE",
    "as_utc",
    "parse_timestamp",
]
