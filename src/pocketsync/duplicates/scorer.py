"""
Pairwise duplicate scoring for transactions.

Weighted evidence accumulation: each matching signal adds points, the sum is
capped at 100 and a pair is a duplicate at 65 or more. Amount and description
carry most of the weight; date and creation-time proximity catch accidental
double submission. 65 needs amount + description + at least one secondary
signal, so routine purchases that merely look alike stay below it.

| Signal                                   | Points |
|------------------------------------------|--------|
| amounts differ by less than 0.01         | 35     |
| description identical / >0.8 / >0.6      | 30/20/10 |
| same day / within 24h / within 48h       | 25/15/5 |
| same category                            | 10     |
| same wallet                              | 10     |
| same income/expense flag                 | 5      |
| identical non-empty notes                | 5      |
| created within 5 / 30 minutes            | 15/10  |
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from pocketsync.config import AMOUNT_TOLERANCE, DUPLICATE_THRESHOLD
from pocketsync.model.records import Transaction

MAX_CONFIDENCE = 100


@dataclass
class DuplicateScore:
    is_duplicate: bool
    confidence: int
    reasons: list[str] = field(default_factory=list)


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Normalized edit-distance similarity in [0, 1]."""
    if not a or not b:
        return 0.0
    longer = a if len(a) >= len(b) else b
    return (len(longer) - levenshtein_distance(a, b)) / len(longer)


def _normalize(text: str) -> str:
    return (text or "").strip().lower()


def _created(txn: Transaction) -> datetime:
    if txn.created_at is not None:
        return txn.created_at
    return datetime(txn.date.year, txn.date.month, txn.date.day, tzinfo=timezone.utc)


def _description_points(a: str, b: str) -> tuple[int, str | None]:
    if not a or not b:
        return 0, None
    if a == b:
        return 30, "Identical description"
    ratio = similarity(a, b)
    if ratio > 0.8:
        return 20, "Very similar description"
    if ratio > 0.6:
        return 10, "Similar description"
    return 0, None


def _date_points(a: Transaction, b: Transaction) -> tuple[int, str | None]:
    hours = abs((a.date - b.date).days) * 24
    if hours == 0:
        return 25, "Same date"
    if hours <= 24:
        return 15, "Within 24 hours"
    if hours <= 48:
        return 5, "Within 48 hours"
    return 0, None


def _creation_points(a: Transaction, b: Transaction) -> tuple[int, str | None]:
    minutes = abs((_created(a) - _created(b)).total_seconds()) / 60
    if minutes <= 5:
        return 15, "Created within 5 minutes"
    if minutes <= 30:
        return 10, "Created within 30 minutes"
    return 0, None


def score_duplicate(a: Transaction, b: Transaction) -> DuplicateScore:
    """Score how likely two transactions are the same entry recorded twice."""
    if a.id == b.id:
        return DuplicateScore(True, MAX_CONFIDENCE, ["Identical transaction ID"])

    score = 0
    reasons: list[str] = []

    def add(points: int, reason: str | None) -> None:
        nonlocal score
        if points:
            score += points
            reasons.append(reason)

    if abs(a.amount - b.amount) < AMOUNT_TOLERANCE:
        add(35, "Same amount")
    add(*_description_points(_normalize(a.description), _normalize(b.description)))
    add(*_date_points(a, b))
    if a.category and a.category == b.category:
        add(10, "Same category")
    if a.wallet_id and a.wallet_id == b.wallet_id:
        add(10, "Same wallet")
    if a.is_income == b.is_income:
        add(5, "Same transaction type")
    notes_a, notes_b = _normalize(a.notes), _normalize(b.notes)
    if notes_a and notes_a == notes_b:
        add(5, "Identical notes")
    add(*_creation_points(a, b))

    confidence = min(score, MAX_CONFIDENCE)
    return DuplicateScore(confidence >= DUPLICATE_THRESHOLD, confidence, reasons)


def fingerprint(txn: Transaction) -> str:
    """Coarse bucketing key: amount, description, date, wallet and type."""
    kind = "income" if txn.is_income else "expense"
    return (
        f"{txn.amount:.2f}-{_normalize(txn.description)}-{txn.date.isoformat()}"
        f"-{txn.wallet_id or ''}-{kind}"
    )


__all__ = ["DuplicateScore", "score_duplicate", "similarity", "levenshtein_distance", "fingerprint"]
