"""
Duplicate detection, cleanup and the cleaned-duplicate ledger.
"""

from pocketsync.duplicates.cleanup import (
    AUTOMATIC_CLEANUP,
    MANUAL_CLEANUP,
    CleanupReport,
    DuplicateCleaner,
    DuplicateGroup,
    PreAddCheck,
    check_before_add,
    find_duplicates,
    summarize,
)
from pocketsync.duplicates.ledger import CleanedDuplicateEntry, CleanedDuplicateLedger
from pocketsync.duplicates.scorer import DuplicateScore, fingerprint, score_duplicate

__all__ = [
    "AUTOMATIC_CLEANUP",
    "MANUAL_CLEANUP",
    "CleanupReport",
    "DuplicateCleaner",
    "DuplicateGroup",
    "PreAddCheck",
    "check_before_add",
    "find_duplicates",
    "summarize",
    "CleanedDuplicateEntry",
    "CleanedDuplicateLedger",
    "DuplicateScore",
    "fingerprint",
    "score_duplicate",
]
