"""
Service layer for pocketsync.

This module contains the functional core separated from the imperative shell
(CLI). Services receive their stores, ledger and session through their
constructors and return data structures for the caller to render.

Principles:
- No UI framework imports (Rich, Typer)
- All dependencies injected through constructors
- Functions return data structures, not void
"""

from pocketsync.services.expense_service import AddExpenseResult, ExpenseService
from pocketsync.services.recurring_service import RecurringRunReport, RecurringService, next_occurrence
from pocketsync.services.session import (
    ConnectivityObserver,
    HttpConnectivity,
    Session,
    SessionExitHook,
    StaticConnectivity,
)
from pocketsync.services.sync_manager import (
    DetailedStatus,
    ExportEnvelope,
    ManualSyncManager,
    SyncResult,
    TypeStats,
)

__all__ = [
    "AddExpenseResult",
    "ExpenseService",
    "RecurringRunReport",
    "RecurringService",
    "next_occurrence",
    "ConnectivityObserver",
    "HttpConnectivity",
    "Session",
    "SessionExitHook",
    "StaticConnectivity",
    "DetailedStatus",
    "ExportEnvelope",
    "ManualSyncManager",
    "SyncResult",
    "TypeStats",
]
