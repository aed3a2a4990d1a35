from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import AsyncIterator, Optional

import httpx
from rich.console import Console
from rich.table import Table
from rich.text import Text

from pocketsync.duplicates.ledger import CleanedDuplicateLedger
from pocketsync.model.remote_settings import RemoteSettings, load_remote_settings
from pocketsync.model.sync_status import SyncStatusCache
from pocketsync.services.session import (
    ConnectivityObserver,
    HttpConnectivity,
    Session,
    SessionExitHook,
    StaticConnectivity,
)
from pocketsync.services.sync_manager import ManualSyncManager, SyncResult
from pocketsync.storage.local_store import LocalDatabase
from pocketsync.storage.remote_store import RemoteDatabase
from pocketsync.workspace import Workspace

console = Console()


def fmt_amount(amount: Decimal, is_income: bool = False) -> Text:
    s = f"{amount:,.2f}"
    if is_income:
        return Text(f"+{s}", style="bold green")
    return Text(f"-{s}", style="bold red")


def resolve_settings(workspace: Workspace, overrides: Optional[dict] = None) -> RemoteSettings:
    """Settings from config/remote.yml with CLI/env overrides applied."""
    return load_remote_settings(workspace.remote_config).merged(**(overrides or {}))


def default_connectivity(settings: RemoteSettings) -> ConnectivityObserver:
    if not settings.url:
        return StaticConnectivity(online=False)
    return HttpConnectivity(settings.url)


@dataclass
class Runtime:
    """Everything one CLI invocation needs, wired for the workspace."""

    workspace: Workspace
    settings: RemoteSettings
    local: LocalDatabase
    remote: Optional[RemoteDatabase]
    ledger: CleanedDuplicateLedger
    exit_hook: SessionExitHook
    manager: ManualSyncManager


@asynccontextmanager
async def open_runtime(
    workspace: Workspace,
    settings: RemoteSettings,
    connectivity: Optional[ConnectivityObserver] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[Runtime]:
    """Open stores for one command and close the remote client afterwards.

    Unsynced-change warnings from the exit hook are printed once the command
    body has finished.
    """
    local = LocalDatabase(workspace.local_store_path)
    remote = RemoteDatabase(settings, transport=transport) if settings.url else None
    ledger = CleanedDuplicateLedger(workspace.cleaned_duplicates_path)
    exit_hook = SessionExitHook()
    manager = ManualSyncManager(
        Session.from_settings(settings),
        local,
        remote.stores() if remote else None,
        ledger,
        status_cache=SyncStatusCache(workspace.sync_status_path),
        connectivity=connectivity or default_connectivity(settings),
        exit_hook=exit_hook,
    )
    try:
        yield Runtime(workspace, settings, local, remote, ledger, exit_hook, manager)
        for warning in exit_hook.attempt_exit():
            console.print(f"[yellow]{warning}[/]")
    finally:
        if remote is not None:
            await remote.aclose()


def print_sync_result(result: SyncResult, verb: str) -> None:
    """Per-type table of a sync result followed by its message."""
    table = Table(title=f"{result.operation.capitalize()} summary", show_lines=False)
    table.add_column("Type", style="cyan")
    table.add_column(verb, justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Errors", justify="right")
    for name, stats in result.stats.items():
        errors = Text(str(stats.errors), style="red") if stats.errors else Text("0")
        table.add_row(name, f"{stats.succeeded}/{stats.total}", str(stats.skipped), errors)
    console.print(table)

    for stats in result.stats.values():
        for failure in stats.failures[:5]:
            console.print(f"  [red]-[/] {failure}")

    if result.success:
        console.print(f"[green]{result.message}[/]")
    else:
        console.print(f"[red]{result.message}[/] {result.error}")
