from __future__ import annotations

"""
PocketSync CLI Wrapper (Typer + Rich)

Offline-first expense tracker with manual backup to a remote PostgREST store.
Nothing leaves the machine unless you run upload, download or a --remote scan.

All paths are resolved from a single workspace root:
  --data-dir / POCKETSYNC_DATA env var / current working directory
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.logging import RichHandler

from pocketsync.config import DEFAULT_MAX_TO_DELETE
from pocketsync.workspace import Workspace

HELP_WRITE = "Persist changes (default: dry-run)"
HELP_ALLOW_CLEANED = "Also transfer expenses recently removed as duplicates"
HELP_YES = "Skip confirmation prompts"

APP_HELP = "PocketSync CLI (offline-first, manual sync)"

logging.basicConfig(level=logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

app = typer.Typer(no_args_is_help=True, add_completion=False, help=APP_HELP)


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        envvar="POCKETSYNC_DATA",
        help="Workspace root directory (default: current directory)",
    ),
    remote_url: Optional[str] = typer.Option(
        None, "--remote-url", envvar="POCKETSYNC_REMOTE_URL", help="Remote backend base URL"
    ),
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="POCKETSYNC_API_KEY", help="Remote API key"),
    user_id: Optional[str] = typer.Option(None, "--user-id", envvar="POCKETSYNC_USER_ID", help="Signed-in user id"),
    access_token: Optional[str] = typer.Option(
        None, "--access-token", envvar="POCKETSYNC_ACCESS_TOKEN", help="Session access token"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log sync progress"),
):
    """PocketSync CLI: all paths resolved from a single workspace root."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
            force=True,
        )
        logging.getLogger("httpx").setLevel(logging.WARNING)
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = Workspace.resolve(data_dir)
    ctx.obj["overrides"] = {
        "url": remote_url,
        "api_key": api_key,
        "user_id": user_id,
        "access_token": access_token,
    }


def _ws(ctx: typer.Context) -> Workspace:
    return ctx.obj["workspace"]


def _settings(ctx: typer.Context):
    from pocketsync.cli.command.util import resolve_settings

    return resolve_settings(_ws(ctx), ctx.obj["overrides"])


@app.command()
def init(ctx: typer.Context):
    """Initialize a new workspace with the local database and starter config.

    Remote options given on the command line are saved to config/remote.yml
    when it does not exist yet. Safe to run on an existing workspace.

    Examples:
      pocketsync --data-dir ~/expenses init
      pocketsync --remote-url https://example.supabase.co --api-key KEY init
    """
    from pocketsync.cli.command import init as cmd_init

    code = cmd_init.run(workspace=_ws(ctx), settings=_settings(ctx))
    raise typer.Exit(code=code)


@app.command()
def status(ctx: typer.Context):
    """Show sync status: pending changes, last sync, counts and recommendations."""
    from pocketsync.cli.command import status as cmd_status

    code = cmd_status.run(workspace=_ws(ctx), settings=_settings(ctx))
    raise typer.Exit(code=code)


@app.command()
def upload(
    ctx: typer.Context,
    allow_cleaned: bool = typer.Option(False, "--allow-cleaned", help=HELP_ALLOW_CLEANED),
):
    """Upload all local data to the remote backup (upsert by id).

    Requires a signed-in session (--user-id and --access-token, or config).

    Examples:
      pocketsync upload
      pocketsync upload --allow-cleaned
    """
    from pocketsync.cli.command import upload as cmd_upload

    code = cmd_upload.run(workspace=_ws(ctx), settings=_settings(ctx), allow_cleaned=allow_cleaned)
    raise typer.Exit(code=code)


@app.command()
def download(
    ctx: typer.Context,
    replace: bool = typer.Option(False, "--replace", help="Purge local data before downloading"),
    no_merge: bool = typer.Option(False, "--no-merge", help="Purge each local type before writing its remote records"),
    yes: bool = typer.Option(False, "--yes", "-y", help=HELP_YES),
    allow_cleaned: bool = typer.Option(False, "--allow-cleaned", help=HELP_ALLOW_CLEANED),
):
    """Download the remote backup into the local store.

    By default records are merged: remote copies update local records with
    the same id and every other remote record is added.

    Examples:
      pocketsync download
      pocketsync download --replace --yes
    """
    from pocketsync.cli.command import download as cmd_download

    code = cmd_download.run(
        workspace=_ws(ctx),
        settings=_settings(ctx),
        replace=replace,
        merge=not no_merge,
        yes=yes,
        allow_cleaned=allow_cleaned,
    )
    raise typer.Exit(code=code)


@app.command()
def export(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination JSON file"),
):
    """Write a JSON backup of all local data (no network needed).

    Examples:
      pocketsync export
      pocketsync export -o ~/backups/expenses.json
    """
    from pocketsync.cli.command import export as cmd_export

    code = cmd_export.run(workspace=_ws(ctx), settings=_settings(ctx), output=output)
    raise typer.Exit(code=code)


@app.command("import")
def import_(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Backup file produced by `pocketsync export`"),
    replace: bool = typer.Option(False, "--replace", help="Purge local data before importing"),
    allow_cleaned: bool = typer.Option(False, "--allow-cleaned", help=HELP_ALLOW_CLEANED),
    yes: bool = typer.Option(False, "--yes", "-y", help=HELP_YES),
):
    """Import a JSON backup into the local store.

    Examples:
      pocketsync import exports/pocketsync-backup-2024-01-10.json
      pocketsync import backup.json --replace --yes
    """
    from pocketsync.cli.command import import_data as cmd_import

    code = cmd_import.run(
        workspace=_ws(ctx),
        settings=_settings(ctx),
        file=file,
        replace=replace,
        allow_cleaned=allow_cleaned,
        yes=yes,
    )
    raise typer.Exit(code=code)


@app.command()
def duplicates(
    ctx: typer.Context,
    remote: bool = typer.Option(False, "--remote", help="Scan the remote backup instead of the local store"),
    max_to_delete: int = typer.Option(DEFAULT_MAX_TO_DELETE, "--max", min=0, help="Maximum records to delete"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Find duplicate expenses and remove all but the most recent copy.

    Examples:
      pocketsync duplicates
      pocketsync duplicates --write --max 20
      pocketsync duplicates --remote --write

    Safety: dry-run by default. Use --write to delete.
    """
    from pocketsync.cli.command import duplicates as cmd_duplicates

    code = cmd_duplicates.run(
        workspace=_ws(ctx),
        settings=_settings(ctx),
        remote=remote,
        max_to_delete=max_to_delete,
        write=write,
    )
    raise typer.Exit(code=code)


@app.command()
def add(
    ctx: typer.Context,
    amount: str = typer.Argument(..., help="Amount (positive, e.g. 12.50)"),
    description: str = typer.Argument(..., help="Short description"),
    on: Optional[datetime] = typer.Option(None, "--date", "-d", formats=["%Y-%m-%d"], help="Date (YYYY-MM-DD, default: today)"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category id"),
    wallet: Optional[str] = typer.Option(None, "--wallet", "-w", help="Wallet id"),
    income: bool = typer.Option(False, "--income", help="Record as income"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag id (repeatable)"),
    notes: str = typer.Option("", "--notes", help="Free-form notes"),
    force: bool = typer.Option(False, "--force", help="Add even when it looks like a duplicate"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Add an expense (or income) after checking for duplicates.

    Examples:
      pocketsync add 12.50 "Lunch" --category food --wallet w1 --write
      pocketsync add 3000 "Salary" --income --date 2024-01-31 --write

    Safety: dry-run by default. Use --write to persist.
    """
    from pocketsync.cli.command import add as cmd_add

    code = cmd_add.run(
        workspace=_ws(ctx),
        settings=_settings(ctx),
        amount=amount,
        description=description,
        on=on.date() if on else None,
        category=category,
        wallet=wallet,
        income=income,
        tags=tag,
        notes=notes,
        force=force,
        write=write,
    )
    raise typer.Exit(code=code)


@app.command()
def recurring(
    ctx: typer.Context,
    today: Optional[datetime] = typer.Option(None, "--today", formats=["%Y-%m-%d"], help="Process rules due by this date"),
    write: bool = typer.Option(False, "--write", help=HELP_WRITE),
):
    """Create expenses for recurring rules that have come due.

    Examples:
      pocketsync recurring
      pocketsync recurring --write

    Safety: dry-run by default. Use --write to persist.
    """
    from pocketsync.cli.command import recurring as cmd_recurring

    code = cmd_recurring.run(
        workspace=_ws(ctx),
        settings=_settings(ctx),
        today=today.date() if today else None,
        write=write,
    )
    raise typer.Exit(code=code)


@app.command()
def ledger(
    ctx: typer.Context,
    clear: bool = typer.Option(False, "--clear", help="Forget all cleaned duplicates"),
):
    """Show expenses recently removed as duplicates (kept for 7 days)."""
    from pocketsync.cli.command import ledger as cmd_ledger

    code = cmd_ledger.run(workspace=_ws(ctx), clear=clear)
    raise typer.Exit(code=code)


@app.command()
def logout(ctx: typer.Context):
    """Sign out and discard the cached sync status. Local data is kept."""
    from pocketsync.cli.command import logout as cmd_logout

    code = cmd_logout.run(workspace=_ws(ctx), settings=_settings(ctx))
    raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
