"""Initialize a new pocketsync workspace directory."""

from __future__ import annotations

from pocketsync.model.remote_settings import RemoteSettings, save_remote_settings
from pocketsync.storage.local_store import LocalDatabase
from pocketsync.workspace import Workspace

from .util import console

_STARTER_REMOTE_YML = """\
# Remote backup settings (optional)
# pocketsync works fully offline. Fill these in to enable `pocketsync upload`
# and `pocketsync download` against a PostgREST backend.
#
# Example:
#   remote:
#     url: https://your-project.example.co
#     api_key: your-anon-key
#     user_id: 00000000-0000-0000-0000-000000000000
#
# The access token is never stored here; pass it with --access-token or the
# POCKETSYNC_ACCESS_TOKEN environment variable.

remote: {}
"""


def run(*, workspace: Workspace, settings: RemoteSettings | None = None) -> int:
    """Initialize a new pocketsync workspace.

    Creates the directory structure, the local database and a starter remote
    configuration. Skips anything that already exists (safe to run on an
    existing workspace).

    Args:
        workspace: Workspace to initialize
        settings: Remote settings given on the command line, written to
            config/remote.yml when it does not exist yet

    Returns:
        Exit code (0 = success)
    """
    root = workspace.root
    console.print(f"[bold cyan]Initializing workspace:[/] {root}\n")

    created = []
    skipped = []

    for directory in [workspace.local_store_path.parent, workspace.exports_dir, workspace.remote_config.parent]:
        if directory.exists():
            skipped.append(str(directory.relative_to(root)) + "/")
        else:
            directory.mkdir(parents=True, exist_ok=True)
            created.append(str(directory.relative_to(root)) + "/")

    if workspace.local_store_path.exists():
        skipped.append(str(workspace.local_store_path.relative_to(root)))
    else:
        LocalDatabase(workspace.local_store_path)
        created.append(str(workspace.local_store_path.relative_to(root)))

    if workspace.remote_config.exists():
        skipped.append(str(workspace.remote_config.relative_to(root)))
    else:
        if settings is not None and settings.url:
            save_remote_settings(workspace.remote_config, settings)
        else:
            workspace.remote_config.write_text(_STARTER_REMOTE_YML, encoding="utf-8")
        created.append(str(workspace.remote_config.relative_to(root)))

    if created:
        console.print("[green]Created:[/]")
        for c in created:
            console.print(f"  {c}")

    if skipped:
        console.print("[dim]Already exists (skipped):[/dim]")
        for s in skipped:
            console.print(f"  [dim]{s}[/dim]")

    if not created:
        console.print("[green]Workspace already fully initialized.[/]")
    else:
        console.print(f"\n[green]Workspace ready at {root}[/]")
        console.print("\n[dim]Next steps:[/dim]")
        console.print("  1. Add expenses: [bold]pocketsync add 12.50 'Lunch' --category food --write[/]")
        console.print("  2. Back up locally: [bold]pocketsync export[/]")
        console.print("  3. Optionally configure config/remote.yml, then [bold]pocketsync upload[/]")

    return 0
