from __future__ import annotations

# Command implementations for the pocketsync CLI.
# Each command module exposes a `run(...)` function that performs the action
# and prints to the console. Typer wrappers in pocketsync.cli.app delegate here.

__all__ = [
    "init",
    "status",
    "upload",
    "download",
    "export",
    "import_data",
    "duplicates",
    "add",
    "recurring",
    "ledger",
    "logout",
]
