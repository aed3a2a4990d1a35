"""
Where a pocketsync installation keeps its files.

One directory holds everything the CLI reads or writes:

    data/pocketsync.db            offline SQLite store (source of truth)
    data/cleaned_duplicates.json  ids removed as duplicates in the last 7 days
    data/sync_status.json         last sync outcome, errors and local counts
    exports/                      JSON backups written by `pocketsync export`
    config/remote.yml             optional remote backend settings

The directory comes from --data-dir, then POCKETSYNC_DATA, then the current
directory.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class Workspace:
    """A pocketsync data directory; every file path derives from `root`."""

    root: Path

    @classmethod
    def resolve(cls, explicit: Path | None = None) -> Workspace:
        """Pick the data directory: `explicit`, else POCKETSYNC_DATA, else the cwd."""
        if explicit is not None:
            return cls(root=explicit)
        env = os.environ.get("POCKETSYNC_DATA")
        if env:
            return cls(root=Path(env))
        return cls(root=Path.cwd())

    @property
    def local_store_path(self) -> Path:
        return self.root / "data" / "pocketsync.db"

    @property
    def cleaned_duplicates_path(self) -> Path:
        return self.root / "data" / "cleaned_duplicates.json"

    @property
    def sync_status_path(self) -> Path:
        return self.root / "data" / "sync_status.json"

    @property
    def exports_dir(self) -> Path:
        return self.root / "exports"

    @property
    def remote_config(self) -> Path:
        return self.root / "config" / "remote.yml"


__all__ = ["Workspace"]
