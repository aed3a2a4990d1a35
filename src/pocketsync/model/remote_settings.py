from __future__ import annotations

"""
Remote backend settings (YAML loading and saving).

Reads and writes config/remote.yml. Values given on the command line or via
environment variables take precedence over the file; see `merged`.

Privacy
- The access token is never written back to disk by `save_remote_settings`.
"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel


class RemoteSettings(BaseModel):
    """Connection details for the remote PostgREST backend."""

    url: Optional[str] = None
    api_key: Optional[str] = None
    user_id: Optional[str] = None
    access_token: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.api_key)

    def merged(self, **overrides: Optional[str]) -> "RemoteSettings":
        """Return a copy with every non-empty override applied."""
        update = {k: v for k, v in overrides.items() if v}
        return self.model_copy(update=update)


def load_remote_settings(path: Path) -> RemoteSettings:
    """Load remote settings from YAML (safe loader).

    Returns empty settings if the file is missing.
    """
    if not path.exists():
        return RemoteSettings()
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return RemoteSettings.model_validate(data.get("remote") or {})


def save_remote_settings(path: Path, settings: RemoteSettings) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"remote": settings.model_dump(exclude_none=True, exclude={"access_token"})}
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


__all__ = ["RemoteSettings", "load_remote_settings", "save_remote_settings"]
