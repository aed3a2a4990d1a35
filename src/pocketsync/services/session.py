"""
Session context for one signed-in user.

A Session is created at sign-in and handed to whatever needs the current
identity; nothing in pocketsync looks the user up from global state. The
connectivity observer and the exit hook are the two environment capabilities
the sync orchestrator depends on, injected so tests can control them.

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, runtime_checkable

import httpx

from pocketsync.model.remote_settings import RemoteSettings

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Identity of the signed-in user, or an anonymous local-only session."""

    user_id: Optional[str] = None
    access_token: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: RemoteSettings) -> "Session":
        return cls(user_id=settings.user_id, access_token=settings.access_token)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def sign_out(self) -> None:
        self.user_id = None
        self.access_token = None


@runtime_checkable
class ConnectivityObserver(Protocol):
    def is_online(self) -> bool: ...


@dataclass
class StaticConnectivity:
    """Connectivity fixed by the caller (tests, or a forced offline mode)."""

    online: bool = True

    def is_online(self) -> bool:
        return self.online


class HttpConnectivity:
    """Treats the remote as online when its base URL answers at all.

    Any HTTP status counts as reachable; only transport failures mean offline.
    """

    def __init__(self, url: Optional[str], transport: Optional[httpx.BaseTransport] = None, timeout: float = 5.0):
        self.url = url
        self.transport = transport
        self.timeout = timeout

    def is_online(self) -> bool:
        if not self.url:
            return False
        try:
            with httpx.Client(transport=self.transport, timeout=self.timeout) as client:
                client.head(self.url)
        except httpx.TransportError as exc:
            logger.info("Remote %s unreachable: %s", self.url, exc)
            return False
        return True


ExitCallback = Callable[[], Optional[str]]


@dataclass
class SessionExitHook:
    """Callbacks consulted when the user is about to leave.

    Each callback may return a warning message; `attempt_exit` collects them
    so the caller can decide whether to warn before quitting.
    """

    callbacks: list[ExitCallback] = field(default_factory=list)

    def on_exit_attempt(self, callback: ExitCallback) -> None:
        self.callbacks.append(callback)

    def attempt_exit(self) -> list[str]:
        warnings = []
        for callback in self.callbacks:
            message = callback()
            if message:
                warnings.append(message)
        return warnings


__all__ = [
    "Session",
    "ConnectivityObserver",
    "StaticConnectivity",
    "HttpConnectivity",
    "SessionExitHook",
]
