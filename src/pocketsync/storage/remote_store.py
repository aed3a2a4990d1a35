"""
Remote record store over a PostgREST endpoint (one table per entity type).

Every call is scoped to the signed-in user through the `user_id` column; row
level security on the server enforces the same rule. Records are exchanged in
the remote (snake_case) shape, see pocketsync.model.transcoder.

Error mapping:
- transport failures (DNS, refused connection, CORS-like proxies) -> RemoteUnavailableError
- 401 / 403 -> UnauthenticatedError
- 409 on insert -> RecordConflictError
- any other error status -> StoreError
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from pocketsync.config import REMOTE_REST_PATH
from pocketsync.errors import (
    RecordConflictError,
    RecordNotFoundError,
    RemoteUnavailableError,
    StoreError,
    UnauthenticatedError,
)
from pocketsync.model.records import EntityType
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.model.transcoder import SCOPE_COLUMN
from pocketsync.storage.record_store import StoreRecord, StoreSet, record_id

logger = logging.getLogger(__name__)


class RemoteRecordStore:
    """Async CRUD for one remote table."""

    def __init__(self, client: httpx.AsyncClient, entity_type: EntityType):
        self.client = client
        self.entity_type = entity_type
        self.path = f"/{entity_type.value}"

    @staticmethod
    def _scope(scope_id: Optional[str]) -> str:
        if not scope_id:
            raise UnauthenticatedError()
        return scope_id

    async def _request(
        self,
        method: str,
        params: dict[str, str],
        json: Any = None,
        rid: Optional[str] = None,
    ) -> list[StoreRecord]:
        try:
            response = await self.client.request(method, self.path, params=params, json=json)
        except httpx.TransportError as exc:
            raise RemoteUnavailableError(
                f"NetworkError when attempting to fetch {self.entity_type.value}: {exc}"
            ) from exc

        if response.status_code in (401, 403):
            raise UnauthenticatedError(f"Remote rejected credentials ({response.status_code})")
        if response.status_code == 409:
            raise RecordConflictError(self.entity_type.value, rid or "?")
        if response.is_error:
            raise StoreError(
                f"Remote {self.entity_type.value} {method} failed "
                f"({response.status_code}): {response.text}"
            )
        if not response.content:
            return []
        body = response.json()
        return body if isinstance(body, list) else [body]

    async def get_all(self, scope_id: Optional[str] = None) -> list[StoreRecord]:
        params = {
            "select": "*",
            SCOPE_COLUMN: f"eq.{self._scope(scope_id)}",
            "deleted_at": "is.null",
        }
        return await self._request("GET", params)

    async def get_all_including_deleted(self, scope_id: Optional[str] = None) -> list[StoreRecord]:
        params = {"select": "*", SCOPE_COLUMN: f"eq.{self._scope(scope_id)}"}
        return await self._request("GET", params)

    async def get_by_id(self, record_id: str, scope_id: Optional[str] = None) -> Optional[StoreRecord]:
        params = {
            "select": "*",
            "id": f"eq.{record_id}",
            SCOPE_COLUMN: f"eq.{self._scope(scope_id)}",
        }
        rows = await self._request("GET", params)
        return rows[0] if rows else None

    async def add(self, record: StoreRecord, scope_id: Optional[str] = None) -> StoreRecord:
        scope = self._scope(scope_id)
        rid = record_id(record)
        rows = await self._request("POST", {}, json=[{**record, SCOPE_COLUMN: scope}], rid=rid)
        return rows[0] if rows else record

    async def update(self, record: StoreRecord, scope_id: Optional[str] = None) -> StoreRecord:
        scope = self._scope(scope_id)
        rid = record_id(record)
        params = {"id": f"eq.{rid}", SCOPE_COLUMN: f"eq.{scope}"}
        rows = await self._request("PATCH", params, json={**record, SCOPE_COLUMN: scope}, rid=rid)
        if not rows:
            raise RecordNotFoundError(self.entity_type.value, rid)
        return rows[0]

    async def delete(self, record_id: str, scope_id: Optional[str] = None) -> str:
        params = {"id": f"eq.{record_id}", SCOPE_COLUMN: f"eq.{self._scope(scope_id)}"}
        rows = await self._request("DELETE", params, rid=str(record_id))
        if not rows:
            raise RecordNotFoundError(self.entity_type.value, str(record_id))
        return str(record_id)


class RemoteDatabase:
    """Owns the HTTP client shared by every remote table store.

    Usage:
        async with RemoteDatabase(settings) as remote:
            rows = await remote.stores()[EntityType.expenses].get_all(user_id)
    """

    def __init__(self, settings: RemoteSettings, transport: httpx.AsyncBaseTransport | None = None):
        if not settings.url:
            raise StoreError("Remote URL is not configured")
        token = settings.access_token or settings.api_key or ""
        self.client = httpx.AsyncClient(
            base_url=settings.url.rstrip("/") + REMOTE_REST_PATH,
            headers={
                "apikey": settings.api_key or "",
                "Authorization": f"Bearer {token}",
                "Prefer": "return=representation",
            },
            transport=transport,
            timeout=None,
        )

    def stores(self) -> StoreSet:
        return {entity: RemoteRecordStore(self.client, entity) for entity in EntityType}

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "RemoteDatabase":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


__all__ = ["RemoteDatabase", "RemoteRecordStore"]
