"""
Tests for the PostgREST remote record store, using httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from pocketsync.errors import (
    RecordConflictError,
    RecordNotFoundError,
    RemoteUnavailableError,
    StoreError,
    UnauthenticatedError,
)
from pocketsync.model.records import EntityType
from pocketsync.model.remote_settings import RemoteSettings
from pocketsync.storage.remote_store import RemoteDatabase

SETTINGS = RemoteSettings(url="https://db.example", api_key="anon-key", access_token="jwt")


class FakePostgrest:
    """Minimal in-memory PostgREST: eq./is.null filters, insert, patch, delete."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.requests: list[httpx.Request] = []

    def _matches(self, row: dict, params: httpx.QueryParams) -> bool:
        for key, value in params.items():
            if key == "select":
                continue
            if value == "is.null":
                if row.get(key) is not None:
                    return False
            elif value.startswith("eq."):
                if str(row.get(key)) != value[3:]:
                    return False
        return True

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        rows = self.tables.setdefault(table, [])
        params = request.url.params
        if request.method == "GET":
            return httpx.Response(200, json=[r for r in rows if self._matches(r, params)])
        if request.method == "POST":
            created = []
            for row in json.loads(request.content):
                if any(str(r["id"]) == str(row["id"]) for r in rows):
                    return httpx.Response(409, json={"code": "23505"})
                rows.append(row)
                created.append(row)
            return httpx.Response(201, json=created)
        if request.method == "PATCH":
            patch = json.loads(request.content)
            hit = [r for r in rows if self._matches(r, params)]
            for r in hit:
                r.update(patch)
            return httpx.Response(200, json=hit)
        if request.method == "DELETE":
            hit = [r for r in rows if self._matches(r, params)]
            self.tables[table] = [r for r in rows if r not in hit]
            return httpx.Response(200, json=hit)
        return httpx.Response(405)


class DescribeRemoteRecordStore:
    @pytest.fixture
    def server(self):
        return FakePostgrest()

    @pytest.fixture
    def remote(self, server):
        return RemoteDatabase(SETTINGS, transport=httpx.MockTransport(server))

    def it_should_send_auth_headers_to_the_rest_path(self, remote, server):
        asyncio.run(remote.stores()[EntityType.tags].get_all("u1"))

        request = server.requests[0]
        assert request.url.path == "/rest/v1/tags"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer jwt"
        assert request.url.params["user_id"] == "eq.u1"

    def it_should_scope_inserts_to_the_user(self, remote, server):
        store = remote.stores()[EntityType.expenses]

        created = asyncio.run(store.add({"id": "e1", "amount": 5}, "u1"))

        assert created["user_id"] == "u1"
        assert server.tables["expenses"] == [{"id": "e1", "amount": 5, "user_id": "u1"}]

    def it_should_hide_other_users_and_tombstones_from_get_all(self, remote, server):
        server.tables["expenses"] = [
            {"id": "a", "user_id": "u1", "deleted_at": None},
            {"id": "b", "user_id": "u1", "deleted_at": "2024-01-01T00:00:00Z"},
            {"id": "c", "user_id": "u2", "deleted_at": None},
        ]
        store = remote.stores()[EntityType.expenses]

        async def scenario():
            return await store.get_all("u1"), await store.get_all_including_deleted("u1")

        active, everything = asyncio.run(scenario())

        assert [r["id"] for r in active] == ["a"]
        assert [r["id"] for r in everything] == ["a", "b"]

    def it_should_map_duplicate_inserts_to_conflicts(self, remote, server):
        server.tables["wallets"] = [{"id": "w1", "user_id": "u1"}]

        with pytest.raises(RecordConflictError):
            asyncio.run(remote.stores()[EntityType.wallets].add({"id": "w1"}, "u1"))

    def it_should_update_and_delete_by_id(self, remote, server):
        server.tables["categories"] = [{"id": "c1", "name": "Food", "user_id": "u1"}]
        store = remote.stores()[EntityType.categories]

        async def scenario():
            updated = await store.update({"id": "c1", "name": "Groceries"}, "u1")
            deleted = await store.delete("c1", "u1")
            return updated, deleted

        updated, deleted = asyncio.run(scenario())

        assert updated["name"] == "Groceries"
        assert deleted == "c1"
        assert server.tables["categories"] == []

    def it_should_report_missing_rows_on_update(self, remote):
        with pytest.raises(RecordNotFoundError):
            asyncio.run(remote.stores()[EntityType.budgets].update({"id": "nope"}, "u1"))

    def it_should_require_a_scope(self, remote):
        with pytest.raises(UnauthenticatedError):
            asyncio.run(remote.stores()[EntityType.expenses].get_all(None))

    def it_should_map_auth_failures(self):
        remote = RemoteDatabase(SETTINGS, transport=httpx.MockTransport(lambda r: httpx.Response(401)))

        with pytest.raises(UnauthenticatedError):
            asyncio.run(remote.stores()[EntityType.expenses].get_all("u1"))

    def it_should_map_server_errors_to_store_errors(self):
        remote = RemoteDatabase(SETTINGS, transport=httpx.MockTransport(lambda r: httpx.Response(500, text="boom")))

        with pytest.raises(StoreError, match="500"):
            asyncio.run(remote.stores()[EntityType.expenses].get_all("u1"))

    def it_should_map_transport_failures_to_remote_unavailable(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        remote = RemoteDatabase(SETTINGS, transport=httpx.MockTransport(refuse))

        with pytest.raises(RemoteUnavailableError, match="NetworkError"):
            asyncio.run(remote.stores()[EntityType.expenses].get_all("u1"))

    def it_should_refuse_to_start_without_a_url(self):
        with pytest.raises(StoreError):
            RemoteDatabase(RemoteSettings())
