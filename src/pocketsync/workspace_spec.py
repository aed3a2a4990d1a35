from __future__ import annotations

from pathlib import Path

from pocketsync.workspace import Workspace


class DescribeWorkspace:
    class DescribeResolve:
        def it_should_use_explicit_path_when_provided(self):
            ws = Workspace.resolve(explicit=Path("/tmp/my-expenses"))
            assert ws.root == Path("/tmp/my-expenses")

        def it_should_use_pocketsync_data_env_var_when_set(self, monkeypatch):
            monkeypatch.setenv("POCKETSYNC_DATA", "/tmp/env-expenses")
            ws = Workspace.resolve()
            assert ws.root == Path("/tmp/env-expenses")

        def it_should_prefer_explicit_over_env_var(self, monkeypatch):
            monkeypatch.setenv("POCKETSYNC_DATA", "/tmp/env-expenses")
            ws = Workspace.resolve(explicit=Path("/tmp/explicit"))
            assert ws.root == Path("/tmp/explicit")

        def it_should_fall_back_to_cwd_when_no_env_var(self, monkeypatch):
            monkeypatch.delenv("POCKETSYNC_DATA", raising=False)
            ws = Workspace.resolve()
            assert ws.root == Path.cwd()

    class DescribePaths:
        def it_should_compute_local_store_path(self):
            ws = Workspace(root=Path("/data"))
            assert ws.local_store_path == Path("/data/data/pocketsync.db")

        def it_should_compute_cleaned_duplicates_path(self):
            ws = Workspace(root=Path("/data"))
            assert ws.cleaned_duplicates_path == Path("/data/data/cleaned_duplicates.json")

        def it_should_compute_sync_status_path(self):
            ws = Workspace(root=Path("/data"))
            assert ws.sync_status_path == Path("/data/data/sync_status.json")

        def it_should_compute_exports_dir(self):
            ws = Workspace(root=Path("/data"))
            assert ws.exports_dir == Path("/data/exports")

        def it_should_compute_remote_config(self):
            ws = Workspace(root=Path("/data"))
            assert ws.remote_config == Path("/data/config/remote.yml")
