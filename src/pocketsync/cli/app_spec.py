from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from pocketsync.cli.app import app
from pocketsync.workspace import Workspace

runner = CliRunner()


class DescribeApp:
    def it_should_initialize_the_workspace_given_by_data_dir(self, tmp_path: Path):
        result = runner.invoke(app, ["--data-dir", str(tmp_path), "init"])

        assert result.exit_code == 0
        assert Workspace(root=tmp_path).local_store_path.exists()

    def it_should_resolve_the_workspace_from_the_environment(self, tmp_path: Path):
        result = runner.invoke(app, ["init"], env={"POCKETSYNC_DATA": str(tmp_path)})

        assert result.exit_code == 0
        assert Workspace(root=tmp_path).remote_config.exists()

    def it_should_add_in_dry_run_mode_by_default(self, tmp_path: Path):
        result = runner.invoke(app, ["--data-dir", str(tmp_path), "add", "4.25", "Coffee", "--date", "2024-01-11"])

        assert result.exit_code == 0

    def it_should_refuse_upload_when_no_remote_is_configured(self, tmp_path: Path):
        runner.invoke(app, ["--data-dir", str(tmp_path), "init"])

        result = runner.invoke(app, ["--data-dir", str(tmp_path), "upload"])

        assert result.exit_code == 1

    def it_should_sign_out_without_touching_local_data(self, tmp_path: Path):
        runner.invoke(app, ["--data-dir", str(tmp_path), "init"])
        runner.invoke(app, ["--data-dir", str(tmp_path), "status"])
        assert Workspace(root=tmp_path).sync_status_path.exists()

        result = runner.invoke(app, ["--data-dir", str(tmp_path), "logout"])

        assert result.exit_code == 0
        assert not Workspace(root=tmp_path).sync_status_path.exists()
        assert Workspace(root=tmp_path).local_store_path.exists()
