from __future__ import annotations

from pathlib import Path

from pocketsync.cli.command.ledger import run
from pocketsync.duplicates.ledger import CleanedDuplicateLedger
from pocketsync.workspace import Workspace


def it_should_list_recently_cleaned_duplicates(tmp_path: Path, capsys):
    workspace = Workspace(root=tmp_path)
    CleanedDuplicateLedger(workspace.cleaned_duplicates_path).track("t9", "manual_duplicate_cleanup", "fp-1")

    code = run(workspace=workspace)

    assert code == 0
    out = capsys.readouterr().out
    assert "t9" in out
    assert "1 tracked" in out


def it_should_forget_everything_with_clear(tmp_path: Path):
    workspace = Workspace(root=tmp_path)
    ledger = CleanedDuplicateLedger(workspace.cleaned_duplicates_path)
    ledger.track("t9", "manual_duplicate_cleanup", "fp-1")

    run(workspace=workspace, clear=True)

    assert ledger.entries() == {}


def it_should_report_an_empty_ledger(tmp_path: Path, capsys):
    code = run(workspace=Workspace(root=tmp_path))

    assert code == 0
    assert "No duplicates cleaned" in capsys.readouterr().out
