import shutil
from pathlib import Path

from openpyxl import load_workbook

from cot_tracker.pipeline import orchestrator, run_sync

from conftest import FakeResponse, FakeSession, raw_report

REPO_ROOT = Path(__file__).resolve().parent.parent


def _project(tmp_path):
    shutil.copytree(REPO_ROOT / "configs", tmp_path / "configs")
    return tmp_path


def _patch_session(monkeypatch, responses):
    session = FakeSession(responses)
    monkeypatch.setattr(orchestrator.time, "sleep", lambda _: None)
    monkeypatch.setattr(orchestrator, "CftcClient", _client_factory(session))
    return session


def _client_factory(session):
    real = orchestrator.CftcClient

    def make(**kwargs):
        return real(session=session, **kwargs)

    return make


def test_run_sync_single_market_writes_workbook(tmp_path, monkeypatch):
    root = _project(tmp_path)
    _patch_session(monkeypatch, [FakeResponse([raw_report()])])

    code = run_sync.main(["--root", str(root), "--market", "GOLD"])

    assert code == 0
    ws = load_workbook(root / "data/series/cot_positions.xlsx")["GOLD"]
    assert ws.max_row == 2
    assert ws["G2"].value == 6


def test_run_sync_exit_code_when_everything_fails(tmp_path, monkeypatch):
    root = _project(tmp_path)
    _patch_session(monkeypatch, [FakeResponse(None, status_code=500, text="down")] * 4)

    assert run_sync.main(["--root", str(root), "--backend", "csv"]) == 1
