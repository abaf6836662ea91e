from __future__ import annotations

import csv
import json
import logging
import sys
from pathlib import Path
from typing import List

import pytest

from cabinet_pm.cli import main
from cabinet_pm.logging import setup_logging
from cabinet_pm.util.errors import ExitCode


@pytest.fixture(autouse=True)
def _isolated_logging(monkeypatch):
    for name in ("CABINET_PM_INPUT", "CABINET_PM_OUTDIR", "CABINET_PM_FORMAT", "CABINET_PM_JSON_LOGS"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    setattr(setup_logging, "_configured", False)
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    setattr(setup_logging, "_configured", False)


def _write_bundle(path: Path, *, switch_status: str = "fail") -> Path:
    raw = {
        "session": {"session_id": "s-1", "session_name": "Spring PM", "customer_name": "Acme"},
        "cabinets": [
            {
                "location": "CAB-1",
                "network_equipment": [{"equipment_type": "Switch", "model_number": "Entron", "status": switch_status}],
            }
        ],
        "node_maintenance": [{"node_id": "1", "node_name": "CTRL-1", "node_type": "Controller"}],
        "diagnostics": [{"controller_name": "CTRL-1", "card_number": 2, "error_type": "bad"}],
    }
    path.write_text(json.dumps(raw), encoding="utf-8")
    return path


def _run(monkeypatch, argv: List[str]) -> int:
    monkeypatch.setattr(sys, "argv", ["cabinet-pm", *argv])
    with pytest.raises(SystemExit) as exc:
        main()
    return int(exc.value.code or 0)


def test_report_writes_all_artifacts(monkeypatch, tmp_path) -> None:
    bundle = _write_bundle(tmp_path / "bundle.json")
    outdir = tmp_path / "out"

    code = _run(monkeypatch, ["report", str(bundle), "--outdir", str(outdir), "--no-timestamp-outdir"])
    assert code == 0

    for name in ("report.md", "report.json", "assessment.json", "findings.csv", "snapshot.json"):
        assert (outdir / name).is_file(), name
    assert (outdir / "logs" / "debug.log").is_file()

    md = (outdir / "report.md").read_text(encoding="utf-8")
    assert md.startswith("# Preventive Maintenance Report")
    assert "## Diagnostics Detail: CTRL-1" in md

    assessment = json.loads((outdir / "assessment.json").read_text(encoding="utf-8"))
    assert assessment["assessment"]["score"] == 20
    assert assessment["assessment"]["level"] == "CRITICAL"

    with (outdir / "findings.csv").open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["severity"] for r in rows] == ["CRITICAL"]

    snapshot = json.loads((outdir / "snapshot.json").read_text(encoding="utf-8"))
    assert snapshot["error_count"] == 1
    assert snapshot["risk_level"] == "CRITICAL"


def test_report_can_skip_optional_artifacts(monkeypatch, tmp_path) -> None:
    bundle = _write_bundle(tmp_path / "bundle.json")
    outdir = tmp_path / "out"

    code = _run(
        monkeypatch,
        ["report", str(bundle), "--outdir", str(outdir), "--no-timestamp-outdir", "--no-csv", "--no-snapshot"],
    )
    assert code == 0
    assert (outdir / "report.md").is_file()
    assert not (outdir / "findings.csv").exists()
    assert not (outdir / "snapshot.json").exists()


def test_assess_json_output(monkeypatch, tmp_path, capsys) -> None:
    bundle = _write_bundle(tmp_path / "bundle.json")

    code = _run(monkeypatch, ["assess", str(bundle), "--format", "json"])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["score"] == 20
    assert data["level"] == "CRITICAL"
    assert data["failed_components_count"] == 1


def test_assess_table_output(monkeypatch, tmp_path, capsys) -> None:
    bundle = _write_bundle(tmp_path / "bundle.json", switch_status="pass")

    code = _run(monkeypatch, ["assess", str(bundle)])
    assert code == 0
    out = capsys.readouterr().out
    assert "Risk Assessment: Spring PM" in out
    assert "LOW" in out


def test_trend_between_two_reports(monkeypatch, tmp_path) -> None:
    prev_bundle = _write_bundle(tmp_path / "prev.json", switch_status="fail")
    curr_bundle = _write_bundle(tmp_path / "curr.json", switch_status="pass")
    assert _run(monkeypatch, ["report", str(prev_bundle), "--outdir", str(tmp_path / "prev"), "--no-timestamp-outdir"]) == 0
    assert _run(monkeypatch, ["report", str(curr_bundle), "--outdir", str(tmp_path / "curr"), "--no-timestamp-outdir"]) == 0

    code = _run(
        monkeypatch,
        [
            "trend",
            "--prev",
            str(tmp_path / "prev" / "snapshot.json"),
            "--curr",
            str(tmp_path / "curr" / "snapshot.json"),
            "--outdir",
            str(tmp_path / "trend"),
        ],
    )
    assert code == 0
    trend = json.loads((tmp_path / "trend" / "trend.json").read_text(encoding="utf-8"))
    assert trend["deltas"]["risk_score"] == -20
    assert trend["level"]["direction"] == "improved"


def test_missing_input_is_config_error(monkeypatch) -> None:
    assert _run(monkeypatch, ["assess"]) == int(ExitCode.CONFIG_ERROR)


def test_trend_requires_both_snapshots(monkeypatch, tmp_path) -> None:
    assert _run(monkeypatch, ["trend", "--prev", str(tmp_path / "a.json")]) == int(ExitCode.CONFIG_ERROR)


def test_bad_bundle_is_input_error(monkeypatch, tmp_path) -> None:
    bad = tmp_path / "bundle.json"
    bad.write_text(json.dumps({"cabinets": []}), encoding="utf-8")
    assert _run(monkeypatch, ["assess", str(bad)]) == int(ExitCode.INPUT_ERROR)
