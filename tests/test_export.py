from __future__ import annotations

import csv
import json
from pathlib import Path

from cabinet_pm.document.assemble import assemble_report
from cabinet_pm.document.model import Section, SectionKind, Table
from cabinet_pm.export.csv import write_findings_csv
from cabinet_pm.export.json import document_to_dict, write_assessment_json, write_report_json
from cabinet_pm.export.markdown import _md_table, render_report_md, write_report_md
from cabinet_pm.normalize.schema import (
    FINDINGS_CSV_FIELDS,
    Cabinet,
    DiagnosticRecord,
    ErrorType,
    NetworkEquipment,
    SessionInfo,
    Status,
)
from cabinet_pm.risk.aggregate import assess_session, collect_findings

SESSION = SessionInfo(session_id="s-1", session_name="Spring PM", customer_name="Acme | Co")
STAMP = "2025-03-05T12:00:00+00:00"


def _sections():
    cabinets = [Cabinet(location="CAB-1", network_equipment=(NetworkEquipment("Switch", "Entron", Status.FAIL),))]
    diags = [DiagnosticRecord("CTRL-1", 1, ErrorType.NO_CARD)]
    return cabinets, assemble_report(SESSION, cabinets, [], diags, generated_at=STAMP)


def test_md_table_escapes_pipes_and_newlines() -> None:
    lines = _md_table(["A", "B"], [["x|y", "line1\nline2"]])
    assert lines[0] == "| A | B |"
    assert lines[1] == "| --- | --- |"
    assert lines[2] == "| x\\|y | line1<br>line2 |"


def test_render_report_md_orders_headings_and_page_breaks() -> None:
    _, sections = _sections()
    text = render_report_md(sections)
    assert text.startswith("# Preventive Maintenance Report\n")
    assert text.index("## Risk Assessment Summary") < text.index("## Node Maintenance Report")
    assert text.index("## System Diagnostics Summary") < text.index("## Diagnostics Detail: CTRL-1")
    assert text.index("## Diagnostics Detail: CTRL-1") < text.index("## Cabinet 1: CAB-1")
    assert "> - CAB-1: Entron switch voltage out of spec - Critical network infrastructure failure" in text
    assert "| Customer | Acme \\| Co |" in text
    assert "\n---\n" in text
    assert text.endswith("\n")


def test_table_page_break_is_rendered_before_title() -> None:
    section = Section(
        kind=SectionKind.NODE_MAINTENANCE,
        title="Nodes",
        blocks=(Table(headers=("A",), rows=(("1",),), title="Second", page_break_before=True),),
        page_break_before=False,
    )
    lines = render_report_md([section]).splitlines()
    assert lines[:6] == ["## Nodes", "", "---", "", "### Second", ""]


def test_write_report_md_and_json(tmp_path: Path) -> None:
    _, sections = _sections()
    md_path = write_report_md(tmp_path / "out" / "report.md", sections)
    assert md_path.read_text(encoding="utf-8") == render_report_md(sections)

    json_path = write_report_json(tmp_path / "out" / "report.json", sections)
    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert data == document_to_dict(sections)
    assert [s["kind"] for s in data["sections"]][:2] == ["title", "risk_summary"]
    first_block = data["sections"][1]["blocks"][0]
    assert first_block["type"] == "paragraph"
    assert first_block["text"] == "Risk Score: 20"


def test_write_assessment_json(tmp_path: Path) -> None:
    cabinets, _ = _sections()
    assessment = assess_session(cabinets)
    path = write_assessment_json(tmp_path / "assessment.json", assessment, session=SESSION)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["assessment"]["score"] == 20
    assert data["assessment"]["level"] == "CRITICAL"
    assert data["assessment"]["critical"] == [
        "CAB-1: Entron switch voltage out of spec - Critical network infrastructure failure"
    ]
    assert data["session"]["session_id"] == "s-1"


def test_write_findings_csv(tmp_path: Path) -> None:
    cabinets, _ = _sections()
    collected = collect_findings(cabinets)
    path = tmp_path / "findings.csv"
    assert write_findings_csv(collected.findings, path) == 1
    with path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == FINDINGS_CSV_FIELDS
    assert rows[1] == [
        "CAB-1",
        "CRITICAL",
        "20",
        "Switch Entron voltage out of spec",
        "CAB-1: Entron switch voltage out of spec - Critical network infrastructure failure",
    ]
