from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..normalize.schema import RiskAssessment, RiskLevel

LEVEL_STYLES = {
    RiskLevel.CRITICAL: "bold red",
    RiskLevel.MODERATE: "bold yellow",
    RiskLevel.LOW: "bold green",
}


def build_assessment_table(assessment: RiskAssessment, *, session_name: str = "") -> Table:
    title = f"Risk Assessment: {escape(session_name)}" if session_name else "Risk Assessment"
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Risk score", str(assessment.score))
    table.add_row("Risk level", f"[{LEVEL_STYLES[assessment.level]}]{assessment.level.value}[/]")
    table.add_row("Components scanned", str(assessment.total_components_scanned))
    table.add_row("Failed components", str(assessment.failed_components_count))
    table.add_row("Critical issues", str(len(assessment.critical)))
    table.add_row("Moderate issues", str(len(assessment.moderate)))
    table.add_row("Slight issues", str(len(assessment.slight)))
    return table


def render_assessment_table(
    assessment: RiskAssessment,
    *,
    session_name: str = "",
    show_findings: bool = True,
    console: Optional[Console] = None,
) -> None:
    out = console or Console()
    out.print(build_assessment_table(assessment, session_name=session_name))
    if show_findings and assessment.breakdown:
        findings = Table(title="Findings", show_header=True, header_style="bold")
        findings.add_column("#", justify="right")
        findings.add_column("Finding")
        for i, line in enumerate(assessment.breakdown, start=1):
            findings.add_row(str(i), escape(line))
        out.print(findings)
    for rec in assessment.recommendations:
        out.print(f"- {rec}", markup=False)
