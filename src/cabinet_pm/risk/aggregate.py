from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from ..logging import get_logger
from ..normalize.schema import (
    Cabinet,
    IssueFinding,
    NodeMaintenanceRecord,
    RiskAssessment,
    RiskLevel,
    Severity,
)
from .components import scan_cabinet
from .nodes import scan_node_maintenance
from .recommend import recommend

LOG = get_logger(__name__)


@dataclass(frozen=True)
class SessionFindings:
    findings: Tuple[IssueFinding, ...]
    scanned: int
    failed: int


def classify_level(critical: Sequence[str], moderate: Sequence[str], slight: Sequence[str]) -> RiskLevel:
    """
    Level follows issue presence, not the score: one critical finding makes the
    session CRITICAL whatever the total, and slight-only sessions stay LOW.
    """
    if critical:
        return RiskLevel.CRITICAL
    if moderate:
        return RiskLevel.MODERATE
    # Slight issues and no issues both report LOW.
    return RiskLevel.LOW


def aggregate(findings: Iterable[IssueFinding], scanned: int, failed: int) -> RiskAssessment:
    buckets: Dict[Severity, List[str]] = {severity: [] for severity in Severity}
    breakdown: List[str] = []
    score = 0
    for finding in findings:
        score += finding.weight
        buckets[finding.severity].append(finding.message)
        breakdown.append(finding.breakdown_line)

    critical = tuple(buckets[Severity.CRITICAL])
    moderate = tuple(buckets[Severity.MODERATE])
    slight = tuple(buckets[Severity.SLIGHT])
    level = classify_level(critical, moderate, slight)

    return RiskAssessment(
        score=score,
        level=level,
        critical=critical,
        moderate=moderate,
        slight=slight,
        recommendations=recommend(level, has_issues=bool(critical or moderate or slight)),
        total_components_scanned=scanned,
        failed_components_count=failed,
        breakdown=tuple(breakdown),
    )


def collect_findings(
    cabinets: Sequence[Cabinet],
    node_maintenance: Sequence[NodeMaintenanceRecord] = (),
) -> SessionFindings:
    """Scan cabinets in input order, then node performance."""
    findings: List[IssueFinding] = []
    scanned = 0
    failed = 0
    for position, cabinet in enumerate(cabinets, start=1):
        scan = scan_cabinet(cabinet, position)
        findings.extend(scan.findings)
        scanned += scan.scanned
        failed += scan.failed
    findings.extend(scan_node_maintenance(node_maintenance))
    return SessionFindings(findings=tuple(findings), scanned=scanned, failed=failed)


def assess_session(
    cabinets: Sequence[Cabinet],
    node_maintenance: Sequence[NodeMaintenanceRecord] = (),
) -> RiskAssessment:
    collected = collect_findings(cabinets, node_maintenance)
    assessment = aggregate(collected.findings, collected.scanned, collected.failed)
    LOG.info(
        "Risk assessment complete",
        extra={
            "step": "assess",
            "phase": "complete",
            "cabinets": len(cabinets),
            "nodes": len(node_maintenance),
            "score": assessment.score,
            "level": assessment.level.value,
        },
    )
    return assessment
