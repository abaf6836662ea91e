from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from ..logging import get_logger
from ..normalize.schema import IssueFinding, NodeMaintenanceRecord, PerformanceType, Severity
from ..util.formatting import format_number
from .components import Weight

LOG = get_logger(__name__)

POOR_PERF_INDEX = Weight(15, Severity.MODERATE)
LOW_FREE_TIME = Weight(12, Severity.MODERATE)

# Inclusive thresholds at or below which a controller is considered at risk.
PERF_INDEX_RISK_MAX = 2
FREE_TIME_RISK_MAX = 28


def performance_at_risk(record: NodeMaintenanceRecord) -> bool:
    value = record.performance_value
    if value is None or record.performance_type is None:
        return False
    if record.performance_type is PerformanceType.PERF_INDEX:
        return value <= PERF_INDEX_RISK_MAX
    if record.performance_type is PerformanceType.FREE_TIME:
        return value <= FREE_TIME_RISK_MAX
    return False


def _finding_for(record: NodeMaintenanceRecord) -> Optional[IssueFinding]:
    if not performance_at_risk(record):
        return None
    name = record.label
    value = format_number(record.performance_value)  # type: ignore[arg-type]
    if record.performance_type is PerformanceType.PERF_INDEX:
        return IssueFinding(
            scope_label=name,
            severity=POOR_PERF_INDEX.severity,
            weight=POOR_PERF_INDEX.weight,
            message=f"{name}: Performance index {value}/5 indicates degraded controller performance",
            cause=f"Poor performance index ({value}/5)",
        )
    return IssueFinding(
        scope_label=name,
        severity=LOW_FREE_TIME.severity,
        weight=LOW_FREE_TIME.weight,
        message=f"{name}: Free time {value}% indicates high controller utilization",
        cause=f"Low free time ({value}%)",
    )


def scan_node_maintenance(records: Iterable[NodeMaintenanceRecord]) -> Tuple[IssueFinding, ...]:
    """
    Emit findings for controllers whose recorded performance indicates
    degradation. Node performance adds risk but is not a scanned component.
    """
    findings: List[IssueFinding] = []
    for record in records:
        finding = _finding_for(record)
        if finding is not None:
            findings.append(finding)
    if findings:
        LOG.debug("Node performance findings", extra={"findings": len(findings)})
    return tuple(findings)
