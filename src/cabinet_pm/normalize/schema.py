from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Tuple, Union

# Measurements arrive as typed by the technician: numbers, numeric strings or blanks.
Reading = Union[str, int, float, None]


class Status(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    MODERATE = "MODERATE"
    SLIGHT = "SLIGHT"


class RiskLevel(str, Enum):
    CRITICAL = "CRITICAL"
    MODERATE = "MODERATE"
    LOW = "LOW"


class VoltageClass(str, Enum):
    VDC_24 = "24VDC"
    VDC_12 = "12VDC"
    LINE_NEUTRAL = "line_neutral"
    LINE_GROUND = "line_ground"
    NEUTRAL_GROUND = "neutral_ground"


class ChecklistKey(str, Enum):
    # Declaration order is the order items are scanned and printed.
    CABINET_FANS = "cabinet_fans"
    CONTROLLER_LEDS = "controller_leds"
    IO_STATUS = "io_status"
    NETWORK_STATUS = "network_status"
    TEMPERATURES = "temperatures"
    IS_CLEAN = "is_clean"
    CLEAN_FILTER_INSTALLED = "clean_filter_installed"
    GROUND_INSPECTION = "ground_inspection"


class PerformanceType(str, Enum):
    PERF_INDEX = "perf_index"
    FREE_TIME = "free_time"


class ErrorType(str, Enum):
    BAD = "bad"
    NOT_COMMUNICATING = "not_communicating"
    OPEN_LOOP = "open_loop"
    LOOP_CURRENT_SATURATED = "loop_current_saturated"
    DEVICE_ERROR = "device_error"
    SHORT_CIRCUIT = "short_circuit"
    NO_CARD = "no_card"
    OTHER = "other"


class NodeCategory(str, Enum):
    CONTROLLER = "controller"
    WORKSTATION = "workstation"
    SWITCH = "switch"
    OTHER = "other"


# ---------------
# Input records
# ---------------
@dataclass(frozen=True)
class PowerSupply:
    voltage_class: str
    line_neutral: Reading = None
    line_ground: Reading = None
    neutral_ground: Reading = None
    dc_reading: Reading = None
    status: Optional[Status] = None


@dataclass(frozen=True)
class DistributionBlock:
    dc_reading: Reading = None
    status: Optional[Status] = None


@dataclass(frozen=True)
class Diode:
    dc_reading: Reading = None
    status: Optional[Status] = None


@dataclass(frozen=True)
class NetworkEquipment:
    equipment_type: str
    model_number: Optional[str] = None
    status: Optional[Status] = None


@dataclass(frozen=True)
class AssignedController:
    node_name: Optional[str] = None
    node_type: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None


def default_checklist() -> Mapping[ChecklistKey, Status]:
    return {key: Status.PASS for key in ChecklistKey}


@dataclass(frozen=True)
class Cabinet:
    location: str
    inspection_date: Optional[date] = None
    power_supplies: Tuple[PowerSupply, ...] = ()
    distribution_blocks: Tuple[DistributionBlock, ...] = ()
    diodes: Tuple[Diode, ...] = ()
    network_equipment: Tuple[NetworkEquipment, ...] = ()
    checklist: Mapping[ChecklistKey, Status] = field(default_factory=default_checklist)
    controllers: Tuple[AssignedController, ...] = ()
    comments: Optional[str] = None

    def checklist_status(self, key: ChecklistKey) -> Status:
        return self.checklist.get(key, Status.PASS)


@dataclass(frozen=True)
class NodeMaintenanceRecord:
    node_id: Optional[str] = None
    node_name: Optional[str] = None
    node_type: Optional[str] = None
    model: Optional[str] = None
    serial: Optional[str] = None
    performance_type: Optional[PerformanceType] = None
    performance_value: Optional[float] = None
    hf_updated: bool = False
    # Stored inverted by the capture UI; see classify.errors_label.
    no_errors_checked: Optional[bool] = None
    hdd_replaced: bool = False
    firmware_updated_checked: bool = False
    dv_checked: bool = False
    os_checked: bool = False
    macafee_checked: bool = False
    redundancy_checked: bool = False
    cold_restart_checked: bool = False
    completed: bool = False
    notes: Optional[str] = None

    @property
    def label(self) -> str:
        name = (self.node_name or "").strip()
        return name or f"Node {self.node_id}"


@dataclass(frozen=True)
class DiagnosticRecord:
    controller_name: str
    card_number: int
    error_type: ErrorType
    channel_number: Optional[int] = None
    description: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class PMNotes:
    common_tasks: Tuple[str, ...] = ()
    additional_work_notes: Optional[str] = None
    troubleshooting_notes: Optional[str] = None
    recommendations_notes: Optional[str] = None

    def has_content(self) -> bool:
        texts = (self.additional_work_notes, self.troubleshooting_notes, self.recommendations_notes)
        return bool(self.common_tasks) or any((t or "").strip() for t in texts)


@dataclass(frozen=True)
class SessionInfo:
    session_id: str
    session_name: str
    customer_name: Optional[str] = None
    session_type: str = "pm"
    status: str = "active"
    technician: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class SessionBundle:
    session: SessionInfo
    cabinets: Tuple[Cabinet, ...] = ()
    node_maintenance: Tuple[NodeMaintenanceRecord, ...] = ()
    diagnostics: Tuple[DiagnosticRecord, ...] = ()
    notes: Optional[PMNotes] = None


# ---------------
# Engine outputs
# ---------------
@dataclass(frozen=True)
class IssueFinding:
    scope_label: str
    severity: Severity
    weight: int
    message: str
    cause: str

    @property
    def breakdown_line(self) -> str:
        return f"{self.scope_label}: {self.cause}"


@dataclass(frozen=True)
class CabinetScan:
    findings: Tuple[IssueFinding, ...]
    scanned: int
    failed: int


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    level: RiskLevel
    critical: Tuple[str, ...]
    moderate: Tuple[str, ...]
    slight: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    total_components_scanned: int
    failed_components_count: int
    breakdown: Tuple[str, ...]

    @property
    def has_issues(self) -> bool:
        return bool(self.critical or self.moderate or self.slight)


# ---------------
# Output layout
# ---------------
@dataclass(frozen=True)
class OutputPaths:
    root: Path
    report_md: Path
    report_json: Path
    assessment_json: Path
    findings_csv: Path
    snapshot_json: Path
    trend_json: Path
    debug_log: Path


def resolve_output_paths(outdir: Path) -> OutputPaths:
    return OutputPaths(
        root=outdir,
        report_md=outdir / "report.md",
        report_json=outdir / "report.json",
        assessment_json=outdir / "assessment.json",
        findings_csv=outdir / "findings.csv",
        snapshot_json=outdir / "snapshot.json",
        trend_json=outdir / "trend.json",
        debug_log=outdir / "logs" / "debug.log",
    )


# Column order for the findings CSV export
FINDINGS_CSV_FIELDS = ["scope", "severity", "weight", "cause", "message"]
