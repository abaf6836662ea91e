from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from ..logging import get_logger
from ..normalize.schema import (
    Cabinet,
    CabinetScan,
    ChecklistKey,
    IssueFinding,
    PowerSupply,
    Severity,
    Status,
    VoltageClass,
)
from ..util.formatting import parse_reading
from .ranges import check_range

LOG = get_logger(__name__)


@dataclass(frozen=True)
class Weight:
    weight: int
    severity: Severity


@dataclass(frozen=True)
class ChecklistRule:
    weight: int
    severity: Severity
    description: str
    impact: str


POWER_SUPPLY_FAIL = Weight(8, Severity.MODERATE)
DC_OUT_OF_RANGE = Weight(12, Severity.MODERATE)
AC_OUT_OF_RANGE = Weight(3, Severity.SLIGHT)
DISTRIBUTION_BLOCK_FAIL = Weight(8, Severity.MODERATE)
DIODE_FAIL = Weight(6, Severity.MODERATE)
ENTRON_FAIL = Weight(20, Severity.CRITICAL)
NETWORK_EQUIPMENT_FAIL = Weight(8, Severity.MODERATE)

# AC measurements checked on every power supply, in scan order.
AC_MEASUREMENTS: Tuple[VoltageClass, ...] = (
    VoltageClass.LINE_NEUTRAL,
    VoltageClass.LINE_GROUND,
    VoltageClass.NEUTRAL_GROUND,
)

CHECKLIST_RULES: Mapping[ChecklistKey, ChecklistRule] = MappingProxyType(
    {
        ChecklistKey.CABINET_FANS: ChecklistRule(
            8,
            Severity.MODERATE,
            "Cabinet cooling fans failed",
            "affects controller efficiency and hardware lifetime",
        ),
        ChecklistKey.CONTROLLER_LEDS: ChecklistRule(
            25,
            Severity.CRITICAL,
            "Controller status LEDs indicate fault",
            "indicates critical system fault",
        ),
        ChecklistKey.IO_STATUS: ChecklistRule(
            20,
            Severity.CRITICAL,
            "I/O module status indicates failure",
            "communication failure affects process control",
        ),
        ChecklistKey.NETWORK_STATUS: ChecklistRule(
            20,
            Severity.CRITICAL,
            "Network equipment status failed",
            "network failure affects system connectivity",
        ),
        ChecklistKey.TEMPERATURES: ChecklistRule(
            3,
            Severity.SLIGHT,
            "Environmental temperatures out of range",
            "environmental conditions outside optimal range",
        ),
        ChecklistKey.IS_CLEAN: ChecklistRule(
            3,
            Severity.SLIGHT,
            "Enclosure cleanliness below standard",
            "cleanliness affects long-term reliability",
        ),
        ChecklistKey.CLEAN_FILTER_INSTALLED: ChecklistRule(
            3,
            Severity.SLIGHT,
            "Clean filter not properly installed",
            "filter maintenance affects air quality",
        ),
        ChecklistKey.GROUND_INSPECTION: ChecklistRule(
            10,
            Severity.MODERATE,
            "Ground connection inspection failed",
            "electrical safety concern",
        ),
    }
)


def cabinet_label(cabinet: Cabinet, position: int) -> str:
    location = (cabinet.location or "").strip()
    return location or f"Cabinet {position}"


def is_entron(model_number: Optional[str]) -> bool:
    return "entron" in (model_number or "").lower()


class _FindingCollector:
    """Accumulates findings and component counts for one cabinet."""

    def __init__(self, scope: str) -> None:
        self.scope = scope
        self.findings: List[IssueFinding] = []
        self.scanned = 0
        self.failed = 0

    def component(self, status: Optional[Status]) -> bool:
        self.scanned += 1
        if status == Status.FAIL:
            self.failed += 1
            return True
        return False

    def add(self, rule: Weight, message: str, cause: str) -> None:
        self.findings.append(
            IssueFinding(
                scope_label=self.scope,
                severity=rule.severity,
                weight=rule.weight,
                message=f"{self.scope}: {message}",
                cause=cause,
            )
        )

    def result(self) -> CabinetScan:
        return CabinetScan(findings=tuple(self.findings), scanned=self.scanned, failed=self.failed)


def _scan_power_supply(out: _FindingCollector, ps: PowerSupply, index: int) -> None:
    if out.component(ps.status):
        out.add(
            POWER_SUPPLY_FAIL,
            f"Power Supply {index} ({ps.voltage_class}) voltage out of spec",
            f"Power Supply {index} voltage out of spec",
        )

    if ps.dc_reading is not None and str(ps.dc_reading).strip():
        dc = check_range(ps.dc_reading, ps.voltage_class)
        if not dc.in_range:
            out.add(DC_OUT_OF_RANGE, dc.message, "DC voltage out of range")

    for measurement in AC_MEASUREMENTS:
        value = getattr(ps, measurement.value)
        if parse_reading(value) is None:
            continue
        ac = check_range(value, measurement)
        if not ac.in_range:
            out.add(AC_OUT_OF_RANGE, ac.message, f"{measurement.value.replace('_', ' ')} out of range")


def scan_cabinet(cabinet: Cabinet, position: int = 1) -> CabinetScan:
    """
    Walk one cabinet's component collections and checklist, returning the
    findings plus scanned/failed counts for the caller to accumulate.

    `position` is the 1-based index of the cabinet in the session; it only
    names cabinets with a blank location.
    """
    out = _FindingCollector(cabinet_label(cabinet, position))

    for i, ps in enumerate(cabinet.power_supplies, start=1):
        _scan_power_supply(out, ps, i)

    for i, block in enumerate(cabinet.distribution_blocks, start=1):
        if out.component(block.status):
            text = f"Distribution Block {i} voltage out of spec"
            out.add(DISTRIBUTION_BLOCK_FAIL, text, text)

    for i, diode in enumerate(cabinet.diodes, start=1):
        if out.component(diode.status):
            text = f"Diode {i} voltage out of spec"
            out.add(DIODE_FAIL, text, text)

    for equipment in cabinet.network_equipment:
        if not out.component(equipment.status):
            continue
        name = " ".join(p for p in (equipment.equipment_type, (equipment.model_number or "").strip()) if p)
        cause = f"{name} voltage out of spec"
        if is_entron(equipment.model_number):
            out.add(
                ENTRON_FAIL,
                "Entron switch voltage out of spec - Critical network infrastructure failure",
                cause,
            )
        else:
            out.add(NETWORK_EQUIPMENT_FAIL, cause, cause)

    for key in ChecklistKey:
        rule = CHECKLIST_RULES[key]
        if out.component(cabinet.checklist_status(key)):
            out.add(
                Weight(rule.weight, rule.severity),
                f"{rule.description} - {rule.impact}",
                f"{key.value.replace('_', ' ')} failed inspection",
            )

    scan = out.result()
    LOG.debug(
        "Cabinet scanned",
        extra={"cabinet": out.scope, "scanned": scan.scanned, "failed": scan.failed, "findings": len(scan.findings)},
    )
    return scan
