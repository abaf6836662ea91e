from __future__ import annotations

from types import MappingProxyType

import pytest

from cabinet_pm.normalize.schema import (
    Cabinet,
    ChecklistKey,
    Diode,
    DistributionBlock,
    NetworkEquipment,
    PowerSupply,
    Severity,
    Status,
)
from cabinet_pm.risk.components import CHECKLIST_RULES, scan_cabinet


def _checklist(**failed: bool):
    data = {key: Status.PASS for key in ChecklistKey}
    for name, is_failed in failed.items():
        if is_failed:
            data[ChecklistKey(name)] = Status.FAIL
    return MappingProxyType(data)


def test_clean_empty_cabinet_scans_only_checklist() -> None:
    scan = scan_cabinet(Cabinet(location="Rack A"))
    assert scan.findings == ()
    assert scan.scanned == 8
    assert scan.failed == 0


def test_every_checklist_key_has_a_rule() -> None:
    assert set(CHECKLIST_RULES) == set(ChecklistKey)


def test_power_supply_fail_and_dc_out_of_range() -> None:
    cabinet = Cabinet(
        location="CAB-1",
        power_supplies=(PowerSupply(voltage_class="24VDC", dc_reading="20.1", status=Status.FAIL),),
    )
    scan = scan_cabinet(cabinet)
    assert [f.weight for f in scan.findings] == [8, 12]
    assert [f.severity for f in scan.findings] == [Severity.MODERATE, Severity.MODERATE]
    assert scan.findings[0].message == "CAB-1: Power Supply 1 (24VDC) voltage out of spec"
    assert scan.findings[1].message == "CAB-1: 24VDC reading 20.1V is outside normal range (22.8-25.2V)"
    assert scan.findings[1].cause == "DC voltage out of range"
    assert scan.scanned == 9
    assert scan.failed == 1


def test_ac_measurements_are_slight_and_do_not_count_as_failed() -> None:
    cabinet = Cabinet(
        location="CAB-2",
        power_supplies=(
            PowerSupply(voltage_class="24VDC", line_neutral=142, line_ground="", neutral_ground=1500, status=Status.PASS),
        ),
    )
    scan = scan_cabinet(cabinet)
    assert [(f.weight, f.severity) for f in scan.findings] == [(3, Severity.SLIGHT), (3, Severity.SLIGHT)]
    assert scan.findings[0].message == "CAB-2: line_neutral reading 142V is outside normal range (100-130V)"
    assert scan.findings[1].cause == "neutral ground out of range"
    assert scan.failed == 0


def test_blank_dc_reading_is_not_checked() -> None:
    cabinet = Cabinet(location="X", power_supplies=(PowerSupply(voltage_class="24VDC", dc_reading="  "),))
    assert scan_cabinet(cabinet).findings == ()


def test_blocks_diodes_and_network_equipment() -> None:
    cabinet = Cabinet(
        location="CAB-3",
        distribution_blocks=(DistributionBlock(status=Status.PASS), DistributionBlock(status=Status.FAIL)),
        diodes=(Diode(status=Status.FAIL),),
        network_equipment=(
            NetworkEquipment("Switch", "Entron 16-port", Status.FAIL),
            NetworkEquipment("Router", "", Status.FAIL),
            NetworkEquipment("Switch", "Hirschmann", None),
        ),
    )
    scan = scan_cabinet(cabinet)
    messages = [f.message for f in scan.findings]
    assert messages == [
        "CAB-3: Distribution Block 2 voltage out of spec",
        "CAB-3: Diode 1 voltage out of spec",
        "CAB-3: Entron switch voltage out of spec - Critical network infrastructure failure",
        "CAB-3: Router voltage out of spec",
    ]
    assert [f.weight for f in scan.findings] == [8, 6, 20, 8]
    assert scan.findings[2].severity is Severity.CRITICAL
    assert scan.scanned == 2 + 1 + 3 + 8
    assert scan.failed == 4


def test_checklist_failures_in_key_order() -> None:
    cabinet = Cabinet(
        location="CAB-4",
        checklist=_checklist(ground_inspection=True, controller_leds=True, temperatures=True),
    )
    scan = scan_cabinet(cabinet)
    assert [f.weight for f in scan.findings] == [25, 3, 10]
    assert [f.severity for f in scan.findings] == [Severity.CRITICAL, Severity.SLIGHT, Severity.MODERATE]
    assert scan.findings[0].message == (
        "CAB-4: Controller status LEDs indicate fault - indicates critical system fault"
    )
    assert scan.findings[2].cause == "ground inspection failed inspection"
    assert scan.failed == 3


def test_blank_location_uses_position_label() -> None:
    cabinet = Cabinet(location="  ", checklist=_checklist(io_status=True))
    scan = scan_cabinet(cabinet, position=3)
    assert scan.findings[0].scope_label == "Cabinet 3"
    assert scan.findings[0].message.startswith("Cabinet 3: ")


@pytest.mark.parametrize("reading", ["abc", "n/a", "--"])
def test_non_numeric_dc_reading_is_not_a_finding(reading) -> None:
    cabinet = Cabinet(location="X", power_supplies=(PowerSupply(voltage_class="24VDC", dc_reading=reading),))
    scan = scan_cabinet(cabinet)
    assert scan.findings == ()
    assert scan.failed == 0


def test_dc_reading_with_unit_suffix_is_range_checked() -> None:
    cabinet = Cabinet(location="X", power_supplies=(PowerSupply(voltage_class="24VDC", dc_reading="30V"),))
    (finding,) = scan_cabinet(cabinet).findings
    assert finding.weight == 12
    assert finding.message == "X: 24VDC reading 30V is outside normal range (22.8-25.2V)"


def test_plain_string_statuses_are_scored() -> None:
    checklist = {key: "pass" for key in ChecklistKey}
    checklist[ChecklistKey.IO_STATUS] = "fail"
    cabinet = Cabinet(
        location="CAB-5",
        power_supplies=(PowerSupply(voltage_class="24VDC", status="fail"),),
        diodes=(Diode(status="pass"),),
        checklist=checklist,
    )
    scan = scan_cabinet(cabinet)
    assert [f.weight for f in scan.findings] == [8, 20]
    assert scan.failed == 2


def test_entron_match_ignores_case() -> None:
    upper = scan_cabinet(Cabinet(location="A", network_equipment=(NetworkEquipment("Switch", "ENTRON-500", Status.FAIL),)))
    lower = scan_cabinet(Cabinet(location="A", network_equipment=(NetworkEquipment("Switch", "entron-500", Status.FAIL),)))
    assert [(f.weight, f.severity, f.message) for f in upper.findings] == [
        (f.weight, f.severity, f.message) for f in lower.findings
    ]
    assert upper.findings[0].severity is Severity.CRITICAL
