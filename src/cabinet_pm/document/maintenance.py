from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from ..normalize.classify import classify_node, controller_type, errors_label
from ..normalize.schema import NodeCategory, NodeMaintenanceRecord, PerformanceType
from ..risk.nodes import performance_at_risk
from ..util.formatting import NOT_AVAILABLE, format_flag, format_number, text_or
from .model import Block, Paragraph, Section, SectionKind, bullets, key_values, table

EMPTY_CELL = "-"
NO_DATA_TEXT = "No node maintenance data was recorded for this session."

CONTROLLER_HEADERS = (
    "Controller",
    "Type",
    "Serial",
    "Performance",
    "DV HF",
    "Redundancy",
    "Cold Restart",
    "Errors",
    "Notes/Reason",
    "Done",
)
WORKSTATION_HEADERS = ("Computer", "Type", "Model", "DV HF", "OS Update", "McAfee", "HDD Replaced", "Notes/Reason", "Done")
NODE_HEADERS = ("Node Name", "Type", "Serial", "DV HF", "Firmware Updated", "Notes/Reason", "Done")

CATEGORY_TITLES: Dict[NodeCategory, str] = {
    NodeCategory.CONTROLLER: "Controllers",
    NodeCategory.WORKSTATION: "Computers & Workstations",
    NodeCategory.SWITCH: "Network Switches",
    NodeCategory.OTHER: "Other Nodes",
}


def group_nodes(records: Sequence[NodeMaintenanceRecord]) -> Dict[NodeCategory, List[NodeMaintenanceRecord]]:
    groups: Dict[NodeCategory, List[NodeMaintenanceRecord]] = {category: [] for category in NodeCategory}
    for record in records:
        groups[classify_node(record)].append(record)
    return groups


def format_performance(record: NodeMaintenanceRecord) -> str:
    if record.performance_type is None or record.performance_value is None:
        return NOT_AVAILABLE
    status = "RISKY" if performance_at_risk(record) else "Good"
    value = format_number(record.performance_value)
    if record.performance_type is PerformanceType.PERF_INDEX:
        return f"{value}/5 ({status})"
    return f"{value}% ({status})"


def _name(record: NodeMaintenanceRecord) -> str:
    return text_or(record.node_name, "Unknown")


def _controller_row(record: NodeMaintenanceRecord) -> Tuple[str, ...]:
    ctype = controller_type(record)
    # Remote I/O units carry no serial of their own.
    serial = NOT_AVAILABLE if ctype == "RIU" else text_or(record.serial, NOT_AVAILABLE)
    return (
        _name(record),
        ctype,
        serial,
        format_performance(record),
        format_flag(record.hf_updated),
        format_flag(record.redundancy_checked),
        format_flag(record.cold_restart_checked),
        errors_label(record.no_errors_checked),
        text_or(record.notes, EMPTY_CELL),
        format_flag(record.completed),
    )


def _workstation_row(record: NodeMaintenanceRecord) -> Tuple[str, ...]:
    return (
        _name(record),
        text_or(record.node_type, EMPTY_CELL),
        text_or(record.model, EMPTY_CELL),
        format_flag(record.dv_checked),
        format_flag(record.os_checked),
        format_flag(record.macafee_checked),
        format_flag(record.hdd_replaced),
        text_or(record.notes, EMPTY_CELL),
        format_flag(record.completed),
    )


def _node_row(record: NodeMaintenanceRecord) -> Tuple[str, ...]:
    return (
        _name(record),
        text_or(record.node_type, EMPTY_CELL),
        text_or(record.serial, NOT_AVAILABLE),
        format_flag(record.hf_updated),
        format_flag(record.firmware_updated_checked),
        text_or(record.notes, EMPTY_CELL),
        format_flag(record.completed),
    )


def hdd_replacement_notes(workstations: Sequence[NodeMaintenanceRecord]) -> List[str]:
    return [
        f"Bad hard drive found on station '{_name(r)}' and was replaced"
        for r in workstations
        if r.hdd_replaced
    ]


def performance_concerns(controllers: Sequence[NodeMaintenanceRecord]) -> List[str]:
    out: List[str] = []
    for r in controllers:
        if not performance_at_risk(r):
            continue
        value = format_number(r.performance_value)  # type: ignore[arg-type]
        if r.performance_type is PerformanceType.PERF_INDEX:
            perf = f"Performance Index {value}/5"
        else:
            perf = f"Free Time {value}%"
        out.append(f"Controller '{_name(r)}' showing {perf} - Monitor for degraded performance")
    return out


def build_node_maintenance_section(records: Sequence[NodeMaintenanceRecord]) -> Section:
    if not records:
        return Section(
            kind=SectionKind.NODE_MAINTENANCE,
            title="Node Maintenance Report",
            blocks=(Paragraph(NO_DATA_TEXT),),
            anchor="node-maintenance",
        )

    groups = group_nodes(records)
    controllers = groups[NodeCategory.CONTROLLER]
    workstations = groups[NodeCategory.WORKSTATION]
    switches = groups[NodeCategory.SWITCH]
    others = groups[NodeCategory.OTHER]
    hdd_notes = hdd_replacement_notes(workstations)
    concerns = performance_concerns(controllers)

    blocks: List[Block] = [
        key_values(
            [
                ("Total Nodes", str(len(records))),
                ("Controllers", str(len(controllers))),
                ("Computers & Workstations", str(len(workstations))),
                ("Network Switches", str(len(switches))),
                ("Other Nodes", str(len(others))),
                ("DV Hotfixes Updated", str(sum(1 for r in records if r.hf_updated))),
                ("Hard Drives Replaced", str(len(hdd_notes))),
                ("Firmware Updated", str(sum(1 for r in switches if r.firmware_updated_checked))),
                ("Performance Concerns", str(len(concerns))),
            ],
            title="Maintenance Summary",
        )
    ]

    # Controllers share the opening page; later tables start on their own page.
    if controllers:
        blocks.append(
            table(
                CONTROLLER_HEADERS,
                [_controller_row(r) for r in controllers],
                title=CATEGORY_TITLES[NodeCategory.CONTROLLER],
            )
        )
    if workstations:
        blocks.append(
            table(
                WORKSTATION_HEADERS,
                [_workstation_row(r) for r in workstations],
                title=CATEGORY_TITLES[NodeCategory.WORKSTATION],
                page_break_before=True,
            )
        )
    for category, nodes in ((NodeCategory.SWITCH, switches), (NodeCategory.OTHER, others)):
        if nodes:
            blocks.append(
                table(NODE_HEADERS, [_node_row(r) for r in nodes], title=CATEGORY_TITLES[category], page_break_before=True)
            )

    if hdd_notes:
        blocks.append(bullets(hdd_notes, title="HDD Replacement Reports"))
    if concerns:
        blocks.append(bullets(concerns, title="Performance Concerns", style="warning"))

    return Section(
        kind=SectionKind.NODE_MAINTENANCE,
        title="Node Maintenance Report",
        blocks=tuple(blocks),
        anchor="node-maintenance",
    )
