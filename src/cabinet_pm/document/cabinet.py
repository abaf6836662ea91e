from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping

from ..normalize.classify import enhanced_controller_type
from ..normalize.schema import Cabinet, ChecklistKey
from ..util.formatting import format_date, format_status, format_value, text_or
from .model import Block, Paragraph, Section, SectionKind, key_values, table

CHECKLIST_LABELS: Mapping[ChecklistKey, str] = MappingProxyType(
    {
        ChecklistKey.CABINET_FANS: "Cabinet fans running (if installed)",
        ChecklistKey.CONTROLLER_LEDS: "Controller Status LEDs",
        ChecklistKey.IO_STATUS: "I/O Status LEDs",
        ChecklistKey.NETWORK_STATUS: "Network Equipment Status",
        ChecklistKey.TEMPERATURES: "Environmental Temperatures",
        ChecklistKey.IS_CLEAN: "Cleaned Enclosure",
        ChecklistKey.CLEAN_FILTER_INSTALLED: "Clean filter installed",
        ChecklistKey.GROUND_INSPECTION: "Ground Inspection",
    }
)

POWER_SUPPLY_HEADERS = (
    "Voltage Type",
    "Line to Neutral (V)",
    "Line to Ground (V)",
    "Neutral to Ground (mV)",
    "DC Reading (V)",
    "Status",
)


def cabinet_title(cabinet: Cabinet, position: int) -> str:
    location = (cabinet.location or "").strip()
    if not location:
        return f"Cabinet {position}"
    return f"Cabinet {position}: {location}"


def build_cabinet_section(cabinet: Cabinet, position: int, *, session_name: str) -> Section:
    blocks: List[Block] = [
        key_values(
            [
                ("Cabinet Location", text_or(cabinet.location, f"Cabinet {position}")),
                ("Date", format_date(cabinet.inspection_date)),
                ("Session", session_name),
            ],
            title="Cabinet Information",
        )
    ]

    if cabinet.power_supplies:
        rows = [
            (
                text_or(ps.voltage_class, "Unknown"),
                format_value(ps.line_neutral),
                format_value(ps.line_ground),
                format_value(ps.neutral_ground),
                format_value(ps.dc_reading),
                format_status(ps.status),
            )
            for ps in cabinet.power_supplies
        ]
        blocks.append(table(POWER_SUPPLY_HEADERS, rows, title="Power Supplies"))

    if cabinet.distribution_blocks:
        rows = [
            (str(i), format_value(b.dc_reading), format_status(b.status))
            for i, b in enumerate(cabinet.distribution_blocks, start=1)
        ]
        blocks.append(table(("Block #", "DC Reading (V)", "Status"), rows, title="Distribution Blocks"))

    if cabinet.diodes:
        rows = [
            (str(i), format_value(d.dc_reading), format_status(d.status))
            for i, d in enumerate(cabinet.diodes, start=1)
        ]
        blocks.append(table(("Diode #", "DC Reading (V)", "Status"), rows, title="Diodes"))

    checklist_rows = [
        (CHECKLIST_LABELS[key], format_status(cabinet.checklist_status(key)))
        for key in ChecklistKey
    ]
    blocks.append(table(("Inspection Item", "Status"), checklist_rows, title="Inspection Checklist"))

    if cabinet.network_equipment:
        rows = [
            (
                text_or(eq.equipment_type, "Network Equipment"),
                text_or(eq.model_number, "Not specified"),
                format_status(eq.status),
            )
            for eq in cabinet.network_equipment
        ]
        blocks.append(table(("Equipment Type", "Model Number", "Status"), rows, title="Network Equipment"))

    if cabinet.controllers:
        rows = [
            (
                text_or(c.node_name, "Unnamed Controller"),
                enhanced_controller_type(c),
                text_or(c.model, "Unknown"),
                text_or(c.serial, "No Serial"),
            )
            for c in cabinet.controllers
        ]
        blocks.append(table(("Controller Name", "Type", "Model", "Serial"), rows, title="Controllers"))

    comments = (cabinet.comments or "").strip()
    if comments:
        blocks.append(Paragraph("Comments", style="emphasis"))
        blocks.append(Paragraph(comments))

    return Section(
        kind=SectionKind.CABINET,
        title=cabinet_title(cabinet, position),
        blocks=tuple(blocks),
        anchor=f"cabinet-{position}",
    )
