from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping, Optional

from ..normalize.schema import PMNotes
from .model import Block, Paragraph, Section, SectionKind, bullets

# Labels shown on the capture form for each common task key.
COMMON_TASK_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "backup_database": "Database",
        "backup_sound": "Sound",
        "backup_powerup": "Power-up",
        "backup_charts": "Charts",
        "backup_event_chronicle": "Event Chronicle",
        "backup_srs": "SRS",
        "backup_graphics": "Graphics",
        "backup_maintenance_tool": "Maintenance tool",
        "backup_ddc": "DDC",
        "backup_uploaded_sys_reg": "Uploaded Sys Reg",
        "all_machines_blown_out": "All machines blown out",
        "keyboards_cleaned": "Keyboards cleaned",
        "monitors_cleaned": "Monitors cleaned",
    }
)


def task_label(key: str) -> str:
    label = COMMON_TASK_LABELS.get(key)
    if label is not None:
        if key.startswith("backup_"):
            return f"Backup: {label}"
        return label
    text = key.replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def _text_block(title: str, value: Optional[str]) -> List[Block]:
    text = (value or "").strip()
    if not text:
        return []
    return [Paragraph(title, style="emphasis"), Paragraph(text)]


def build_notes_section(notes: Optional[PMNotes]) -> Optional[Section]:
    """Returns None when the session has no notes worth printing."""
    if notes is None or not notes.has_content():
        return None

    blocks: List[Block] = []
    if notes.common_tasks:
        blocks.append(bullets([task_label(t) for t in notes.common_tasks], title="Completed Tasks"))
    blocks.extend(_text_block("Additional Work Performed", notes.additional_work_notes))
    blocks.extend(_text_block("Troubleshooting", notes.troubleshooting_notes))
    blocks.extend(_text_block("Recommendations", notes.recommendations_notes))

    return Section(kind=SectionKind.NOTES, title="PM Notes", blocks=tuple(blocks), anchor="pm-notes")
