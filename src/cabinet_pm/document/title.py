from __future__ import annotations

from typing import List, Optional, Tuple

from ..normalize.schema import SessionInfo
from ..util.formatting import format_date, format_status, text_or
from .model import Paragraph, Section, SectionKind, key_values

REPORT_TITLE = "Preventive Maintenance Report"


def build_title_section(
    session: SessionInfo,
    *,
    cabinet_count: int,
    node_count: int,
    generated_at: str,
) -> Section:
    pairs: List[Tuple[str, str]] = [
        ("Session", text_or(session.session_name, "PM Session")),
        ("Customer", text_or(session.customer_name, "N/A")),
        ("Technician", text_or(session.technician, "N/A")),
        ("Status", format_status(session.status)),
        ("Session Date", format_date(session.created_at)),
    ]
    completed: Optional[str] = format_date(session.completed_at) if session.completed_at else None
    if completed:
        pairs.append(("Completed", completed))
    pairs.extend(
        [
            ("Cabinets Inspected", str(cabinet_count)),
            ("Nodes Maintained", str(node_count)),
        ]
    )
    return Section(
        kind=SectionKind.TITLE,
        title=REPORT_TITLE,
        blocks=(
            Paragraph(text_or(session.customer_name, text_or(session.session_name, "PM Session")), style="lead"),
            key_values(pairs, title="Session Information"),
            Paragraph(f"Report generated {generated_at}", style="emphasis"),
        ),
        page_break_before=False,
        anchor="title",
    )
