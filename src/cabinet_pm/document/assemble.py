from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..normalize.schema import (
    Cabinet,
    DiagnosticRecord,
    NodeMaintenanceRecord,
    PMNotes,
    RiskAssessment,
    SessionBundle,
    SessionInfo,
)
from ..risk.aggregate import assess_session
from ..util.formatting import text_or
from ..util.time import utc_now_iso
from .cabinet import build_cabinet_section
from .diagnostics import build_diagnostics_sections
from .maintenance import build_node_maintenance_section
from .model import Section
from .notes import build_notes_section
from .risk import build_risk_section
from .title import build_title_section

LOG = get_logger(__name__)


def assemble_report(
    session: SessionInfo,
    cabinets: Sequence[Cabinet],
    node_maintenance: Sequence[NodeMaintenanceRecord],
    diagnostics: Sequence[DiagnosticRecord],
    notes: Optional[PMNotes] = None,
    *,
    assessment: Optional[RiskAssessment] = None,
    generated_at: Optional[str] = None,
) -> Tuple[Section, ...]:
    """
    Build the ordered report description for one PM session:
    title, risk summary, node maintenance, notes (when present), diagnostics,
    then one section per cabinet in input order.

    Pass a precomputed assessment to avoid scanning twice; pass generated_at
    to make the title section reproducible.
    """
    if assessment is None:
        assessment = assess_session(cabinets, node_maintenance)
    stamp = generated_at or utc_now_iso()

    sections: List[Section] = [
        build_title_section(
            session,
            cabinet_count=len(cabinets),
            node_count=len(node_maintenance),
            generated_at=stamp,
        ),
        build_risk_section(assessment),
        build_node_maintenance_section(node_maintenance),
    ]
    notes_section = build_notes_section(notes)
    if notes_section is not None:
        sections.append(notes_section)
    sections.extend(build_diagnostics_sections(diagnostics))

    session_name = text_or(session.session_name, "PM Session")
    for position, cabinet in enumerate(cabinets, start=1):
        sections.append(build_cabinet_section(cabinet, position, session_name=session_name))

    LOG.info(
        "Report assembled",
        extra={"step": "assemble", "phase": "complete", "sections": len(sections)},
    )
    return tuple(sections)


def assemble_bundle(
    bundle: SessionBundle,
    *,
    assessment: Optional[RiskAssessment] = None,
    generated_at: Optional[str] = None,
) -> Tuple[Section, ...]:
    return assemble_report(
        bundle.session,
        bundle.cabinets,
        bundle.node_maintenance,
        bundle.diagnostics,
        bundle.notes,
        assessment=assessment,
        generated_at=generated_at,
    )
