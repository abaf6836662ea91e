from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping

from ..normalize.schema import RiskAssessment, VoltageClass
from ..risk.ranges import VOLTAGE_RANGES
from .model import Block, Paragraph, Section, SectionKind, bullets, key_values, table

VOLTAGE_LABELS: Mapping[VoltageClass, str] = MappingProxyType(
    {
        VoltageClass.VDC_24: "24VDC Power Supply",
        VoltageClass.VDC_12: "12VDC Power Supply",
        VoltageClass.LINE_NEUTRAL: "Line to Neutral",
        VoltageClass.LINE_GROUND: "Line to Ground",
        VoltageClass.NEUTRAL_GROUND: "Neutral to Ground",
    }
)

NO_ISSUES_TEXT = "No issues were identified during this inspection."


def voltage_reference_table() -> Block:
    rows = [
        (VOLTAGE_LABELS[vclass], band.current, band.label)
        for vclass, band in VOLTAGE_RANGES.items()
    ]
    return table(("Measurement", "Type", "Normal Range"), rows, title="Voltage Specifications")


def build_risk_section(assessment: RiskAssessment) -> Section:
    blocks: List[Block] = [
        Paragraph(f"Risk Score: {assessment.score}", style="lead"),
        Paragraph(f"Risk Level: {assessment.level.value}", style="emphasis"),
        key_values(
            [
                ("Components Scanned", str(assessment.total_components_scanned)),
                ("Failed Components", str(assessment.failed_components_count)),
                ("Critical Issues", str(len(assessment.critical))),
                ("Moderate Issues", str(len(assessment.moderate))),
                ("Slight Issues", str(len(assessment.slight))),
            ],
            title="Assessment Overview",
        ),
    ]

    if assessment.critical:
        blocks.append(bullets(assessment.critical, title="Critical Issues", style="critical"))
    if assessment.moderate:
        blocks.append(bullets(assessment.moderate, title="Moderate Issues", style="warning"))
    if assessment.slight:
        blocks.append(bullets(assessment.slight, title="Slight Issues"))
    if not assessment.has_issues:
        blocks.append(Paragraph(NO_ISSUES_TEXT))

    blocks.append(bullets(assessment.recommendations, title="Recommendations"))

    if assessment.breakdown:
        blocks.append(bullets(assessment.breakdown, title="Risk Breakdown"))
        blocks.append(Paragraph(f"Total Risk Score: {assessment.score}", style="emphasis"))

    blocks.append(voltage_reference_table())

    return Section(
        kind=SectionKind.RISK_SUMMARY,
        title="Risk Assessment Summary",
        blocks=tuple(blocks),
        anchor="risk-assessment",
    )
