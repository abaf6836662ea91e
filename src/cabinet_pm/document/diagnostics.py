"""
Diagnostics pages: a session-wide summary followed by one detail page per
controller. Counting keeps first-appearance order so that ties resolve the
same way on every run.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

from ..normalize.schema import DiagnosticRecord, ErrorType
from ..util.formatting import NOT_AVAILABLE, text_or
from .model import Paragraph, Section, SectionKind, key_values, slugify, table

ERROR_TYPE_LABELS: Mapping[ErrorType, str] = MappingProxyType(
    {
        ErrorType.BAD: "Component Fault",
        ErrorType.NOT_COMMUNICATING: "Communication Failure",
        ErrorType.OPEN_LOOP: "Open Loop",
        ErrorType.LOOP_CURRENT_SATURATED: "Loop Current Saturated",
        ErrorType.DEVICE_ERROR: "Device Error",
        ErrorType.SHORT_CIRCUIT: "Short Circuit",
        ErrorType.NO_CARD: "No Card",
        ErrorType.OTHER: "Other",
    }
)

ALL_CLEAR_TITLE = "All Systems Operating Normally"
ALL_CLEAR_TEXT = "No controller errors were detected during this maintenance session."


def error_label(error_type: ErrorType) -> str:
    return ERROR_TYPE_LABELS.get(error_type, error_type.value)


def count_error_types(records: Sequence[DiagnosticRecord]) -> Dict[ErrorType, int]:
    counts: Dict[ErrorType, int] = {}
    for r in records:
        counts[r.error_type] = counts.get(r.error_type, 0) + 1
    return counts


def primary_issue(records: Sequence[DiagnosticRecord]) -> ErrorType:
    counts = count_error_types(records)
    # max() keeps the first maximal key, i.e. the earliest error type on ties.
    return max(counts, key=lambda k: counts[k])


def percent_of(count: int, total: int) -> int:
    """Whole percent, halves rounded up."""
    if total <= 0:
        return 0
    return (count * 200 + total) // (2 * total)


def group_by_controller(records: Sequence[DiagnosticRecord]) -> Dict[str, List[DiagnosticRecord]]:
    groups: Dict[str, List[DiagnosticRecord]] = {}
    for r in records:
        groups.setdefault(r.controller_name, []).append(r)
    return groups


def _distribution_rows(counts: Mapping[ErrorType, int], total: int) -> List[Tuple[str, str, str]]:
    ordered = sorted(counts.items(), key=lambda kv: -kv[1])
    return [(error_label(et), str(n), f"{percent_of(n, total)}%") for et, n in ordered]


def _description(record: DiagnosticRecord) -> str:
    return text_or(record.description, text_or(record.notes, "No description"))


def build_summary_section(records: Sequence[DiagnosticRecord]) -> Section:
    groups = group_by_controller(records)
    total = len(records)
    breakdown = [
        (name, str(len(errors)), error_label(primary_issue(errors)))
        for name, errors in groups.items()
    ]
    return Section(
        kind=SectionKind.DIAGNOSTICS_SUMMARY,
        title="System Diagnostics Summary",
        blocks=(
            Paragraph("System Health Overview", style="lead"),
            key_values(
                [
                    ("Total Issues Found", str(total)),
                    ("Controllers Affected", str(len(groups))),
                ]
            ),
            table(
                ("Error Type", "Count", "% of Total"),
                _distribution_rows(count_error_types(records), total),
                title="Global Error Distribution",
            ),
            table(("Controller", "Total Errors", "Primary Issue"), breakdown, title="Controller Breakdown"),
        ),
        anchor="diagnostics",
    )


def build_controller_section(controller_name: str, errors: Sequence[DiagnosticRecord]) -> Section:
    counts = count_error_types(errors)
    log_rows = [
        (
            str(e.card_number),
            str(e.channel_number) if e.channel_number is not None else NOT_AVAILABLE,
            error_label(e.error_type),
            _description(e),
        )
        for e in errors
    ]
    return Section(
        kind=SectionKind.DIAGNOSTICS_CONTROLLER,
        title=f"Diagnostics Detail: {controller_name}",
        blocks=(
            table(
                ("Controller", "Total Errors", "Primary Issue"),
                [(controller_name, str(len(errors)), error_label(primary_issue(errors)))],
                title="Controller Summary",
            ),
            table(
                ("Error Type", "Count"),
                [(error_label(et), str(n)) for et, n in counts.items()],
                title="Error Distribution",
            ),
            table(("Card", "Channel", "Error Type", "Description"), log_rows, title="Detailed Error Log"),
        ),
        anchor=f"diagnostics-{slugify(controller_name)}",
    )


def build_diagnostics_sections(records: Sequence[DiagnosticRecord]) -> Tuple[Section, ...]:
    if not records:
        return (
            Section(
                kind=SectionKind.DIAGNOSTICS_CLEAR,
                title=ALL_CLEAR_TITLE,
                blocks=(Paragraph(ALL_CLEAR_TEXT),),
                anchor="diagnostics",
            ),
        )
    groups = group_by_controller(records)
    sections = [build_summary_section(records)]
    for name in sorted(groups):
        sections.append(build_controller_section(name, groups[name]))
    return tuple(sections)
