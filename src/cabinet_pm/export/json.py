from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ..document.model import Block, BulletList, KeyValues, Paragraph, Section, Table
from ..logging import get_logger
from ..normalize.schema import RiskAssessment
from ..util.errors import ExportError
from ..util.serialization import sanitize_for_json

LOG = get_logger(__name__)

REPORT_FORMAT_VERSION = 1


def block_to_dict(block: Block) -> Dict[str, Any]:
    if isinstance(block, Paragraph):
        kind = "paragraph"
    elif isinstance(block, BulletList):
        kind = "bullets"
    elif isinstance(block, KeyValues):
        kind = "key_values"
    elif isinstance(block, Table):
        kind = "table"
    else:
        raise ExportError(f"Unsupported block type: {type(block).__name__}")
    out = sanitize_for_json(block)
    out["type"] = kind
    return out


def section_to_dict(section: Section) -> Dict[str, Any]:
    return {
        "kind": section.kind.value,
        "title": section.title,
        "anchor": section.anchor,
        "page_break_before": section.page_break_before,
        "blocks": [block_to_dict(b) for b in section.blocks],
    }


def document_to_dict(sections: Sequence[Section]) -> Dict[str, Any]:
    return {
        "format_version": REPORT_FORMAT_VERSION,
        "sections": [section_to_dict(s) for s in sections],
    }


def assessment_to_dict(assessment: RiskAssessment) -> Dict[str, Any]:
    return sanitize_for_json(assessment)


def _write_json(path: Path, obj: Any, *, indent: Optional[int] = 2) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(obj, indent=indent, sort_keys=True, ensure_ascii=False) + "\n", encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e
    return path


def write_report_json(path: Path, sections: Sequence[Section]) -> Path:
    _write_json(path, document_to_dict(sections))
    LOG.info("Wrote JSON report", extra={"step": "export", "phase": "json", "path": str(path)})
    return path


def write_assessment_json(path: Path, assessment: RiskAssessment, *, session: Optional[Any] = None) -> Path:
    payload: Dict[str, Any] = {"assessment": assessment_to_dict(assessment)}
    if session is not None:
        payload["session"] = sanitize_for_json(session)
    _write_json(path, payload)
    LOG.info("Wrote assessment", extra={"step": "export", "phase": "assessment", "path": str(path)})
    return path

