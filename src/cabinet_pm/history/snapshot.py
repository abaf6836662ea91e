from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..logging import get_logger
from ..normalize.schema import RiskAssessment, RiskLevel, SessionBundle
from ..normalize.transform import stable_json_dumps
from ..util.errors import HistoryError
from ..util.serialization import sanitize_for_json
from ..util.time import utc_now_iso
from .hash import stable_assessment_hash

LOG = get_logger(__name__)


@dataclass(frozen=True)
class MetricSnapshot:
    """One point on a customer's maintenance trend line."""

    session_id: str
    session_name: str
    recorded_at: str
    error_count: int
    risk_score: int
    risk_level: RiskLevel
    total_components: int
    failed_components: int
    cabinet_count: int
    assessment_hash: str
    customer_name: Optional[str] = None


def build_metric_snapshot(
    bundle: SessionBundle,
    assessment: RiskAssessment,
    recorded_at: Optional[str] = None,
) -> MetricSnapshot:
    return MetricSnapshot(
        session_id=bundle.session.session_id,
        session_name=bundle.session.session_name,
        recorded_at=recorded_at or utc_now_iso(),
        error_count=len(bundle.diagnostics),
        risk_score=assessment.score,
        risk_level=assessment.level,
        total_components=assessment.total_components_scanned,
        failed_components=assessment.failed_components_count,
        cabinet_count=len(bundle.cabinets),
        assessment_hash=stable_assessment_hash(assessment),
        customer_name=bundle.session.customer_name,
    )


def snapshot_to_dict(snapshot: MetricSnapshot) -> Dict[str, Any]:
    return sanitize_for_json(snapshot)


def snapshot_from_dict(data: Dict[str, Any]) -> MetricSnapshot:
    names = {f.name for f in dataclasses.fields(MetricSnapshot)}
    missing = sorted(n for n in names if n not in data and n != "customer_name")
    if missing:
        raise HistoryError(f"Snapshot is missing fields: {', '.join(missing)}")
    try:
        return MetricSnapshot(
            session_id=str(data["session_id"]),
            session_name=str(data["session_name"]),
            recorded_at=str(data["recorded_at"]),
            error_count=int(data["error_count"]),
            risk_score=int(data["risk_score"]),
            risk_level=RiskLevel(str(data["risk_level"])),
            total_components=int(data["total_components"]),
            failed_components=int(data["failed_components"]),
            cabinet_count=int(data["cabinet_count"]),
            assessment_hash=str(data["assessment_hash"]),
            customer_name=data.get("customer_name"),
        )
    except (TypeError, ValueError) as e:
        raise HistoryError(f"Invalid snapshot: {e}") from e


def load_snapshot(path: Path) -> MetricSnapshot:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise HistoryError(f"Failed to read snapshot {path}: {e}") from e
    if not isinstance(data, dict):
        raise HistoryError(f"Snapshot must be a JSON object: {path}")
    return snapshot_from_dict(data)


def write_snapshot(path: Path, snapshot: MetricSnapshot) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(stable_json_dumps(snapshot_to_dict(snapshot)) + "\n", encoding="utf-8")
    except OSError as e:
        raise HistoryError(f"Failed to write snapshot {path}: {e}") from e
    LOG.info("Wrote metric snapshot", extra={"step": "history", "phase": "snapshot", "path": str(path)})
    return path
