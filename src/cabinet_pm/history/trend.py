from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from ..normalize.schema import RiskLevel, resolve_output_paths
from ..normalize.transform import stable_json_dumps
from ..util.errors import HistoryError
from .snapshot import MetricSnapshot, load_snapshot, snapshot_to_dict

LEVEL_RANK = {RiskLevel.LOW: 0, RiskLevel.MODERATE: 1, RiskLevel.CRITICAL: 2}

DELTA_FIELDS = (
    "risk_score",
    "error_count",
    "total_components",
    "failed_components",
    "cabinet_count",
)


def level_direction(prev: RiskLevel, curr: RiskLevel) -> str:
    delta = LEVEL_RANK[curr] - LEVEL_RANK[prev]
    if delta < 0:
        return "improved"
    if delta > 0:
        return "worsened"
    return "unchanged"


def compare_snapshots(prev: MetricSnapshot, curr: MetricSnapshot) -> Dict[str, Any]:
    """
    Compare two metric snapshots of the same site. Returns a structure with:
      - deltas: curr - prev for each counted metric
      - level: prev/curr levels and a direction (improved/worsened/unchanged)
      - assessment_changed: whether the assessment hashes differ
      - prev/curr: the snapshots themselves
    """
    deltas = {name: int(getattr(curr, name)) - int(getattr(prev, name)) for name in DELTA_FIELDS}
    return {
        "deltas": deltas,
        "level": {
            "prev": prev.risk_level.value,
            "curr": curr.risk_level.value,
            "direction": level_direction(prev.risk_level, curr.risk_level),
        },
        "assessment_changed": prev.assessment_hash != curr.assessment_hash,
        "prev": snapshot_to_dict(prev),
        "curr": snapshot_to_dict(curr),
    }


def diff_snapshot_files(prev_path: Path, curr_path: Path) -> Dict[str, Any]:
    return compare_snapshots(load_snapshot(prev_path), load_snapshot(curr_path))


def write_trend(outdir: Path, trend: Dict[str, Any]) -> Path:
    """
    Write trend.json to outdir, returning its path.
    """
    path = resolve_output_paths(outdir).trend_json
    try:
        outdir.mkdir(parents=True, exist_ok=True)
        path.write_text(stable_json_dumps(trend) + "\n", encoding="utf-8")
    except OSError as e:
        raise HistoryError(f"Failed to write trend {path}: {e}") from e
    return path
