from __future__ import annotations

import hashlib
import json
from typing import Any

from ..normalize.schema import RiskAssessment
from ..util.serialization import sanitize_for_json

EXCLUDED_FROM_HASH = {"recorded_at", "generated_at", "assessment_hash"}


def _clean_for_hash(obj: Any) -> Any:
    """
    Return an object suitable for deterministic hashing:
    - remove excluded keys from dicts
    - sort dict keys
    - keep lists order as-is (finding order is meaningful)
    """
    if isinstance(obj, dict):
        return {k: _clean_for_hash(v) for k, v in sorted(obj.items()) if k not in EXCLUDED_FROM_HASH}
    if isinstance(obj, list):
        return [_clean_for_hash(x) for x in obj]
    return obj


def stable_hash(obj: Any) -> str:
    """
    SHA256 of the canonical JSON form of obj, excluding transient timestamp
    fields. Keys are sorted to ensure stability.
    """
    cleaned = _clean_for_hash(sanitize_for_json(obj))
    payload = json.dumps(cleaned, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def stable_assessment_hash(assessment: RiskAssessment) -> str:
    return stable_hash(assessment)
