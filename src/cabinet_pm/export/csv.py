from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, List

from ..logging import get_logger
from ..normalize.schema import FINDINGS_CSV_FIELDS, IssueFinding
from ..util.errors import ExportError

LOG = get_logger(__name__)


def finding_row(finding: IssueFinding) -> List[str]:
    values = {
        "scope": finding.scope_label,
        "severity": finding.severity.value,
        "weight": str(finding.weight),
        "cause": finding.cause,
        "message": finding.message,
    }
    return [values[field] for field in FINDINGS_CSV_FIELDS]


def write_findings_csv(findings: Iterable[IssueFinding], path: Path) -> int:
    """
    Write one row per finding in production order (the same order as the
    risk breakdown). Returns the number of rows written.
    """
    count = 0
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(FINDINGS_CSV_FIELDS)
            for finding in findings:
                writer.writerow(finding_row(finding))
                count += 1
    except OSError as e:
        raise ExportError(f"Failed to write findings {path}: {e}") from e
    LOG.info("Wrote findings CSV", extra={"step": "export", "phase": "csv", "path": str(path), "rows": count})
    return count
