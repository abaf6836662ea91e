from __future__ import annotations

from .aggregate import aggregate, assess_session, collect_findings
from .components import scan_cabinet
from .nodes import scan_node_maintenance
from .ranges import VOLTAGE_RANGES, check_range
from .recommend import recommend

__all__ = [
    "VOLTAGE_RANGES",
    "aggregate",
    "assess_session",
    "check_range",
    "collect_findings",
    "recommend",
    "scan_cabinet",
    "scan_node_maintenance",
]
