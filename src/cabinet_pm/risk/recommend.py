from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

from ..normalize.schema import RiskLevel

_ONGOING = (
    "Continue regular maintenance schedule",
    "Monitor for any developing issues",
)

RECOMMENDATIONS: Mapping[RiskLevel, Tuple[str, ...]] = MappingProxyType(
    {
        RiskLevel.CRITICAL: (
            "Critical issues identified - Schedule priority maintenance",
            "Address critical items within 1-2 weeks",
            "Monitor affected systems closely until resolved",
        ),
        RiskLevel.MODERATE: (
            "Moderate issues identified - Schedule maintenance",
            "Address issues within 30-60 days",
            "Continue normal system monitoring",
        ),
        RiskLevel.LOW: ("Minor issues identified - Include in next maintenance cycle",) + _ONGOING,
    }
)

NO_ISSUES_RECOMMENDATIONS: Tuple[str, ...] = ("System is operating within acceptable parameters",) + _ONGOING


def recommend(level: RiskLevel, *, has_issues: bool) -> Tuple[str, ...]:
    """LOW covers both "minor issues" and "no issues"; has_issues tells them apart."""
    if level is RiskLevel.LOW and not has_issues:
        return NO_ISSUES_RECOMMENDATIONS
    return RECOMMENDATIONS[level]
