"""
Program health score.

calculate_health() turns a HealthSnapshot into a 0-100 score, a status label
and a color hint. It is pure: no I/O, no clock reads beyond the default for
``today``, and no exceptions for bad data. Unknown severities and statuses
count as the least severe case.
"""

from __future__ import annotations

import math
from datetime import date, datetime

from tpm_dashboard.services.scoring_rules import (
    BLOCKED_DEPENDENCY_STATUS,
    COMPLETED_MILESTONE_STATUS,
    CRITICAL_RISK_SEVERITIES,
    HEALTH_BASE_SCORE,
    HEALTH_PENALTIES,
    LOW_READINESS_THRESHOLD,
    health_band,
)
from tpm_dashboard.services.snapshot import HealthBreakdown, HealthMetrics


def normalize(value) -> str | None:
    """Lower-case, stripped enum value, or None for anything not a string."""
    if not isinstance(value, str):
        return None
    return value.strip().lower() or None


def as_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def non_negative_count(value) -> int:
    """Coerce a count to a non-negative int; non-numeric input counts as 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(0, int(value))


# ── Predicates ───────────────────────────────────────────────────────────────

def is_critical_risk(risk) -> bool:
    return normalize(getattr(risk, "severity", None)) in CRITICAL_RISK_SEVERITIES


def is_overdue_milestone(milestone, today: date) -> bool:
    due = as_date(getattr(milestone, "due_date", None))
    if due is None or due >= today:
        return False
    return normalize(getattr(milestone, "status", None)) != COMPLETED_MILESTONE_STATUS


def is_blocked_dependency(dependency) -> bool:
    return normalize(getattr(dependency, "status", None)) == BLOCKED_DEPENDENCY_STATUS


def is_low_readiness(score) -> bool:
    """Readiness below the threshold. Unscored or non-numeric counts as 0."""
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        score = 0
    return score < LOW_READINESS_THRESHOLD


# ── Calculator ───────────────────────────────────────────────────────────────

def calculate_health(snapshot, today: date | None = None) -> HealthMetrics:
    """Score a program from its related entities.

    Args:
        snapshot: HealthSnapshot (or any object exposing risks, milestones,
            dependencies and missing_components).
        today: Reference date for overdue checks. Defaults to date.today().

    Returns:
        HealthMetrics with the clamped score, label, color and raw counts.
    """
    today = today or date.today()

    critical = sum(1 for r in getattr(snapshot, "risks", None) or () if is_critical_risk(r))
    overdue = sum(
        1 for m in getattr(snapshot, "milestones", None) or ()
        if is_overdue_milestone(m, today)
    )
    blocked = sum(
        1 for d in getattr(snapshot, "dependencies", None) or ()
        if is_blocked_dependency(d)
    )
    missing = non_negative_count(getattr(snapshot, "missing_components", 0))

    score = (
        HEALTH_BASE_SCORE
        - critical * HEALTH_PENALTIES["critical_risk"]
        - overdue * HEALTH_PENALTIES["overdue_milestone"]
        - blocked * HEALTH_PENALTIES["blocked_dependency"]
        - missing * HEALTH_PENALTIES["missing_component"]
    )
    score = max(0, min(100, score))
    label, color = health_band(score)

    return HealthMetrics(
        score=score,
        status=label,
        color=color,
        breakdown=HealthBreakdown(
            critical_risks=critical,
            overdue_milestones=overdue,
            blocked_dependencies=blocked,
            missing_components=missing,
        ),
    )
