"""
Scoring Rules Registry

Penalty weights, status thresholds and rule constants shared by the health,
completeness and recommendation functions. Every screen that shows a score
reads these values from here.

Usage:
    from tpm_dashboard.services.scoring_rules import HEALTH_PENALTIES, health_band
    label, color = health_band(72)   # -> ("Needs Attention", "yellow")
"""

from __future__ import annotations


# ═════════════════════════════════════════════════════════════════════════════
# Health score
# ═════════════════════════════════════════════════════════════════════════════

HEALTH_BASE_SCORE = 100

HEALTH_PENALTIES: dict[str, int] = {
    "critical_risk": 15,
    "overdue_milestone": 10,
    "blocked_dependency": 10,
    "missing_component": 5,
}

# (minimum score, label, color), evaluated top-down
HEALTH_BANDS: tuple[tuple[int, str, str], ...] = (
    (80, "Healthy", "green"),
    (60, "Needs Attention", "yellow"),
    (0, "At Risk", "red"),
)

CRITICAL_RISK_SEVERITIES = frozenset({"high", "critical"})
BLOCKED_DEPENDENCY_STATUS = "blocked"
COMPLETED_MILESTONE_STATUS = "completed"
OPEN_RISK_STATUSES = frozenset({"identified", "in_progress"})


def health_band(score: int) -> tuple[str, str]:
    """Map a clamped 0-100 score to its (label, color) pair."""
    for minimum, label, color in HEALTH_BANDS:
        if score >= minimum:
            return label, color
    return HEALTH_BANDS[-1][1], HEALTH_BANDS[-1][2]


# ═════════════════════════════════════════════════════════════════════════════
# Completeness
# ═════════════════════════════════════════════════════════════════════════════

DESCRIPTION_MIN_LENGTH = 10

REQUIRED_COMPONENTS: tuple[str, ...] = (
    "Description",
    "Owner",
    "Start Date",
    "End Date",
    "Objectives",
    "KPIs",
    "Milestones",
    "Risks",
    "Dependencies",
    "Adopters",
)

HIERARCHY_COMPONENTS: tuple[str, ...] = (
    "Milestone Steps",
    "Business Epics",
    "Epics",
    "Stories",
)


# ═════════════════════════════════════════════════════════════════════════════
# Recommendations
# ═════════════════════════════════════════════════════════════════════════════

PMI_PROCESS_GROUPS: tuple[str, ...] = (
    "Initiating",
    "Planning",
    "Executing",
    "Monitoring & Controlling",
    "Closing",
)

PRIORITY_WEIGHTS: dict[str, int] = {
    "critical": 4,
    "high": 3,
    "medium": 2,
    "low": 1,
}

LOW_READINESS_THRESHOLD = 50
READY_THRESHOLD = 75               # readiness at or above → adopter counted as ready
PMO_PROGRAM_THRESHOLD = 2          # more than this many programs → PMO governance
PORTFOLIO_MIN_AVG_RISKS = 2        # fewer risks per program on average → portfolio review

# Presentation limits used by the REST layer
DASHBOARD_RECOMMENDATION_LIMIT = 15
PROGRAM_RECOMMENDATION_LIMIT = 8
