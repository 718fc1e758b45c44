"""
Tests — program health score.

Pure function tests: no app context, no database.
"""

from datetime import date, datetime

import pytest

from tpm_dashboard.services.health import calculate_health, is_overdue_milestone
from tpm_dashboard.services.scoring_rules import health_band
from tpm_dashboard.services.snapshot import (
    DependencyView,
    HealthSnapshot,
    MilestoneView,
    RiskView,
)

TODAY = date(2025, 6, 15)


def _risks(*severities):
    return tuple(RiskView(id=i, severity=s) for i, s in enumerate(severities, 1))


def _overdue(n):
    return tuple(
        MilestoneView(id=i, status="in_progress", due_date=date(2025, 1, i)) for i in range(1, n + 1)
    )


def _blocked(n):
    return tuple(DependencyView(id=i, status="blocked") for i in range(1, n + 1))


# ═════════════════════════════════════════════════════════════════════════════
# SCORE
# ═════════════════════════════════════════════════════════════════════════════

def test_clean_program_is_healthy():
    snapshot = HealthSnapshot(
        risks=_risks("low", "low"),
        milestones=(
            MilestoneView(id=1, status="in_progress", due_date=date(2025, 7, 1)),
            MilestoneView(id=2, status="completed", due_date=date(2025, 5, 1)),
            MilestoneView(id=3, status="not_started", due_date=None),
        ),
        dependencies=(DependencyView(id=1, status="on_track"),),
        missing_components=0,
    )
    health = calculate_health(snapshot, TODAY)
    assert health.score == 100
    assert health.status == "Healthy"
    assert health.color == "green"


def test_ten_missing_components_scores_fifty():
    health = calculate_health(HealthSnapshot(missing_components=10), TODAY)
    assert health.score == 50
    assert health.status == "At Risk"
    assert health.breakdown.missing_components == 10


def test_score_is_clamped_at_zero():
    snapshot = HealthSnapshot(
        risks=_risks(*["critical"] * 5),
        milestones=_overdue(3),
        dependencies=_blocked(2),
    )
    health = calculate_health(snapshot, TODAY)
    assert health.score == 0
    assert health.status == "At Risk"
    assert health.color == "red"
    assert health.breakdown.critical_risks == 5
    assert health.breakdown.overdue_milestones == 3
    assert health.breakdown.blocked_dependencies == 2


def test_fifty_critical_risks_never_go_negative():
    health = calculate_health(HealthSnapshot(risks=_risks(*["critical"] * 50)), TODAY)
    assert health.score == 0


def test_high_and_critical_both_count():
    health = calculate_health(HealthSnapshot(risks=_risks("high", "critical", "medium")), TODAY)
    assert health.breakdown.critical_risks == 2
    assert health.score == 70
    assert health.status == "Needs Attention"


def test_unknown_severity_is_not_critical():
    health = calculate_health(HealthSnapshot(risks=_risks("severe", None, 42, " HIGH ")), TODAY)
    # " HIGH " normalizes to "high"; the rest are ignored
    assert health.breakdown.critical_risks == 1


def test_negative_missing_components_counts_as_zero():
    assert calculate_health(HealthSnapshot(missing_components=-3), TODAY).score == 100
    assert calculate_health(HealthSnapshot(missing_components="many"), TODAY).score == 100


def test_empty_snapshot_is_healthy():
    assert calculate_health(HealthSnapshot(), TODAY).score == 100


def test_to_dict_shape():
    data = calculate_health(HealthSnapshot(missing_components=1), TODAY).to_dict()
    assert data == {
        "score": 95,
        "status": "Healthy",
        "color": "green",
        "breakdown": {
            "critical_risks": 0,
            "overdue_milestones": 0,
            "blocked_dependencies": 0,
            "missing_components": 1,
        },
    }


def _snapshot(critical_risks=0, overdue_milestones=0, blocked_dependencies=0, missing_components=0):
    return HealthSnapshot(
        risks=_risks(*["critical"] * critical_risks),
        milestones=_overdue(overdue_milestones),
        dependencies=_blocked(blocked_dependencies),
        missing_components=missing_components,
    )


BASELINES = [
    {},
    {"critical_risks": 1, "overdue_milestones": 1, "blocked_dependencies": 1, "missing_components": 1},
]


@pytest.mark.parametrize("baseline", BASELINES)
@pytest.mark.parametrize("penalty", [
    "critical_risks", "overdue_milestones", "blocked_dependencies", "missing_components",
])
def test_score_never_rises_as_a_penalty_count_grows(penalty, baseline):
    scores = []
    for n in range(0, 12):
        counts = dict(baseline, **{penalty: n})
        health = calculate_health(_snapshot(**counts), TODAY)
        assert getattr(health.breakdown, penalty) == n
        assert 0 <= health.score <= 100
        scores.append(health.score)
    assert all(a >= b for a, b in zip(scores, scores[1:]))
    assert scores[0] > scores[-1]


def test_calculate_health_is_idempotent():
    snapshot = _snapshot(critical_risks=2, overdue_milestones=1, blocked_dependencies=3,
                         missing_components=4)
    first = calculate_health(snapshot, TODAY)
    assert calculate_health(snapshot, TODAY) == first
    assert calculate_health(snapshot, TODAY).to_dict() == first.to_dict()


# ═════════════════════════════════════════════════════════════════════════════
# BANDS & PREDICATES
# ═════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("score,label,color", [
    (100, "Healthy", "green"),
    (80, "Healthy", "green"),
    (79, "Needs Attention", "yellow"),
    (60, "Needs Attention", "yellow"),
    (59, "At Risk", "red"),
    (0, "At Risk", "red"),
])
def test_health_band_boundaries(score, label, color):
    assert health_band(score) == (label, color)


def test_milestone_due_today_is_not_overdue():
    assert not is_overdue_milestone(MilestoneView(status="in_progress", due_date=TODAY), TODAY)


def test_completed_milestone_is_never_overdue():
    assert not is_overdue_milestone(MilestoneView(status="completed", due_date=date(2020, 1, 1)), TODAY)


def test_unknown_status_past_due_is_overdue():
    assert is_overdue_milestone(MilestoneView(status="mystery", due_date=date(2025, 6, 14)), TODAY)


def test_due_date_accepts_datetime_and_iso_string():
    assert is_overdue_milestone(MilestoneView(status=None, due_date=datetime(2025, 6, 1, 9, 0)), TODAY)
    assert is_overdue_milestone(MilestoneView(status=None, due_date="2025-06-01"), TODAY)
    assert not is_overdue_milestone(MilestoneView(status=None, due_date="not a date"), TODAY)
