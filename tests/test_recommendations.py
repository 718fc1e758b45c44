"""
Tests — PMI recommendation engine.
"""

from datetime import date

import pytest

from tpm_dashboard.services.recommendations import (
    PMO_GOVERNANCE,
    PORTFOLIO_RISK_ASSESSMENT,
    generate_recommendations,
    program_recommendations,
    rank,
)
from tpm_dashboard.services.scoring_rules import PMI_PROCESS_GROUPS, PRIORITY_WEIGHTS
from tpm_dashboard.services.snapshot import (
    AdopterView,
    DependencyView,
    MilestoneView,
    ProgramView,
    Recommendation,
    RelatedEntities,
    RiskView,
)

TODAY = date(2025, 6, 15)


def _complete_program(pid=1, **overrides):
    fields = dict(
        id=pid,
        name=f"Program {pid}",
        description="A well described program with a clear scope.",
        status="active",
        owner_id="owner",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        objectives=("Ship v2",),
        kpis=("Adoption rate",),
    )
    fields.update(overrides)
    return ProgramView(**fields)


def _clean_related(pid=1, **overrides):
    fields = dict(
        risks=(RiskView(id=1, program_id=pid, severity="low", status="identified"),
               RiskView(id=2, program_id=pid, severity="medium", status="mitigated")),
        milestones=(MilestoneView(id=1, program_id=pid, status="in_progress",
                                  due_date=date(2025, 9, 1)),),
        dependencies=(DependencyView(id=1, program_id=pid, status="on_track"),),
        adopters=(AdopterView(id=1, program_id=pid, team_name="Team A", readiness_score=80),),
    )
    fields.update(overrides)
    return RelatedEntities(**fields)


def _titles(recs):
    return [r.title for r in recs]


# ═════════════════════════════════════════════════════════════════════════════
# PER-PROGRAM RULES
# ═════════════════════════════════════════════════════════════════════════════

def test_complete_healthy_program_has_no_program_rules():
    assert program_recommendations(_complete_program(), _clean_related(), TODAY) == []


def test_empty_program_emits_gap_rules():
    program = ProgramView(id=7, name="Bare")
    recs = program_recommendations(program, RelatedEntities(), TODAY)
    titles = _titles(recs)
    assert "Develop Program Charter" in titles
    assert "Create Work Breakdown Structure (WBS)" in titles
    assert "Conduct Risk Assessment" in titles
    assert all(r.program_id == 7 and r.program_name == "Bare" for r in recs)
    # emission order follows process group order
    categories = [r.category for r in recs]
    assert categories == sorted(categories, key=PMI_PROCESS_GROUPS.index)


def test_wbs_rule_is_critical():
    recs = program_recommendations(ProgramView(id=1), RelatedEntities(), TODAY)
    wbs = next(r for r in recs if r.title == "Create Work Breakdown Structure (WBS)")
    assert wbs.category == "Planning"
    assert wbs.priority == "critical"


def test_critical_risks_trigger_response_plans():
    related = _clean_related(risks=(RiskView(id=1, severity="critical", status="identified"),
                                    RiskView(id=2, severity="high", status="identified")))
    recs = program_recommendations(_complete_program(), related, TODAY)
    matching = [r for r in recs if r.title == "Implement Risk Response Plans"]
    assert len(matching) == 1
    assert matching[0].category == "Monitoring & Controlling"
    assert matching[0].priority == "critical"


def test_blocked_dependencies_rule():
    related = _clean_related(dependencies=(DependencyView(id=1, status="blocked"),
                                           DependencyView(id=2, status="blocked")))
    recs = program_recommendations(_complete_program(), related, TODAY)
    assert _titles(recs) == ["Resolve Blocked Dependencies"]
    assert recs[0].category == "Executing"


@pytest.mark.parametrize("score,expected", [
    (None, ["Support Low-Readiness Adopters"]),
    ("n/a", ["Support Low-Readiness Adopters"]),
    (49, ["Support Low-Readiness Adopters"]),
    (50, []),
    (80, []),
])
def test_unscored_adopter_counts_as_low_readiness(score, expected):
    related = _clean_related(adopters=(AdopterView(id=1, readiness_score=score),))
    assert _titles(program_recommendations(_complete_program(), related, TODAY)) == expected


def test_adopter_without_readiness_attribute():
    class BareAdopter:
        team_name = "Legacy"

    related = _clean_related(adopters=(BareAdopter(),))
    assert _titles(program_recommendations(_complete_program(), related, TODAY)) == [
        "Support Low-Readiness Adopters",
    ]


def test_overdue_milestones_rule():
    related = _clean_related(milestones=(
        MilestoneView(id=1, status="in_progress", due_date=date(2025, 6, 1)),
    ))
    assert "Recover Overdue Milestones" in _titles(
        program_recommendations(_complete_program(), related, TODAY)
    )


def test_completed_program_closing_rules():
    program = _complete_program(status="completed")
    recs = program_recommendations(program, _clean_related(), TODAY)
    assert _titles(recs) == ["Close Out Open Risks", "Capture Lessons Learned"]
    assert {r.category for r in recs} == {"Closing"}


def test_unknown_enum_values_do_not_fire():
    related = _clean_related(
        risks=(RiskView(id=1, severity="extreme", status="???"),),
        dependencies=(DependencyView(id=1, status="stuck"),),
    )
    assert program_recommendations(_complete_program(status="weird"), related, TODAY) == []


# ═════════════════════════════════════════════════════════════════════════════
# PORTFOLIO RULES
# ═════════════════════════════════════════════════════════════════════════════

def test_no_programs_no_recommendations():
    assert generate_recommendations([], {}, today=TODAY) == []


def test_pmo_governance_emitted_once_above_two_programs():
    programs = [_complete_program(pid) for pid in (1, 2, 3)]
    related = {pid: _clean_related(pid) for pid in (1, 2, 3)}
    recs = generate_recommendations(programs, related, today=TODAY)
    assert recs == [PMO_GOVERNANCE]


def test_two_programs_no_pmo():
    programs = [_complete_program(pid) for pid in (1, 2)]
    related = {pid: _clean_related(pid) for pid in (1, 2)}
    assert generate_recommendations(programs, related, today=TODAY) == []


def test_portfolio_risk_assessment_when_average_below_two():
    programs = [_complete_program(1), _complete_program(2)]
    related = {
        1: _clean_related(1),
        2: _clean_related(2, risks=(RiskView(id=9, severity="low", status="identified"),)),
    }
    recs = generate_recommendations(programs, related, today=TODAY)
    assert PORTFOLIO_RISK_ASSESSMENT in recs
    assert recs.count(PORTFOLIO_RISK_ASSESSMENT) == 1


def test_program_without_related_entry_counts_as_empty():
    recs = generate_recommendations([_complete_program(1)], {}, today=TODAY)
    titles = _titles(recs)
    assert "Conduct Risk Assessment" in titles
    assert "Conduct Portfolio Risk Assessment" in titles


def test_program_with_none_related_entry_counts_as_empty():
    recs = generate_recommendations([ProgramView(id=1, name="P")], {1: None}, today=TODAY)
    titles = _titles(recs)
    assert "Conduct Portfolio Risk Assessment" in titles
    assert "Conduct Risk Assessment" in titles


# ═════════════════════════════════════════════════════════════════════════════
# RANKING
# ═════════════════════════════════════════════════════════════════════════════

def _rec(title, priority):
    return Recommendation(category="Planning", title=title, description="", pmi_reference="",
                          priority=priority)


def test_rank_is_stable_by_priority():
    recs = [_rec("a", "low"), _rec("b", "high"), _rec("c", "critical"), _rec("d", "high"),
            _rec("e", "unknown")]
    assert _titles(rank(recs)) == ["c", "b", "d", "a", "e"]


def test_rank_limit():
    recs = [_rec(str(i), "medium") for i in range(5)]
    assert len(rank(recs, 3)) == 3
    assert rank(recs, 0) == []
    assert rank(recs, -1) == []
    assert len(rank(recs, None)) == 5


def test_generate_respects_limit_and_order():
    programs = [ProgramView(id=i, name=f"P{i}") for i in range(1, 5)]
    recs = generate_recommendations(programs, {}, limit=6, today=TODAY)
    assert len(recs) == 6
    assert all(r.priority == "critical" for r in recs[:4])
    assert recs[0].program_id == 1


def _mixed_portfolio():
    programs = [
        ProgramView(id=1, name="Bare"),
        _complete_program(2, status="completed"),
        _complete_program(3),
        _complete_program(4, kpis=()),
    ]
    related = {
        1: None,
        2: _clean_related(2),
        3: _clean_related(3, risks=(RiskView(id=5, severity="critical", status="identified"),),
                          dependencies=(DependencyView(id=5, status="blocked"),),
                          adopters=(AdopterView(id=5, readiness_score=10),)),
        4: _clean_related(4),
    }
    return programs, related


def test_generated_output_is_ordered_by_priority_weight():
    programs, related = _mixed_portfolio()
    recs = generate_recommendations(programs, related, today=TODAY)
    assert len({r.priority for r in recs}) > 1
    weights = [PRIORITY_WEIGHTS[r.priority] for r in recs]
    assert all(a >= b for a, b in zip(weights, weights[1:]))


def test_generated_ties_keep_emission_order():
    programs, related = _mixed_portfolio()
    emitted = [
        rec for program in programs
        for rec in program_recommendations(program, related[program.id], TODAY)
    ] + [PMO_GOVERNANCE, PORTFOLIO_RISK_ASSESSMENT]
    recs = generate_recommendations(programs, related, today=TODAY)
    assert sorted(recs, key=emitted.index) == emitted
    for priority in PRIORITY_WEIGHTS:
        assert [r for r in recs if r.priority == priority] == [
            r for r in emitted if r.priority == priority
        ]


def test_engine_is_idempotent():
    programs, related = _mixed_portfolio()
    first = generate_recommendations(programs, related, today=TODAY)
    assert generate_recommendations(programs, related, today=TODAY) == first
    for program in programs:
        once = program_recommendations(program, related[program.id], TODAY)
        assert program_recommendations(program, related[program.id], TODAY) == once


def test_recommendation_to_dict():
    data = PMO_GOVERNANCE.to_dict()
    assert data["title"] == "Establish PMO Governance"
    assert data["program_id"] is None
