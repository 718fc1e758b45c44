"""
Tests — program completeness check.
"""

from datetime import date

from tpm_dashboard.services.completeness import analyze_completeness
from tpm_dashboard.services.scoring_rules import HIERARCHY_COMPONENTS, REQUIRED_COMPONENTS
from tpm_dashboard.services.snapshot import EntityCounts, HierarchyCounts, ProgramView


def _full_program(**overrides):
    fields = dict(
        id=1,
        name="Payments Platform",
        description="Consolidate card and wallet payments onto one platform.",
        status="active",
        owner_id="u-42",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        objectives=("Retire the legacy gateway",),
        kpis=("Checkout conversion",),
    )
    fields.update(overrides)
    return ProgramView(**fields)


FULL_COUNTS = EntityCounts(milestones=3, risks=2, dependencies=1, adopters=1)


def test_empty_program_misses_everything():
    program = ProgramView(id=1, name="Empty", description="", objectives=(), kpis=())
    result = analyze_completeness(program, EntityCounts())
    assert result.percentage == 0
    assert result.completed == 0
    assert result.total == 10
    assert list(result.missing) == list(REQUIRED_COMPONENTS)


def test_full_program_is_complete():
    result = analyze_completeness(_full_program(), FULL_COUNTS)
    assert result.missing == ()
    assert result.percentage == 100
    assert result.completed == result.total == 10


def test_description_needs_ten_characters_after_trim():
    short = analyze_completeness(_full_program(description="  too short "), FULL_COUNTS)
    assert short.missing == ("Description",)
    exact = analyze_completeness(_full_program(description="0123456789"), FULL_COUNTS)
    assert exact.missing == ()


def test_blank_list_entries_do_not_count():
    result = analyze_completeness(_full_program(objectives=("", "   "), kpis=(None,)), FULL_COUNTS)
    assert result.missing == ("Objectives", "KPIs")


def test_missing_keeps_canonical_order():
    program = _full_program(owner_id=None, end_date=None)
    counts = EntityCounts(milestones=0, risks=2, dependencies=0, adopters=1)
    result = analyze_completeness(program, counts)
    assert result.missing == ("Owner", "End Date", "Milestones", "Dependencies")
    assert result.percentage == 60


def test_percentage_is_rounded():
    # 7 of 10 → 70; with hierarchy 11 of 14 → 79 (78.57 rounds up)
    counts = EntityCounts(
        milestones=3, risks=2, dependencies=1, adopters=1,
        hierarchy=HierarchyCounts(steps=1, bepics=0, epics=0, stories=0),
    )
    result = analyze_completeness(_full_program(), counts)
    assert result.total == 14
    assert result.completed == 11
    assert result.percentage == 79
    assert result.missing == ("Business Epics", "Epics", "Stories")


def test_hierarchy_checks_only_when_supplied():
    without = analyze_completeness(_full_program(), FULL_COUNTS)
    assert without.total == 10
    with_full = analyze_completeness(_full_program(), EntityCounts(
        milestones=1, risks=1, dependencies=1, adopters=1,
        hierarchy=HierarchyCounts(steps=2, bepics=1, epics=4, stories=9),
    ))
    assert with_full.total == 14
    assert with_full.percentage == 100


def test_negative_counts_treated_as_zero():
    counts = EntityCounts(milestones=-1, risks=2, dependencies=1, adopters=1)
    assert analyze_completeness(_full_program(), counts).missing == ("Milestones",)


def test_accepts_plain_objects():
    class Row:
        description = "A sufficiently long description"
        owner_id = "owner"
        start_date = date(2025, 1, 1)
        end_date = date(2025, 2, 1)
        objectives = ["one"]
        kpis = "single kpi"

    result = analyze_completeness(Row(), FULL_COUNTS)
    assert result.percentage == 100


def test_to_dict_lists_missing():
    data = analyze_completeness(_full_program(kpis=()), FULL_COUNTS).to_dict()
    assert data == {"percentage": 90, "completed": 9, "total": 10, "missing": ["KPIs"]}


def test_missing_follows_component_registry_with_hierarchy():
    program = ProgramView(id=1, name="Empty")
    result = analyze_completeness(program, EntityCounts(hierarchy=HierarchyCounts()))
    assert result.missing == REQUIRED_COMPONENTS + HIERARCHY_COMPONENTS
    assert result.total == len(REQUIRED_COMPONENTS) + len(HIERARCHY_COMPONENTS)


def test_analyze_completeness_is_idempotent():
    program = _full_program(owner_id=None, kpis=())
    counts = EntityCounts(milestones=1, risks=0, dependencies=2, adopters=0,
                          hierarchy=HierarchyCounts(steps=1))
    first = analyze_completeness(program, counts)
    assert analyze_completeness(program, counts) == first
    assert first.missing == ("Owner", "KPIs", "Risks", "Adopters", "Business Epics", "Epics", "Stories")
