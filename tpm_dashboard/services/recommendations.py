"""
Deterministic PMI-style recommendation engine.

Rules are grouped by PMI process group and evaluated per program; each rule
fires at most once per program per call. Portfolio rules run once across the
whole program set after the per-program pass. Output is stable-sorted by
priority weight so equal-priority items keep emission order.

Usage:
    recs = generate_recommendations(programs, related_by_id, limit=15)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable

from tpm_dashboard.services.completeness import analyze_completeness
from tpm_dashboard.services.health import (
    as_date,
    is_blocked_dependency,
    is_critical_risk,
    is_low_readiness,
    is_overdue_milestone,
    normalize,
)
from tpm_dashboard.services.scoring_rules import (
    LOW_READINESS_THRESHOLD,
    OPEN_RISK_STATUSES,
    PMI_PROCESS_GROUPS,
    PMO_PROGRAM_THRESHOLD,
    PORTFOLIO_MIN_AVG_RISKS,
    PRIORITY_WEIGHTS,
)
from tpm_dashboard.services.snapshot import Recommendation, RelatedEntities

_EMPTY = RelatedEntities()


@dataclass(frozen=True)
class _Context:
    """Per-program facts the rules read."""
    program: object
    related: RelatedEntities
    missing: frozenset
    today: date


@dataclass(frozen=True)
class _Rule:
    category: str
    title: str
    description: str
    pmi_reference: str
    priority: str
    applies: Callable[[_Context], bool]


# ── Rule predicates ──────────────────────────────────────────────────────────

def _missing(*components):
    def check(ctx):
        return any(c in ctx.missing for c in components)
    return check


def _has_critical_risks(ctx):
    return any(is_critical_risk(r) for r in ctx.related.risks)


def _has_blocked_dependencies(ctx):
    return any(is_blocked_dependency(d) for d in ctx.related.dependencies)


def _has_overdue_milestones(ctx):
    return any(is_overdue_milestone(m, ctx.today) for m in ctx.related.milestones)


def _has_low_readiness_adopters(ctx):
    return any(
        is_low_readiness(getattr(a, "readiness_score", None)) for a in ctx.related.adopters
    )


def _is_open_risk(risk):
    return normalize(getattr(risk, "status", None)) in OPEN_RISK_STATUSES


def _has_overdue_open_risks(ctx):
    for risk in ctx.related.risks:
        due = as_date(getattr(risk, "due_date", None))
        if due is not None and due < ctx.today and _is_open_risk(risk):
            return True
    return False


def _is_completed(ctx):
    return normalize(getattr(ctx.program, "status", None)) == "completed"


def _completed_with_open_risks(ctx):
    return _is_completed(ctx) and any(_is_open_risk(r) for r in ctx.related.risks)


# ═════════════════════════════════════════════════════════════════════════════
# Per-program rules
# ═════════════════════════════════════════════════════════════════════════════

_RULES: tuple[_Rule, ...] = (
    # ── Initiating ──
    _Rule(
        "Initiating", "Develop Program Charter",
        "Write a program charter describing purpose, scope and success criteria "
        "so the program is formally authorized.",
        "PMBOK 4.1 Develop Project Charter", "high",
        _missing("Description"),
    ),
    _Rule(
        "Initiating", "Assign Program Owner",
        "Name an accountable owner who can make decisions and own escalations.",
        "PMBOK 13.1 Identify Stakeholders", "high",
        _missing("Owner"),
    ),
    _Rule(
        "Initiating", "Define Measurable Objectives",
        "Record the business objectives the program must deliver, each with a "
        "measurable outcome.",
        "PMBOK 4.1 Develop Project Charter", "high",
        _missing("Objectives"),
    ),
    # ── Planning ──
    _Rule(
        "Planning", "Create Work Breakdown Structure (WBS)",
        "Break the program into milestones and deliverables so progress can be "
        "planned and tracked.",
        "PMBOK 5.4 Create WBS", "critical",
        _missing("Milestones"),
    ),
    _Rule(
        "Planning", "Conduct Risk Assessment",
        "Run a risk identification session and record probability and impact "
        "for each risk.",
        "PMBOK 11.2 Identify Risks", "high",
        _missing("Risks"),
    ),
    _Rule(
        "Planning", "Develop Program Schedule",
        "Set start and end dates and baseline the schedule.",
        "PMBOK 6.5 Develop Schedule", "high",
        _missing("Start Date", "End Date"),
    ),
    _Rule(
        "Planning", "Define Key Performance Indicators",
        "Agree on the KPIs that show whether the program is delivering value.",
        "PMBOK 8.1 Plan Quality Management", "medium",
        _missing("KPIs"),
    ),
    _Rule(
        "Planning", "Map Program Dependencies",
        "Identify upstream and downstream dependencies and their owners.",
        "PMBOK 6.3 Sequence Activities", "medium",
        _missing("Dependencies"),
    ),
    # ── Executing ──
    _Rule(
        "Executing", "Resolve Blocked Dependencies",
        "Work with dependency owners to unblock the items holding up delivery, "
        "escalating where needed.",
        "PMBOK 4.3 Direct and Manage Project Work", "critical",
        _has_blocked_dependencies,
    ),
    _Rule(
        "Executing", "Identify Adopter Teams",
        "List the teams that will adopt the program's output and plan their "
        "onboarding.",
        "PMBOK 13.1 Identify Stakeholders", "medium",
        _missing("Adopters"),
    ),
    _Rule(
        "Executing", "Support Low-Readiness Adopters",
        "Schedule onboarding support for adopter teams with readiness below "
        f"{LOW_READINESS_THRESHOLD}%.",
        "PMBOK 13.3 Manage Stakeholder Engagement", "high",
        _has_low_readiness_adopters,
    ),
    # ── Monitoring & Controlling ──
    _Rule(
        "Monitoring & Controlling", "Implement Risk Response Plans",
        "Put mitigation plans and owners in place for every high and critical "
        "risk and review them weekly.",
        "PMBOK 11.6 Implement Risk Responses", "critical",
        _has_critical_risks,
    ),
    _Rule(
        "Monitoring & Controlling", "Recover Overdue Milestones",
        "Re-plan overdue milestones and agree recovery dates with their owners.",
        "PMBOK 6.6 Control Schedule", "high",
        _has_overdue_milestones,
    ),
    _Rule(
        "Monitoring & Controlling", "Review Overdue Risk Actions",
        "Follow up on open risks whose response due date has passed.",
        "PMBOK 11.7 Monitor Risks", "medium",
        _has_overdue_open_risks,
    ),
    # ── Closing ──
    _Rule(
        "Closing", "Close Out Open Risks",
        "The program is completed but still has open risks. Resolve, accept or "
        "transfer them before closure.",
        "PMBOK 4.7 Close Project or Phase", "medium",
        _completed_with_open_risks,
    ),
    _Rule(
        "Closing", "Capture Lessons Learned",
        "Hold a retrospective and record lessons learned for future programs.",
        "PMBOK 4.4 Manage Project Knowledge", "low",
        _is_completed,
    ),
)

# Emission order: process group order, then declaration order within a group
PROGRAM_RULES: tuple[_Rule, ...] = tuple(
    sorted(_RULES, key=lambda rule: PMI_PROCESS_GROUPS.index(rule.category))
)


# ═════════════════════════════════════════════════════════════════════════════
# Portfolio rules
# ═════════════════════════════════════════════════════════════════════════════

PMO_GOVERNANCE = Recommendation(
    category="Monitoring & Controlling",
    title="Establish PMO Governance",
    description="Several programs are running in parallel. Set up a program "
                "management office cadence for cross-program reviews, shared "
                "reporting and escalation paths.",
    pmi_reference="PMI Standard for Program Management: Program Governance",
    priority="high",
)

PORTFOLIO_RISK_ASSESSMENT = Recommendation(
    category="Planning",
    title="Conduct Portfolio Risk Assessment",
    description="Programs average fewer than two recorded risks each. Run a "
                "portfolio-level risk workshop to surface unrecorded risks.",
    pmi_reference="PMI Standard for Portfolio Management: Portfolio Risk Management",
    priority="high",
)


def _portfolio_recommendations(programs, related) -> list[Recommendation]:
    if not programs:
        return []
    recs = []
    if len(programs) > PMO_PROGRAM_THRESHOLD:
        recs.append(PMO_GOVERNANCE)
    total_risks = sum(len((related.get(getattr(p, "id", None)) or _EMPTY).risks) for p in programs)
    if total_risks / len(programs) < PORTFOLIO_MIN_AVG_RISKS:
        recs.append(PORTFOLIO_RISK_ASSESSMENT)
    return recs


# ═════════════════════════════════════════════════════════════════════════════
# Engine
# ═════════════════════════════════════════════════════════════════════════════

def program_recommendations(program, related: RelatedEntities | None = None,
                            today: date | None = None) -> list[Recommendation]:
    """Evaluate the per-program rules for one program, in emission order."""
    related = related or _EMPTY
    ctx = _Context(
        program=program,
        related=related,
        missing=frozenset(analyze_completeness(program, related.counts()).missing),
        today=today or date.today(),
    )
    pid = getattr(program, "id", None)
    name = getattr(program, "name", None)
    return [
        Recommendation(
            category=rule.category,
            title=rule.title,
            description=rule.description,
            pmi_reference=rule.pmi_reference,
            priority=rule.priority,
            program_id=pid,
            program_name=name,
        )
        for rule in PROGRAM_RULES
        if rule.applies(ctx)
    ]


def rank(recommendations, limit: int | None = None) -> list[Recommendation]:
    """Stable sort by priority weight (highest first), then truncate.

    ``limit`` None keeps everything; zero or negative returns an empty list.
    """
    if limit is not None and limit <= 0:
        return []
    ordered = sorted(recommendations, key=lambda r: -PRIORITY_WEIGHTS.get(r.priority, 1))
    return ordered if limit is None else ordered[:limit]


def generate_recommendations(programs, related=None, limit: int | None = None,
                             today: date | None = None) -> list[Recommendation]:
    """Produce ranked recommendations for a set of programs.

    Args:
        programs: Sequence of ProgramView (or Program rows).
        related: Mapping of program id → RelatedEntities. Programs without an
            entry are treated as having no related entities.
        limit: Maximum number of items to return.
        today: Reference date for overdue checks.

    Returns:
        List of Recommendation, highest priority first.
    """
    programs = list(programs or ())
    related = related or {}
    today = today or date.today()

    emitted: list[Recommendation] = []
    for program in programs:
        emitted.extend(
            program_recommendations(program, related.get(getattr(program, "id", None)), today)
        )
    emitted.extend(_portfolio_recommendations(programs, related))
    return rank(emitted, limit)
