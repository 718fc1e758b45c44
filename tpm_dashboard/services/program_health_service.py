"""Program health service — loads snapshots and runs the scoring engine.

Every screen that shows health, completeness or recommendations goes through
this module, so penalty weights, thresholds and the required-component list
come from one place.

Read-only: nothing here writes to the database.
"""
import logging
from datetime import date, timedelta

from flask import current_app

from tpm_dashboard.core.exceptions import NotFoundError
from tpm_dashboard.models import db
from tpm_dashboard.models.hierarchy import JiraBepic, JiraEpic, JiraStory, MilestoneStep
from tpm_dashboard.models.program import Adopter, Dependency, Milestone, Program
from tpm_dashboard.models.risk import Risk
from tpm_dashboard.services.completeness import analyze_completeness
from tpm_dashboard.services.health import calculate_health
from tpm_dashboard.services.recommendations import generate_recommendations
from tpm_dashboard.services.scoring_rules import (
    CRITICAL_RISK_SEVERITIES,
    DASHBOARD_RECOMMENDATION_LIMIT,
    PROGRAM_RECOMMENDATION_LIMIT,
)
from tpm_dashboard.services.snapshot import (
    AdopterView,
    DependencyView,
    HierarchyCounts,
    MilestoneView,
    ProgramView,
    RelatedEntities,
    RiskView,
)

logger = logging.getLogger(__name__)

ACTIVE_PROGRAM_STATUSES = ("active", "planning")
UPCOMING_MILESTONE_DAYS = 7


# ── Snapshot loading ─────────────────────────────────────────────────────────


def use_hierarchy(override=None) -> bool:
    """Whether completeness includes the delivery-hierarchy checks."""
    if override is not None:
        return bool(override)
    return bool(current_app.config.get("COMPLETENESS_INCLUDE_HIERARCHY", False))


def hierarchy_counts(program_id) -> HierarchyCounts:
    steps = (
        db.session.query(MilestoneStep.id)
        .join(Milestone, MilestoneStep.milestone_id == Milestone.id)
        .filter(Milestone.program_id == program_id)
    )
    bepics = (
        db.session.query(JiraBepic.id)
        .join(MilestoneStep, JiraBepic.step_id == MilestoneStep.id)
        .join(Milestone, MilestoneStep.milestone_id == Milestone.id)
        .filter(Milestone.program_id == program_id)
    )
    epics = (
        db.session.query(JiraEpic.id)
        .join(JiraBepic, JiraEpic.bepic_id == JiraBepic.id)
        .join(MilestoneStep, JiraBepic.step_id == MilestoneStep.id)
        .join(Milestone, MilestoneStep.milestone_id == Milestone.id)
        .filter(Milestone.program_id == program_id)
    )
    stories = (
        db.session.query(JiraStory.id)
        .join(JiraEpic, JiraStory.epic_id == JiraEpic.id)
        .join(JiraBepic, JiraEpic.bepic_id == JiraBepic.id)
        .join(MilestoneStep, JiraBepic.step_id == MilestoneStep.id)
        .join(Milestone, MilestoneStep.milestone_id == Milestone.id)
        .filter(Milestone.program_id == program_id)
    )
    return HierarchyCounts(
        steps=steps.count(),
        bepics=bepics.count(),
        epics=epics.count(),
        stories=stories.count(),
    )


def load_related(program_id, include_hierarchy=False) -> RelatedEntities:
    """Copy a program's related rows into an immutable snapshot."""
    return RelatedEntities(
        risks=tuple(RiskView.from_model(r) for r in
                    Risk.query.filter_by(program_id=program_id).order_by(Risk.id)),
        milestones=tuple(MilestoneView.from_model(m) for m in
                         Milestone.query.filter_by(program_id=program_id).order_by(Milestone.id)),
        dependencies=tuple(DependencyView.from_model(d) for d in
                           Dependency.query.filter_by(program_id=program_id).order_by(Dependency.id)),
        adopters=tuple(AdopterView.from_model(a) for a in
                       Adopter.query.filter_by(program_id=program_id).order_by(Adopter.id)),
        hierarchy=hierarchy_counts(program_id) if include_hierarchy else None,
    )


def load_portfolio(include_hierarchy=False):
    """Return ``(program_views, related_by_id)`` for every program."""
    programs = Program.query.order_by(Program.id).all()
    views = [ProgramView.from_model(p) for p in programs]
    related = {p.id: load_related(p.id, include_hierarchy) for p in programs}
    return views, related


def _get_program(program_id):
    program = db.session.get(Program, program_id)
    if program is None:
        raise NotFoundError("Program", program_id)
    return program


# ── Single program ───────────────────────────────────────────────────────────


def assess(view, related, today=None):
    """Run completeness and health for one loaded program."""
    completeness = analyze_completeness(view, related.counts())
    health = calculate_health(related.health_snapshot(len(completeness.missing)), today)
    return completeness, health


def program_completeness(program_id, include_hierarchy=None):
    program = _get_program(program_id)
    related = load_related(program_id, use_hierarchy(include_hierarchy))
    result = analyze_completeness(ProgramView.from_model(program), related.counts())
    return {"program_id": program.id, "program_name": program.name, **result.to_dict()}


def program_health(program_id, limit=PROGRAM_RECOMMENDATION_LIMIT, include_hierarchy=None,
                   today=None):
    """Completeness, health and top recommendations for one program."""
    program = _get_program(program_id)
    view = ProgramView.from_model(program)
    related = load_related(program_id, use_hierarchy(include_hierarchy))
    completeness, health = assess(view, related, today)
    recs = generate_recommendations([view], {view.id: related}, limit=limit, today=today)
    return {
        "program_id": program.id,
        "program_name": program.name,
        "completeness": completeness.to_dict(),
        "health": health.to_dict(),
        "recommendations": [r.to_dict() for r in recs],
    }


# ── Portfolio ────────────────────────────────────────────────────────────────


def dashboard_health(include_hierarchy=None, today=None):
    """Health badge per program."""
    views, related = load_portfolio(use_hierarchy(include_hierarchy))
    items = []
    for view in views:
        completeness, health = assess(view, related[view.id], today)
        items.append({
            "program_id": view.id,
            "program_name": view.name,
            "status": view.status,
            "score": health.score,
            "label": health.status,
            "color": health.color,
            "breakdown": health.to_dict()["breakdown"],
            "completeness": completeness.percentage,
            "missing": list(completeness.missing),
        })
    return items


def dashboard_recommendations(limit=DASHBOARD_RECOMMENDATION_LIMIT, today=None):
    views, related = load_portfolio(use_hierarchy())
    recs = generate_recommendations(views, related, limit=limit, today=today)
    return [r.to_dict() for r in recs]


def dashboard_metrics(today=None):
    """Headline counters for the dashboard.

    - active_programs: status active or planning
    - critical_risks: severity high or critical
    - upcoming_milestones: due between today and seven days from now
    - adopter_score: mean readiness over all adopters (unset counts as 0)
    """
    today = today or date.today()
    horizon = today + timedelta(days=UPCOMING_MILESTONE_DAYS)

    active = Program.query.filter(Program.status.in_(ACTIVE_PROGRAM_STATUSES)).count()
    critical = Risk.query.filter(Risk.severity.in_(tuple(CRITICAL_RISK_SEVERITIES))).count()
    upcoming = Milestone.query.filter(
        Milestone.due_date >= today, Milestone.due_date <= horizon,
    ).count()

    scores = [a.readiness_score or 0 for a in Adopter.query.all()]
    adopter_score = int(sum(scores) / len(scores) + 0.5) if scores else 0

    return {
        "active_programs": active,
        "critical_risks": critical,
        "upcoming_milestones": upcoming,
        "adopter_score": adopter_score,
    }


# ── Missing-component analysis ───────────────────────────────────────────────

# component → (severity, alert title, description template, recommendation)
COMPONENT_ALERTS = {
    "Description": (
        "low", "Insufficient Description",
        'Program "{name}" lacks a proper description.',
        "Add a program description that states objectives and scope.",
    ),
    "Owner": (
        "high", "No Owner Assigned",
        'Program "{name}" has no owner assigned.',
        "Assign a program owner to ensure accountability and decision-making authority.",
    ),
    "Start Date": (
        "medium", "Missing Start Date",
        'Program "{name}" has no start date defined.',
        "Define a clear start date to establish timeline expectations.",
    ),
    "End Date": (
        "medium", "Missing End Date",
        'Program "{name}" has no end date defined.',
        "Define a target end date to establish the completion timeline.",
    ),
    "Objectives": (
        "high", "No Objectives Defined",
        'Program "{name}" has no objectives, so success cannot be measured.',
        "Record measurable objectives agreed with the sponsor.",
    ),
    "KPIs": (
        "medium", "No KPIs Defined",
        'Program "{name}" has no key performance indicators.',
        "Define KPIs to track progress and value delivered.",
    ),
    "Milestones": (
        "high", "No Milestones Defined",
        'Program "{name}" has no milestones, making it impossible to track progress and deadlines.',
        "Define key milestones with dates to establish clear deliverables and timeline expectations.",
    ),
    "Risks": (
        "high", "No Risk Assessment",
        'Program "{name}" has no identified risks, leaving potential issues unmanaged.',
        "Conduct a risk assessment to identify, analyze and plan mitigation for program threats.",
    ),
    "Dependencies": (
        "medium", "No Dependencies Tracked",
        'Program "{name}" has no documented dependencies, which could lead to coordination issues.',
        "Identify and document dependencies between teams, systems and external factors.",
    ),
    "Adopters": (
        "medium", "No Adopter Tracking",
        'Program "{name}" has no adopter readiness tracking, risking poor change management.',
        "Define adopter teams and track their readiness to ensure successful adoption.",
    ),
}
_DEFAULT_ALERT = (
    "low", "Missing {component}",
    'Program "{name}" has no {component_lower} recorded.',
    "Add {component_lower} to complete the delivery hierarchy.",
)


def risk_alerts(program_name, missing):
    alerts = []
    for component in missing:
        severity, title, description, recommendation = COMPONENT_ALERTS.get(component, _DEFAULT_ALERT)
        fmt = {"name": program_name, "component": component, "component_lower": component.lower()}
        alerts.append({
            "type": "missing_component",
            "component": component,
            "severity": severity,
            "title": title.format(**fmt),
            "description": description.format(**fmt),
            "recommendation": recommendation.format(**fmt),
        })
    return alerts


def analyze_programs(program_id=None):
    """Missing components and alerts for one program or, when omitted, all."""
    if program_id is not None:
        program = db.session.get(Program, program_id)
        programs = [program] if program else []
    else:
        programs = Program.query.order_by(Program.id).all()

    include_hierarchy = use_hierarchy()
    results = []
    for program in programs:
        related = load_related(program.id, include_hierarchy)
        completeness = analyze_completeness(ProgramView.from_model(program), related.counts())
        results.append({
            "program_id": program.id,
            "program_name": program.name,
            "missing_components": list(completeness.missing),
            "risk_alerts": risk_alerts(program.name, completeness.missing),
            "completeness_score": completeness.percentage,
        })

    alert_total = sum(len(r["risk_alerts"]) for r in results)
    return {
        "analysis": results,
        "summary": f"Analyzed {len(results)} program(s). "
                   f"Found {alert_total} risk alerts for missing components.",
    }
