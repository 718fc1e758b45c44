"""Gap detection — turns structural problems in a program into tracked risks.

Four generators, each idempotent per program:
    missing components   one risk per missing program-level component; stale
                         ones are removed once the component is filled in
    timeline             overdue milestones, milestones < 7 days apart
    dependency           blocked or unowned dependencies
    resource             low adopter readiness, unowned milestones

A risk is only created when the program has no risk with the same title.
Generated risks carry ``source="gap_detection"``.

Transaction policy: flush() only; the route handler commits.
"""
import logging
from datetime import date

from tpm_dashboard.core.exceptions import NotFoundError
from tpm_dashboard.models import db
from tpm_dashboard.models.program import Adopter, Dependency, Milestone, Program
from tpm_dashboard.models.risk import Risk
from tpm_dashboard.services import risk_service
from tpm_dashboard.services.completeness import analyze_completeness
from tpm_dashboard.services.health import (
    is_blocked_dependency,
    is_low_readiness,
    is_overdue_milestone,
)
from tpm_dashboard.services.scoring_rules import LOW_READINESS_THRESHOLD
from tpm_dashboard.services.snapshot import EntityCounts, ProgramView

logger = logging.getLogger(__name__)

GAP_SOURCE = "gap_detection"
COMPRESSED_TIMELINE_DAYS = 7

# component → (title, description, severity, impact, probability)
MISSING_COMPONENT_RISKS = {
    "Description": (
        "Missing Program Description",
        "Program lacks an adequate description. This creates ambiguity in scope, "
        "objectives and stakeholder understanding.",
        "medium", 3, 4,
    ),
    "Owner": (
        "Missing Program Owner",
        "Program has no assigned owner. This creates accountability gaps and "
        "decision-making delays.",
        "high", 4, 4,
    ),
    "Start Date": (
        "Missing Program Start Date",
        "Program lacks a defined start date. This impacts timeline planning and "
        "resource allocation.",
        "medium", 3, 4,
    ),
    "End Date": (
        "Missing Program End Date",
        "Program lacks a defined end date. This creates uncertainty in deliverable "
        "expectations and resource planning.",
        "medium", 3, 4,
    ),
    "Objectives": (
        "Missing Program Objectives",
        "Program lacks clearly defined objectives. This creates alignment issues "
        "and makes success hard to measure.",
        "high", 4, 5,
    ),
    "KPIs": (
        "Missing Key Performance Indicators",
        "Program lacks defined KPIs. This prevents proper success measurement and "
        "progress tracking.",
        "medium", 3, 4,
    ),
    "Milestones": (
        "Missing Program Milestones",
        "Program has no defined milestones. This creates issues with progress "
        "tracking and timeline management.",
        "high", 4, 5,
    ),
    "Adopters": (
        "Missing Adopter Teams",
        "Program has no identified adopter teams. This creates adoption risk and "
        "change management challenges.",
        "medium", 3, 3,
    ),
}


def _get_program(program_id):
    program = db.session.get(Program, program_id)
    if program is None:
        raise NotFoundError("Program", program_id)
    return program


def _existing_titles(program_id):
    return {t for (t,) in db.session.query(Risk.title).filter(Risk.program_id == program_id)}


def create_risk_if_not_exists(program_id, candidate, titles=None):
    """Create a generated risk unless the program already has one with that title.

    Returns:
        The new Risk, or None when a same-titled risk exists.
    """
    titles = _existing_titles(program_id) if titles is None else titles
    if candidate["title"] in titles:
        return None
    risk = risk_service.create_risk(program_id, {
        "status": "identified",
        "source": GAP_SOURCE,
        **candidate,
    })
    titles.add(candidate["title"])
    logger.info("Gap risk created program=%s title=%s", program_id, candidate["title"])
    return risk


# ── Generators ───────────────────────────────────────────────────────────────


def generate_missing_component_risks(program):
    """Sync missing-component risks with the program's current gaps.

    Returns:
        {"created": [Risk, ...], "removed": [title, ...]}
    """
    counts = EntityCounts(
        milestones=Milestone.query.filter_by(program_id=program.id).count(),
        risks=Risk.query.filter_by(program_id=program.id).count(),
        dependencies=Dependency.query.filter_by(program_id=program.id).count(),
        adopters=Adopter.query.filter_by(program_id=program.id).count(),
    )
    missing = set(analyze_completeness(ProgramView.from_model(program), counts).missing)

    removed = []
    stale = Risk.query.filter(
        Risk.program_id == program.id,
        Risk.source == GAP_SOURCE,
        Risk.source_component.in_(tuple(MISSING_COMPONENT_RISKS)),
    ).all()
    for risk in stale:
        if risk.source_component not in missing:
            removed.append(risk.title)
            db.session.delete(risk)
    if removed:
        db.session.flush()
        logger.info("Gap risks resolved program=%s removed=%s", program.id, removed)

    titles = _existing_titles(program.id)
    created = []
    for component, (title, description, severity, impact, probability) in MISSING_COMPONENT_RISKS.items():
        if component not in missing:
            continue
        risk = create_risk_if_not_exists(program.id, {
            "title": title,
            "description": description,
            "severity": severity,
            "impact": impact,
            "probability": probability,
            "pmp_category": "scope",
            "source_component": component,
        }, titles)
        if risk is not None:
            created.append(risk)
    return {"created": created, "removed": removed}


def generate_timeline_risks(program, today=None):
    today = today or date.today()
    milestones = Milestone.query.filter_by(program_id=program.id).all()
    candidates = []

    overdue = [m for m in milestones if is_overdue_milestone(m, today)]
    if overdue:
        candidates.append({
            "title": "Overdue Milestones Risk",
            "description": f"{len(overdue)} milestone(s) are overdue. This may impact the "
                           "overall program timeline and deliverables.",
            "severity": "high", "impact": 4, "probability": 5,
            "pmp_category": "schedule",
        })

    dated = sorted((m for m in milestones if m.due_date), key=lambda m: (m.due_date, m.id))
    for current, nxt in zip(dated, dated[1:]):
        gap = (nxt.due_date - current.due_date).days
        if gap < COMPRESSED_TIMELINE_DAYS:
            candidates.append({
                "title": "Compressed Timeline Risk",
                "description": f'Milestones "{current.title}" and "{nxt.title}" are scheduled '
                               f"too close together ({gap} days). This may create resource conflicts.",
                "severity": "medium", "impact": 3, "probability": 4,
                "pmp_category": "schedule",
            })
            break

    return _create_all(program.id, candidates)


def generate_dependency_risks(program):
    dependencies = Dependency.query.filter_by(program_id=program.id).all()
    candidates = []

    blocked = [d for d in dependencies if is_blocked_dependency(d)]
    if blocked:
        candidates.append({
            "title": "Blocked Dependencies Risk",
            "description": f"{len(blocked)} dependencies are blocked. This may delay program "
                           "milestones and deliverables.",
            "severity": "high", "impact": 4, "probability": 4,
            "pmp_category": "scope",
        })

    unowned = [d for d in dependencies if not d.owner_id]
    if unowned:
        candidates.append({
            "title": "Unassigned Dependencies Risk",
            "description": f"{len(unowned)} dependencies have no assigned owner. This creates "
                           "accountability gaps.",
            "severity": "medium", "impact": 3, "probability": 4,
            "pmp_category": "resources",
        })

    return _create_all(program.id, candidates)


def generate_resource_risks(program):
    adopters = Adopter.query.filter_by(program_id=program.id).all()
    milestones = Milestone.query.filter_by(program_id=program.id).all()
    candidates = []

    low = [a for a in adopters if is_low_readiness(a.readiness_score)]
    if low:
        candidates.append({
            "title": "Low Adopter Readiness Risk",
            "description": f"{len(low)} adopter team(s) have low readiness scores "
                           f"(<{LOW_READINESS_THRESHOLD}%). This may impact adoption success.",
            "severity": "medium", "impact": 3, "probability": 4,
            "pmp_category": "resources",
        })

    unowned = [m for m in milestones if not m.owner_id]
    if unowned:
        candidates.append({
            "title": "Unassigned Milestones Risk",
            "description": f"{len(unowned)} milestone(s) have no assigned owner. This creates "
                           "accountability and delivery risks.",
            "severity": "high", "impact": 4, "probability": 4,
            "pmp_category": "resources",
        })

    return _create_all(program.id, candidates)


def _create_all(program_id, candidates):
    titles = _existing_titles(program_id)
    created = []
    for candidate in candidates:
        risk = create_risk_if_not_exists(program_id, candidate, titles)
        if risk is not None:
            created.append(risk)
    return created


# ── Entry points ─────────────────────────────────────────────────────────────


def _summary(program, created, removed=()):
    return {
        "program_id": program.id,
        "program_name": program.name,
        "created": [r.to_dict() for r in created],
        "removed": list(removed),
    }


def generate_missing_risks(program_id):
    program = _get_program(program_id)
    result = generate_missing_component_risks(program)
    return _summary(program, result["created"], result["removed"])


def generate_all_missing_risks():
    results = []
    for program in Program.query.order_by(Program.id).all():
        result = generate_missing_component_risks(program)
        results.append(_summary(program, result["created"], result["removed"]))
    return results


def detect_gaps(program_id, today=None):
    """Run every generator for one program."""
    program = _get_program(program_id)
    missing = generate_missing_component_risks(program)
    created = list(missing["created"])
    created += generate_timeline_risks(program, today)
    created += generate_dependency_risks(program)
    created += generate_resource_risks(program)
    return _summary(program, created, missing["removed"])


def detect_all_gaps(today=None):
    return [detect_gaps(p.id, today) for p in Program.query.order_by(Program.id).all()]
