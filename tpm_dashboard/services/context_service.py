"""
Entity context.

For a milestone, risk, dependency or adopter: the entity, its program, every
sibling component of that program (the entity itself excluded from its own
list) and a few analytics. Read-only.
"""

from tpm_dashboard.core.exceptions import NotFoundError
from tpm_dashboard.models import db
from tpm_dashboard.models.portfolio import Project
from tpm_dashboard.models.program import Adopter, Dependency, Milestone, Program
from tpm_dashboard.models.risk import Risk
from tpm_dashboard.services.scoring_rules import READY_THRESHOLD

# Readiness assumed for an unscored adopter in the program average
UNSCORED_READINESS = 50

# list key → (model, singular)
_COMPONENTS = {
    "milestones": (Milestone, "milestone"),
    "risks": (Risk, "risk"),
    "dependencies": (Dependency, "dependency"),
    "adopters": (Adopter, "adopter"),
    "projects": (Project, "project"),
}


def _percent(part, whole) -> int:
    return round(100 * part / max(whole, 1))


def _build(key, entity, analytics):
    """Assemble the context payload; ``analytics(all_rows)`` adds entity-specific figures."""
    siblings = {
        name: model.query.filter_by(program_id=entity.program_id).order_by(model.id).all()
        for name, (model, _) in _COMPONENTS.items()
    }
    own = siblings[key]
    siblings[key] = [row for row in own if row.id != entity.id]

    counts = {f"{singular}_count": len(siblings[name]) for name, (_, singular) in _COMPONENTS.items()}
    program = db.session.get(Program, entity.program_id)
    return {
        _COMPONENTS[key][1]: entity.to_dict(),
        "program": program.to_dict() if program else None,
        "related": {name: [row.to_dict() for row in rows] for name, rows in siblings.items()},
        "analytics": {**counts, **analytics(own)},
    }


def _get(model, pk):
    obj = db.session.get(model, pk)
    if obj is None:
        raise NotFoundError(resource=model.__name__, resource_id=pk)
    return obj


def _resolved_risk_share(program_id) -> int:
    risks = Risk.query.filter_by(program_id=program_id).all()
    return _percent(sum(1 for r in risks if r.status == "resolved"), len(risks))


# ── Public API ───────────────────────────────────────────────────────────────


def milestone_context(milestone_id):
    """``health_score`` is the share of the program's risks that are resolved."""
    milestone = _get(Milestone, milestone_id)
    return _build("milestones", milestone, lambda _: {
        "health_score": _resolved_risk_share(milestone.program_id),
    })


def risk_context(risk_id):
    """``risk_score`` treats unset impact or probability as 3."""
    risk = _get(Risk, risk_id)
    return _build("risks", risk, lambda risks: {
        "risk_score": (risk.impact or 3) * (risk.probability or 3),
        "program_health_score": _percent(
            sum(1 for r in risks if r.status == "resolved"), len(risks),
        ),
    })


def dependency_context(dependency_id):
    dependency = _get(Dependency, dependency_id)
    return _build("dependencies", dependency, lambda deps: {
        "blocked_count": sum(1 for d in deps if d.status == "blocked"),
        "program_health_score": _percent(
            sum(1 for d in deps if d.status == "completed"), len(deps),
        ),
    })


def adopter_context(adopter_id):
    """``program_health_score`` is the mean readiness, unscored adopters counting as 50."""
    adopter = _get(Adopter, adopter_id)
    return _build("adopters", adopter, lambda adopters: {
        "ready_count": sum(1 for a in adopters if (a.readiness_score or 0) >= READY_THRESHOLD),
        "program_health_score": round(
            sum(UNSCORED_READINESS if a.readiness_score is None else a.readiness_score
                for a in adopters) / max(len(adopters), 1)
        ),
    })
