"""Program service layer — programs, milestones, dependencies, adopters and the
mirrored delivery hierarchy.

Transaction policy: functions use flush() for ID generation, never commit().
The route handler is responsible for db.session.commit().

Input shape (required fields, enum membership, ranges) is checked in the
blueprint; this layer applies the data and enforces business rules.
"""
import logging
from datetime import date, datetime, timezone

from tpm_dashboard.core.exceptions import NotFoundError
from tpm_dashboard.integrations.registry import get_ticketing_client
from tpm_dashboard.models import db
from tpm_dashboard.models.hierarchy import JiraBepic, JiraEpic, JiraStory, MilestoneStep
from tpm_dashboard.models.program import Adopter, Dependency, Milestone, Program
from tpm_dashboard.utils.helpers import parse_date

logger = logging.getLogger(__name__)


def _string_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [str(v) for v in value if v is not None and str(v).strip()]


def _apply(obj, data, fields, date_fields=()):
    for field in fields:
        if field in data:
            setattr(obj, field, data[field])
    for field in date_fields:
        if field in data:
            setattr(obj, field, parse_date(data[field]))


# ── Program ──────────────────────────────────────────────────────────────────

_PROGRAM_FIELDS = ("name", "description", "status", "owner_id")
_PROGRAM_DATES = ("start_date", "end_date")


def create_program(data):
    program = Program(
        name=data["name"],
        description=data.get("description") or "",
        status=data.get("status") or "planning",
        owner_id=data.get("owner_id"),
        objectives=_string_list(data.get("objectives")),
        kpis=_string_list(data.get("kpis")),
        start_date=parse_date(data.get("start_date")),
        end_date=parse_date(data.get("end_date")),
    )
    db.session.add(program)
    db.session.flush()
    logger.info("Program created id=%s name=%s", program.id, program.name)
    return program


def update_program(program, data):
    _apply(program, data, _PROGRAM_FIELDS, _PROGRAM_DATES)
    if "objectives" in data:
        program.objectives = _string_list(data["objectives"])
    if "kpis" in data:
        program.kpis = _string_list(data["kpis"])
    db.session.flush()
    return program


def delete_program(program):
    logger.info("Program deleted id=%s", program.id)
    db.session.delete(program)
    db.session.flush()


# ── Milestone ────────────────────────────────────────────────────────────────

_MILESTONE_FIELDS = ("title", "description", "status", "owner_id", "jira_epic_key", "pmp_phase")


def _stamp_completion(milestone, today=None):
    if milestone.status == "completed":
        if milestone.completed_date is None:
            milestone.completed_date = today or date.today()
    else:
        milestone.completed_date = None


def create_milestone(program_id, data):
    milestone = Milestone(
        program_id=program_id,
        title=data["title"],
        description=data.get("description") or "",
        status=data.get("status") or "not_started",
        owner_id=data.get("owner_id"),
        due_date=parse_date(data.get("due_date")),
        jira_epic_key=data.get("jira_epic_key"),
        pmp_phase=data.get("pmp_phase"),
    )
    _stamp_completion(milestone)
    db.session.add(milestone)
    db.session.flush()
    return milestone


def update_milestone(milestone, data):
    _apply(milestone, data, _MILESTONE_FIELDS, ("due_date",))
    if "status" in data:
        _stamp_completion(milestone)
    db.session.flush()
    return milestone


def push_milestone_to_jira(milestone):
    """Create an epic for the milestone and store its key.

    Raises:
        IntegrationNotConfiguredError: jira is not connected.
    """
    client = get_ticketing_client()
    result = client.create_epic(
        summary=milestone.title,
        description=milestone.description or "",
        due_date=milestone.due_date.isoformat() if milestone.due_date else None,
    )
    if result.key:
        milestone.jira_epic_key = result.key
    db.session.flush()
    logger.info("Milestone %s pushed to ticketing as %s", milestone.id, result.key)
    return result


# ── Dependency ───────────────────────────────────────────────────────────────

_DEPENDENCY_FIELDS = ("title", "description", "upstream_id", "downstream_id", "status", "owner_id")


def create_dependency(program_id, data):
    dependency = Dependency(
        program_id=program_id,
        title=data["title"],
        description=data.get("description") or "",
        upstream_id=data.get("upstream_id"),
        downstream_id=data.get("downstream_id"),
        status=data.get("status") or "on_track",
        owner_id=data.get("owner_id"),
    )
    db.session.add(dependency)
    db.session.flush()
    return dependency


def update_dependency(dependency, data):
    _apply(dependency, data, _DEPENDENCY_FIELDS)
    db.session.flush()
    return dependency


# ── Adopter ──────────────────────────────────────────────────────────────────

_ADOPTER_FIELDS = ("team_name", "description", "status", "readiness_score",
                   "contact_id", "onboarding_notes")


def create_adopter(program_id, data):
    adopter = Adopter(
        program_id=program_id,
        team_name=data["team_name"],
        description=data.get("description") or "",
        status=data.get("status") or "not_started",
        readiness_score=data.get("readiness_score"),
        contact_id=data.get("contact_id"),
        onboarding_notes=data.get("onboarding_notes") or "",
    )
    db.session.add(adopter)
    db.session.flush()
    return adopter


def update_adopter(adopter, data):
    _apply(adopter, data, _ADOPTER_FIELDS)
    if "last_check_in" in data:
        adopter.last_check_in = datetime.now(timezone.utc) if data["last_check_in"] else None
    db.session.flush()
    return adopter


# ── Hierarchy ────────────────────────────────────────────────────────────────

# child model → (parent model, parent FK column)
HIERARCHY_LEVELS = {
    MilestoneStep: (Milestone, "milestone_id"),
    JiraBepic: (MilestoneStep, "step_id"),
    JiraEpic: (JiraBepic, "bepic_id"),
    JiraStory: (JiraEpic, "epic_id"),
}


def list_children(model, parent_id):
    parent_model, fk = HIERARCHY_LEVELS[model]
    if db.session.get(parent_model, parent_id) is None:
        raise NotFoundError(parent_model.__name__, parent_id)
    return model.query.filter_by(**{fk: parent_id}).order_by(model.id).all()


def create_child(model, parent_id, data):
    parent_model, fk = HIERARCHY_LEVELS[model]
    if db.session.get(parent_model, parent_id) is None:
        raise NotFoundError(parent_model.__name__, parent_id)
    child = model(
        title=data["title"],
        description=data.get("description") or "",
        status=data.get("status") or "not_started",
        jira_key=data.get("jira_key"),
        **{fk: parent_id},
    )
    if model is MilestoneStep:
        child.sort_order = data.get("sort_order") or 0
    if model is JiraStory:
        child.story_points = data.get("story_points")
    db.session.add(child)
    db.session.flush()
    return child
