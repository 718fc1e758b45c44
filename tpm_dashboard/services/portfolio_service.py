"""Portfolio service layer — initiatives, projects and the links between them.

Transaction policy: functions use flush() for ID generation, never commit().
The route handler is responsible for db.session.commit().
"""
import logging
from decimal import Decimal

from tpm_dashboard.core.exceptions import ConflictError
from tpm_dashboard.models import db
from tpm_dashboard.models.portfolio import Initiative, InitiativeProgram, InitiativeProject, Project
from tpm_dashboard.services.program_service import _apply, _string_list

logger = logging.getLogger(__name__)

_DATES = ("start_date", "end_date")


# ── Initiative ───────────────────────────────────────────────────────────────

_INITIATIVE_FIELDS = ("name", "description", "status", "owner_id")
_INITIATIVE_LISTS = ("strategic_objectives", "success_criteria")


def create_initiative(data):
    initiative = Initiative(status=data.get("status") or "planning")
    _apply(initiative, data, _INITIATIVE_FIELDS, _DATES)
    initiative.description = initiative.description or ""
    for field in _INITIATIVE_LISTS:
        setattr(initiative, field, _string_list(data.get(field)))
    db.session.add(initiative)
    db.session.flush()
    logger.info("Initiative created id=%s name=%s", initiative.id, initiative.name)
    return initiative


def update_initiative(initiative, data):
    _apply(initiative, data, _INITIATIVE_FIELDS, _DATES)
    for field in _INITIATIVE_LISTS:
        if field in data:
            setattr(initiative, field, _string_list(data[field]))
    db.session.flush()
    return initiative


def delete_initiative(initiative):
    db.session.delete(initiative)
    db.session.flush()


def link_program(initiative, program, data):
    """Attach a program to an initiative.

    Raises:
        ConflictError: the program is already linked.
    """
    if initiative.program_links.filter_by(program_id=program.id).first():
        raise ConflictError("InitiativeProgram", "program_id", str(program.id))
    link = InitiativeProgram(
        initiative_id=initiative.id,
        program_id=program.id,
        contribution=data.get("contribution") or "",
        priority=data.get("priority") or 1,
    )
    db.session.add(link)
    db.session.flush()
    return link


def link_project(initiative, project, data):
    """Attach a project to an initiative.

    Raises:
        ConflictError: the project is already linked.
    """
    if initiative.project_links.filter_by(project_id=project.id).first():
        raise ConflictError("InitiativeProject", "project_id", str(project.id))
    link = InitiativeProject(
        initiative_id=initiative.id,
        project_id=project.id,
        contribution=data.get("contribution") or "",
        priority=data.get("priority") or 1,
    )
    db.session.add(link)
    db.session.flush()
    return link


def unlink(link):
    db.session.delete(link)
    db.session.flush()


# ── Project ──────────────────────────────────────────────────────────────────

_PROJECT_FIELDS = ("name", "description", "status", "owner_id")


def _budget(value):
    return Decimal(str(value)) if value is not None else None


def create_project(program_id, data):
    project = Project(program_id=program_id, status=data.get("status") or "planning")
    _apply(project, data, _PROJECT_FIELDS, _DATES)
    project.description = project.description or ""
    project.deliverables = _string_list(data.get("deliverables"))
    project.budget = _budget(data.get("budget"))
    db.session.add(project)
    db.session.flush()
    logger.info("Project created id=%s program_id=%s", project.id, program_id)
    return project


def update_project(project, data):
    _apply(project, data, _PROJECT_FIELDS, _DATES)
    if "deliverables" in data:
        project.deliverables = _string_list(data["deliverables"])
    if "budget" in data:
        project.budget = _budget(data["budget"])
    db.session.flush()
    return project


def delete_project(project):
    db.session.delete(project)
    db.session.flush()
