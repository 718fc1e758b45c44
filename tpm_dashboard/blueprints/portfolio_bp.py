"""
TPM Dashboard
Portfolio Blueprint — initiatives, projects and initiative links.

Endpoints:
    Initiatives:
        GET    /api/v1/initiatives                            — List (paginated)
        POST   /api/v1/initiatives                            — Create
        GET    /api/v1/initiatives/<id>                       — Detail (+ linked programs/projects)
        PUT    /api/v1/initiatives/<id>                       — Update
        DELETE /api/v1/initiatives/<id>                       — Delete
        POST   /api/v1/initiatives/<id>/programs              — Link a program
        DELETE /api/v1/initiatives/<id>/programs/<pid>        — Unlink a program
        POST   /api/v1/initiatives/<id>/projects              — Link a project
        DELETE /api/v1/initiatives/<id>/projects/<prid>       — Unlink a project

    Projects:
        GET    /api/v1/programs/<pid>/projects                — List
        POST   /api/v1/programs/<pid>/projects                — Create
        GET    /api/v1/projects/<id>                          — Detail
        PUT    /api/v1/projects/<id>                          — Update
        DELETE /api/v1/projects/<id>                          — Delete
"""

import logging

from flask import Blueprint, jsonify, request

from tpm_dashboard.blueprints import paginate_query
from tpm_dashboard.models.portfolio import (
    INITIATIVE_STATUSES,
    PROJECT_STATUSES,
    Initiative,
    Project,
)
from tpm_dashboard.models.program import Program
from tpm_dashboard.services import portfolio_service
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error, get_or_404, invalid_choice, invalid_range

logger = logging.getLogger(__name__)

portfolio_bp = Blueprint("portfolio", __name__, url_prefix="/api/v1")
register_service_error_handlers(portfolio_bp)

LINK_PRIORITY_RANGE = (1, 10)


# ── Helpers ──────────────────────────────────────────────────────────────────


def _check_name(data, *, required):
    if not required and "name" not in data:
        return None
    value = data.get("name")
    if not isinstance(value, str) or not value.strip():
        return api_error(E.VALIDATION_REQUIRED, "name is required")
    return None


def _check_fields(data, statuses, list_fields):
    msg = invalid_choice(data, "status", statuses)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)
    for field in list_fields:
        if data.get(field) is not None and not isinstance(data[field], (list, str)):
            return api_error(E.VALIDATION_INVALID, f"{field} must be a list of strings")
    return None


def _check_budget(data):
    value = data.get("budget")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        return api_error(E.VALIDATION_INVALID, "budget must be a non-negative number")
    return None


def _check_link(data):
    msg = invalid_range(data, "priority", *LINK_PRIORITY_RANGE)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)
    if data.get("contribution") is not None and not isinstance(data["contribution"], str):
        return api_error(E.VALIDATION_INVALID, "contribution must be a string")
    return None


def _committed(payload, status):
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(payload), status


# ═════════════════════════════════════════════════════════════════════════════
# INITIATIVES
# ═════════════════════════════════════════════════════════════════════════════

_INITIATIVE_LISTS = ("strategic_objectives", "success_criteria")


@portfolio_bp.route("/initiatives", methods=["GET"])
def list_initiatives():
    q = Initiative.query
    status = request.args.get("status")
    if status:
        q = q.filter_by(status=status)
    items, total = paginate_query(q.order_by(Initiative.id))
    return jsonify({"items": [i.to_dict() for i in items], "total": total}), 200


@portfolio_bp.route("/initiatives", methods=["POST"])
def create_initiative():
    data = request.get_json(silent=True) or {}
    err = (
        _check_name(data, required=True)
        or _check_fields(data, INITIATIVE_STATUSES, _INITIATIVE_LISTS)
    )
    if err:
        return err
    initiative = portfolio_service.create_initiative(data)
    return _committed(initiative.to_dict(include_links=True), 201)


@portfolio_bp.route("/initiatives/<int:initiative_id>", methods=["GET"])
def get_initiative(initiative_id):
    initiative, err = get_or_404(Initiative, initiative_id)
    if err:
        return err
    return jsonify(initiative.to_dict(include_links=True)), 200


@portfolio_bp.route("/initiatives/<int:initiative_id>", methods=["PUT"])
def update_initiative(initiative_id):
    initiative, err = get_or_404(Initiative, initiative_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    err = (
        _check_name(data, required=False)
        or _check_fields(data, INITIATIVE_STATUSES, _INITIATIVE_LISTS)
    )
    if err:
        return err
    portfolio_service.update_initiative(initiative, data)
    return _committed(initiative.to_dict(include_links=True), 200)


@portfolio_bp.route("/initiatives/<int:initiative_id>", methods=["DELETE"])
def delete_initiative(initiative_id):
    initiative, err = get_or_404(Initiative, initiative_id)
    if err:
        return err
    portfolio_service.delete_initiative(initiative)
    return _committed({"message": "Initiative deleted"}, 200)


# ── Links ────────────────────────────────────────────────────────────────────


def _link_target(data, key, model):
    """Resolve ``data[key]`` to a row. Returns (obj, err)."""
    target_id = data.get(key)
    if isinstance(target_id, bool) or not isinstance(target_id, int):
        return None, api_error(E.VALIDATION_REQUIRED, f"{key} is required")
    return get_or_404(model, target_id)


@portfolio_bp.route("/initiatives/<int:initiative_id>/programs", methods=["POST"])
def link_program(initiative_id):
    """Body: { program_id, contribution?, priority? (1-10) }"""
    initiative, err = get_or_404(Initiative, initiative_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    program, err = _link_target(data, "program_id", Program)
    if err:
        return err
    err = _check_link(data)
    if err:
        return err
    link = portfolio_service.link_program(initiative, program, data)
    return _committed(link.to_dict(), 201)


@portfolio_bp.route("/initiatives/<int:initiative_id>/programs/<int:program_id>", methods=["DELETE"])
def unlink_program(initiative_id, program_id):
    initiative, err = get_or_404(Initiative, initiative_id)
    if err:
        return err
    link = initiative.program_links.filter_by(program_id=program_id).first()
    if link is None:
        return api_error(E.NOT_FOUND, f"Program {program_id} is not linked to this initiative")
    portfolio_service.unlink(link)
    return _committed({"message": "Program unlinked"}, 200)


@portfolio_bp.route("/initiatives/<int:initiative_id>/projects", methods=["POST"])
def link_project(initiative_id):
    """Body: { project_id, contribution?, priority? (1-10) }"""
    initiative, err = get_or_404(Initiative, initiative_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    project, err = _link_target(data, "project_id", Project)
    if err:
        return err
    err = _check_link(data)
    if err:
        return err
    link = portfolio_service.link_project(initiative, project, data)
    return _committed(link.to_dict(), 201)


@portfolio_bp.route("/initiatives/<int:initiative_id>/projects/<int:project_id>", methods=["DELETE"])
def unlink_project(initiative_id, project_id):
    initiative, err = get_or_404(Initiative, initiative_id)
    if err:
        return err
    link = initiative.project_links.filter_by(project_id=project_id).first()
    if link is None:
        return api_error(E.NOT_FOUND, f"Project {project_id} is not linked to this initiative")
    portfolio_service.unlink(link)
    return _committed({"message": "Project unlinked"}, 200)


# ═════════════════════════════════════════════════════════════════════════════
# PROJECTS
# ═════════════════════════════════════════════════════════════════════════════

@portfolio_bp.route("/programs/<int:pid>/projects", methods=["GET"])
def list_projects(pid):
    _, err = get_or_404(Program, pid)
    if err:
        return err
    items, total = paginate_query(Project.query.filter_by(program_id=pid).order_by(Project.id))
    return jsonify({"items": [p.to_dict() for p in items], "total": total}), 200


@portfolio_bp.route("/programs/<int:pid>/projects", methods=["POST"])
def create_project(pid):
    _, err = get_or_404(Program, pid)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    err = (
        _check_name(data, required=True)
        or _check_fields(data, PROJECT_STATUSES, ("deliverables",))
        or _check_budget(data)
    )
    if err:
        return err
    project = portfolio_service.create_project(pid, data)
    return _committed(project.to_dict(), 201)


@portfolio_bp.route("/projects/<int:project_id>", methods=["GET"])
def get_project(project_id):
    project, err = get_or_404(Project, project_id)
    if err:
        return err
    return jsonify(project.to_dict()), 200


@portfolio_bp.route("/projects/<int:project_id>", methods=["PUT"])
def update_project(project_id):
    project, err = get_or_404(Project, project_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    err = (
        _check_name(data, required=False)
        or _check_fields(data, PROJECT_STATUSES, ("deliverables",))
        or _check_budget(data)
    )
    if err:
        return err
    portfolio_service.update_project(project, data)
    return _committed(project.to_dict(), 200)


@portfolio_bp.route("/projects/<int:project_id>", methods=["DELETE"])
def delete_project(project_id):
    project, err = get_or_404(Project, project_id)
    if err:
        return err
    portfolio_service.delete_project(project)
    return _committed({"message": "Project deleted"}, 200)
