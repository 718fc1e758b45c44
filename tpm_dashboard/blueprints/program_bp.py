"""
TPM Dashboard
Program Blueprint — CRUD API for programs, milestones, dependencies and
adopter teams.

Endpoints:
    Programs:
        GET    /api/v1/programs                              — List (paginated)
        POST   /api/v1/programs                              — Create
        GET    /api/v1/programs/<id>                          — Detail (+ children)
        PUT    /api/v1/programs/<id>                          — Update
        DELETE /api/v1/programs/<id>                          — Delete

    Milestones:
        GET    /api/v1/programs/<pid>/milestones              — List
        POST   /api/v1/programs/<pid>/milestones              — Create
        PUT    /api/v1/milestones/<id>                        — Update
        DELETE /api/v1/milestones/<id>                        — Delete
        POST   /api/v1/milestones/<id>/push-to-jira           — Create epic

    Dependencies:
        GET    /api/v1/programs/<pid>/dependencies            — List
        POST   /api/v1/programs/<pid>/dependencies            — Create
        PUT    /api/v1/dependencies/<id>                      — Update
        DELETE /api/v1/dependencies/<id>                      — Delete

    Adopters:
        GET    /api/v1/programs/<pid>/adopters                — List
        POST   /api/v1/programs/<pid>/adopters                — Create
        PUT    /api/v1/adopters/<id>                          — Update
        DELETE /api/v1/adopters/<id>                          — Delete
"""

import logging

from flask import Blueprint, jsonify, request

from tpm_dashboard.blueprints import paginate_query
from tpm_dashboard.models import db
from tpm_dashboard.models.program import (
    ADOPTER_STATUSES,
    DEPENDENCY_STATUSES,
    MILESTONE_STATUSES,
    PMI_PHASES,
    PROGRAM_STATUSES,
    Adopter,
    Dependency,
    Milestone,
    Program,
)
from tpm_dashboard.services import program_service
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error, get_or_404, invalid_choice, invalid_range

logger = logging.getLogger(__name__)

program_bp = Blueprint("program", __name__, url_prefix="/api/v1")
register_service_error_handlers(program_bp)


# ── Helpers ──────────────────────────────────────────────────────────────────


def _require(data, field):
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        return api_error(E.VALIDATION_REQUIRED, f"{field} is required")
    return None


def _check_list(data, field):
    if field in data and data[field] is not None and not isinstance(data[field], (list, str)):
        return api_error(E.VALIDATION_INVALID, f"{field} must be a list of strings")
    return None


def _check_choices(data, *checks):
    for field, allowed in checks:
        msg = invalid_choice(data, field, allowed)
        if msg:
            return api_error(E.VALIDATION_INVALID, msg)
    return None


# ═════════════════════════════════════════════════════════════════════════════
# PROGRAMS
# ═════════════════════════════════════════════════════════════════════════════

@program_bp.route("/programs", methods=["GET"])
def list_programs():
    """Return programs, optionally filtered by status."""
    q = Program.query
    status = request.args.get("status")
    if status:
        q = q.filter_by(status=status)
    items, total = paginate_query(q.order_by(Program.id))
    return jsonify({"items": [p.to_dict() for p in items], "total": total}), 200


@program_bp.route("/programs", methods=["POST"])
def create_program():
    data = request.get_json(silent=True) or {}
    err = (
        _require(data, "name")
        or _check_choices(data, ("status", PROGRAM_STATUSES))
        or _check_list(data, "objectives")
        or _check_list(data, "kpis")
    )
    if err:
        return err

    program = program_service.create_program(data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(program.to_dict()), 201


@program_bp.route("/programs/<int:program_id>", methods=["GET"])
def get_program(program_id):
    program, err = get_or_404(Program, program_id)
    if err:
        return err
    return jsonify(program.to_dict(include_children=True)), 200


@program_bp.route("/programs/<int:program_id>", methods=["PUT"])
def update_program(program_id):
    program, err = get_or_404(Program, program_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    if "name" in data:
        err = _require(data, "name")
        if err:
            return err
    err = (
        _check_choices(data, ("status", PROGRAM_STATUSES))
        or _check_list(data, "objectives")
        or _check_list(data, "kpis")
    )
    if err:
        return err

    program_service.update_program(program, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(program.to_dict()), 200


@program_bp.route("/programs/<int:program_id>", methods=["DELETE"])
def delete_program(program_id):
    program, err = get_or_404(Program, program_id)
    if err:
        return err
    program_service.delete_program(program)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Program deleted"}), 200


# ═════════════════════════════════════════════════════════════════════════════
# MILESTONES
# ═════════════════════════════════════════════════════════════════════════════

@program_bp.route("/programs/<int:program_id>/milestones", methods=["GET"])
def list_milestones(program_id):
    _, err = get_or_404(Program, program_id)
    if err:
        return err
    milestones = (
        Milestone.query.filter_by(program_id=program_id)
        .order_by(Milestone.due_date, Milestone.id).all()
    )
    return jsonify([m.to_dict() for m in milestones]), 200


@program_bp.route("/programs/<int:program_id>/milestones", methods=["POST"])
def create_milestone(program_id):
    _, err = get_or_404(Program, program_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    err = _require(data, "title") or _check_choices(
        data, ("status", MILESTONE_STATUSES), ("pmp_phase", PMI_PHASES),
    )
    if err:
        return err

    milestone = program_service.create_milestone(program_id, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(milestone.to_dict()), 201


@program_bp.route("/milestones/<int:milestone_id>", methods=["PUT"])
def update_milestone(milestone_id):
    milestone, err = get_or_404(Milestone, milestone_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    if "title" in data:
        err = _require(data, "title")
        if err:
            return err
    err = _check_choices(data, ("status", MILESTONE_STATUSES), ("pmp_phase", PMI_PHASES))
    if err:
        return err

    program_service.update_milestone(milestone, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(milestone.to_dict()), 200


@program_bp.route("/milestones/<int:milestone_id>", methods=["DELETE"])
def delete_milestone(milestone_id):
    milestone, err = get_or_404(Milestone, milestone_id)
    if err:
        return err
    db.session.delete(milestone)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Milestone deleted"}), 200


@program_bp.route("/milestones/<int:milestone_id>/push-to-jira", methods=["POST"])
def push_milestone_to_jira(milestone_id):
    """Create a ticketing epic for the milestone; 502 when jira is not connected."""
    milestone, err = get_or_404(Milestone, milestone_id)
    if err:
        return err
    result = program_service.push_milestone_to_jira(milestone)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"milestone": milestone.to_dict(), "jira_epic_key": result.key}), 200


# ═════════════════════════════════════════════════════════════════════════════
# DEPENDENCIES
# ═════════════════════════════════════════════════════════════════════════════

@program_bp.route("/programs/<int:program_id>/dependencies", methods=["GET"])
def list_dependencies(program_id):
    _, err = get_or_404(Program, program_id)
    if err:
        return err
    deps = Dependency.query.filter_by(program_id=program_id).order_by(Dependency.id).all()
    return jsonify([d.to_dict() for d in deps]), 200


@program_bp.route("/programs/<int:program_id>/dependencies", methods=["POST"])
def create_dependency(program_id):
    _, err = get_or_404(Program, program_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    err = _require(data, "title") or _check_choices(data, ("status", DEPENDENCY_STATUSES))
    if err:
        return err

    dependency = program_service.create_dependency(program_id, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(dependency.to_dict()), 201


@program_bp.route("/dependencies/<int:dependency_id>", methods=["PUT"])
def update_dependency(dependency_id):
    dependency, err = get_or_404(Dependency, dependency_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    if "title" in data:
        err = _require(data, "title")
        if err:
            return err
    err = _check_choices(data, ("status", DEPENDENCY_STATUSES))
    if err:
        return err

    program_service.update_dependency(dependency, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(dependency.to_dict()), 200


@program_bp.route("/dependencies/<int:dependency_id>", methods=["DELETE"])
def delete_dependency(dependency_id):
    dependency, err = get_or_404(Dependency, dependency_id)
    if err:
        return err
    db.session.delete(dependency)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Dependency deleted"}), 200


# ═════════════════════════════════════════════════════════════════════════════
# ADOPTERS
# ═════════════════════════════════════════════════════════════════════════════

@program_bp.route("/programs/<int:program_id>/adopters", methods=["GET"])
def list_adopters(program_id):
    _, err = get_or_404(Program, program_id)
    if err:
        return err
    adopters = Adopter.query.filter_by(program_id=program_id).order_by(Adopter.id).all()
    return jsonify([a.to_dict() for a in adopters]), 200


@program_bp.route("/programs/<int:program_id>/adopters", methods=["POST"])
def create_adopter(program_id):
    _, err = get_or_404(Program, program_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    err = _require(data, "team_name") or _check_choices(data, ("status", ADOPTER_STATUSES))
    if err:
        return err
    msg = invalid_range(data, "readiness_score", 0, 100)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)

    adopter = program_service.create_adopter(program_id, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(adopter.to_dict()), 201


@program_bp.route("/adopters/<int:adopter_id>", methods=["PUT"])
def update_adopter(adopter_id):
    adopter, err = get_or_404(Adopter, adopter_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    if "team_name" in data:
        err = _require(data, "team_name")
        if err:
            return err
    err = _check_choices(data, ("status", ADOPTER_STATUSES))
    if err:
        return err
    msg = invalid_range(data, "readiness_score", 0, 100)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)

    program_service.update_adopter(adopter, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(adopter.to_dict()), 200


@program_bp.route("/adopters/<int:adopter_id>", methods=["DELETE"])
def delete_adopter(adopter_id):
    adopter, err = get_or_404(Adopter, adopter_id)
    if err:
        return err
    db.session.delete(adopter)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Adopter deleted"}), 200
