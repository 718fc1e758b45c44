"""
TPM Dashboard
Risk blueprint — risk register CRUD, Jira import and heatmap.

Endpoints:
    /api/v1/programs/<pid>/risks            GET, POST   (push_to_jira on create)
    /api/v1/programs/<pid>/risks/heatmap    GET
    /api/v1/programs/<pid>/import-jira-risks POST (ticketing issues → risks)
    /api/v1/risks/<id>                      GET, PUT, DELETE
"""

import logging

from flask import Blueprint, jsonify, request

from tpm_dashboard.blueprints import paginate_query
from tpm_dashboard.models.program import Program
from tpm_dashboard.models.risk import RISK_SEVERITIES, RISK_SOURCES, RISK_STATUSES, Risk
from tpm_dashboard.services import risk_service
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error, get_or_404, invalid_choice, invalid_range

logger = logging.getLogger(__name__)

risk_bp = Blueprint("risk", __name__, url_prefix="/api/v1")
register_service_error_handlers(risk_bp)


def _validate(data):
    for field, allowed in (
        ("severity", RISK_SEVERITIES),
        ("status", RISK_STATUSES),
        ("source", RISK_SOURCES),
    ):
        msg = invalid_choice(data, field, allowed)
        if msg:
            return api_error(E.VALIDATION_INVALID, msg)
    for field in ("probability", "impact"):
        msg = invalid_range(data, field, 1, 5)
        if msg:
            return api_error(E.VALIDATION_INVALID, msg)
    return None


# ═══════════════════════════════════════════════════════════════════════════
#  RISK CRUD
# ═══════════════════════════════════════════════════════════════════════════

@risk_bp.route("/programs/<int:pid>/risks", methods=["GET"])
def list_risks(pid):
    """List risks for a program. Filters: status, severity, source."""
    _, err = get_or_404(Program, pid)
    if err:
        return err
    q = Risk.query.filter_by(program_id=pid)
    for arg in ("status", "severity", "source"):
        value = request.args.get(arg)
        if value:
            q = q.filter(getattr(Risk, arg) == value)
    items, total = paginate_query(q.order_by(Risk.risk_score.desc(), Risk.id))
    return jsonify({"items": [r.to_dict() for r in items], "total": total}), 200


@risk_bp.route("/programs/<int:pid>/risks", methods=["POST"])
def create_risk(pid):
    _, err = get_or_404(Program, pid)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        return api_error(E.VALIDATION_REQUIRED, "title is required")
    err = _validate(data)
    if err:
        return err

    risk = risk_service.create_risk(pid, data, push_to_jira=bool(data.get("push_to_jira")))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(risk.to_dict()), 201


@risk_bp.route("/programs/<int:pid>/risks/heatmap", methods=["GET"])
def risk_heatmap(pid):
    _, err = get_or_404(Program, pid)
    if err:
        return err
    risks = Risk.query.filter_by(program_id=pid).order_by(Risk.id).all()
    return jsonify(risk_service.build_heatmap(risks)), 200


@risk_bp.route("/risks/<int:risk_id>", methods=["GET"])
def get_risk(risk_id):
    risk, err = get_or_404(Risk, risk_id)
    if err:
        return err
    return jsonify(risk.to_dict()), 200


@risk_bp.route("/risks/<int:risk_id>", methods=["PUT"])
def update_risk(risk_id):
    risk, err = get_or_404(Risk, risk_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    if "title" in data and (not isinstance(data["title"], str) or not data["title"].strip()):
        return api_error(E.VALIDATION_REQUIRED, "title is required")
    err = _validate(data)
    if err:
        return err

    risk_service.update_risk(risk, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(risk.to_dict()), 200


@risk_bp.route("/risks/<int:risk_id>", methods=["DELETE"])
def delete_risk(risk_id):
    risk, err = get_or_404(Risk, risk_id)
    if err:
        return err
    risk_service.delete_risk(risk)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Risk deleted"}), 200


# ═══════════════════════════════════════════════════════════════════════════
#  JIRA IMPORT
# ═══════════════════════════════════════════════════════════════════════════

@risk_bp.route("/programs/<int:pid>/import-jira-risks", methods=["POST"])
def import_jira_risks(pid):
    """Pull risk issues from the ticketing system. 502 when jira is not connected."""
    program, err = get_or_404(Program, pid)
    if err:
        return err
    risks = risk_service.import_jira_risks(program)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({
        "message": f"Imported {len(risks)} risks from Jira",
        "risks_imported": len(risks),
        "risks": [r.to_dict() for r in risks],
    }), 200
