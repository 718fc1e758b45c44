"""
TPM Dashboard
Escalation blueprint.

Endpoints:
    GET/POST /api/v1/programs/<pid>/escalations    — list / create + dispatch
    GET      /api/v1/escalations/<id>              — detail
    PATCH    /api/v1/escalations/<id>/status       — status transition

A create always returns 201 once the escalation is stored; per-channel
delivery outcomes are in ``delivery_results``.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from tpm_dashboard.blueprints import paginate_query
from tpm_dashboard.models.escalation import ESCALATION_STATUSES, ESCALATION_URGENCIES, Escalation
from tpm_dashboard.models.program import Program
from tpm_dashboard.services import escalation_service
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error, get_or_404, invalid_choice

logger = logging.getLogger(__name__)

escalation_bp = Blueprint("escalation", __name__, url_prefix="/api/v1")
register_service_error_handlers(escalation_bp)


@escalation_bp.route("/programs/<int:pid>/escalations", methods=["GET"])
def list_escalations(pid):
    _, err = get_or_404(Program, pid)
    if err:
        return err
    q = Escalation.query.filter_by(program_id=pid)
    status = request.args.get("status")
    if status:
        q = q.filter_by(status=status)
    items, total = paginate_query(q.order_by(Escalation.created_at.desc(), Escalation.id.desc()))
    return jsonify({"items": [e.to_dict() for e in items], "total": total}), 200


@escalation_bp.route("/programs/<int:pid>/escalations", methods=["POST"])
def create_escalation(pid):
    """Body: { summary, description?, urgency?, impact?, owner_id?, reporter_id?,
    send_to_slack?, send_to_teams?, send_to_email? }"""
    _, err = get_or_404(Program, pid)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    summary = data.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        return api_error(E.VALIDATION_REQUIRED, "summary is required")
    msg = invalid_choice(data, "urgency", ESCALATION_URGENCIES)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)

    escalation = escalation_service.create_escalation(
        pid, data, session=current_app.extensions.get("http_session"),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(escalation.to_dict()), 201


@escalation_bp.route("/escalations/<int:escalation_id>", methods=["GET"])
def get_escalation(escalation_id):
    escalation = escalation_service.get_escalation(escalation_id)
    return jsonify(escalation.to_dict()), 200


@escalation_bp.route("/escalations/<int:escalation_id>/status", methods=["PATCH"])
def update_escalation_status(escalation_id):
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return api_error(E.VALIDATION_REQUIRED, "status is required")
    msg = invalid_choice(data, "status", ESCALATION_STATUSES)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)

    escalation = escalation_service.get_escalation(escalation_id)
    escalation_service.update_status(escalation, data["status"])
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(escalation.to_dict()), 200
