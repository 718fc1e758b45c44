"""
TPM Dashboard
PMP best-practice recommendation blueprint.

Endpoints:
    POST  /api/v1/programs/<pid>/pmp-recommendations   — generate a batch
    GET   /api/v1/pmp-recommendations                  — list (?program_id, ?status)
    PATCH /api/v1/pmp-recommendations/<id>             — status / feedback
    GET   /api/v1/pmp/catalog                          — phases and knowledge areas
"""

import logging

from flask import Blueprint, jsonify, request

from tpm_dashboard.blueprints import paginate_query
from tpm_dashboard.models.program import PMI_PHASES
from tpm_dashboard.models.recommendation import PMP_RECOMMENDATION_STATUSES
from tpm_dashboard.services import pmp_service
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error, invalid_choice

logger = logging.getLogger(__name__)

pmp_bp = Blueprint("pmp", __name__, url_prefix="/api/v1")
register_service_error_handlers(pmp_bp)


@pmp_bp.route("/programs/<int:pid>/pmp-recommendations", methods=["POST"])
def generate_recommendations(pid):
    """Body: { "current_phase"?: str, "challenges"?: [str] }"""
    data = request.get_json(silent=True) or {}
    msg = invalid_choice(data, "current_phase", PMI_PHASES)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)
    challenges = data.get("challenges")
    if challenges is not None and (
        not isinstance(challenges, list) or not all(isinstance(c, str) for c in challenges)
    ):
        return api_error(E.VALIDATION_INVALID, "challenges must be a list of strings")

    created = pmp_service.generate_for_program(
        pid, current_phase=data.get("current_phase"), challenges=challenges,
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"items": [r.to_dict() for r in created], "total": len(created)}), 201


@pmp_bp.route("/pmp-recommendations", methods=["GET"])
def list_recommendations():
    program_id = request.args.get("program_id", type=int)
    status = request.args.get("status")
    items, total = paginate_query(pmp_service.list_recommendations(program_id, status))
    return jsonify({"items": [r.to_dict() for r in items], "total": total}), 200


@pmp_bp.route("/pmp-recommendations/<int:rec_id>", methods=["PATCH"])
def update_recommendation(rec_id):
    """Body: { "status"?: str, "feedback"?: str }"""
    data = request.get_json(silent=True) or {}
    if "status" not in data and "feedback" not in data:
        return api_error(E.VALIDATION_REQUIRED, "status or feedback is required")
    msg = invalid_choice(data, "status", PMP_RECOMMENDATION_STATUSES)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)

    rec = pmp_service.get_recommendation(rec_id)
    pmp_service.update_recommendation(rec, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(rec.to_dict()), 200


@pmp_bp.route("/pmp/catalog", methods=["GET"])
def catalog():
    return jsonify({
        "phases": list(PMI_PHASES),
        "knowledge_areas": list(pmp_service.KNOWLEDGE_AREAS),
    }), 200
