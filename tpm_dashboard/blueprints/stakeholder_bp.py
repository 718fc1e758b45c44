"""
Stakeholder Management Blueprint.

Routes for stakeholder tracking, the power/interest grid, stakeholder
completeness, and response prediction with accuracy feedback.
All business logic is delegated to stakeholder_service.

Endpoints:
  Stakeholder:   GET/POST        /programs/<pid>/stakeholders
                 GET/PUT/DELETE  /stakeholders/<id>
  Analysis:      GET             /programs/<pid>/stakeholder-analysis
  Prediction:    POST            /stakeholders/<id>/predict
                 POST            /interactions/<id>/actual
                 GET             /stakeholders/<id>/insights
"""

import logging

from flask import Blueprint, jsonify, request

from tpm_dashboard.models.program import Program
from tpm_dashboard.models.stakeholder import (
    COMMUNICATION_STYLES,
    INTERACTION_TYPES,
    LEADERSHIP_STYLES,
)
from tpm_dashboard.services import stakeholder_service
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error, get_or_404, invalid_choice, invalid_range

logger = logging.getLogger(__name__)

stakeholder_bp = Blueprint("stakeholder", __name__, url_prefix="/api/v1")
register_service_error_handlers(stakeholder_bp)


def _validate(data):
    for field, allowed in (
        ("leadership_style", LEADERSHIP_STYLES),
        ("communication_style", COMMUNICATION_STYLES),
    ):
        msg = invalid_choice(data, field, allowed)
        if msg:
            return api_error(E.VALIDATION_INVALID, msg)
    for field in ("influence_level", "support_level"):
        msg = invalid_range(data, field, 1, 5)
        if msg:
            return api_error(E.VALIDATION_INVALID, msg)
    prefs = data.get("preferred_communication")
    if prefs is not None and not isinstance(prefs, list):
        return api_error(E.VALIDATION_INVALID, "preferred_communication must be a list")
    patterns = data.get("response_patterns")
    if patterns is not None and not isinstance(patterns, dict):
        return api_error(E.VALIDATION_INVALID, "response_patterns must be an object")
    return None


# ═════════════════════════════════════════════════════════════════════════════
# Stakeholder CRUD
# ═════════════════════════════════════════════════════════════════════════════


@stakeholder_bp.route("/programs/<int:pid>/stakeholders", methods=["GET"])
def list_stakeholders(pid):
    """Returns: { "items": [...], "total": int }"""
    _, err = get_or_404(Program, pid)
    if err:
        return err
    items = [s.to_dict() for s in stakeholder_service.list_stakeholders(pid)]
    return jsonify({"items": items, "total": len(items)}), 200


@stakeholder_bp.route("/programs/<int:pid>/stakeholders", methods=["POST"])
def create_stakeholder(pid):
    _, err = get_or_404(Program, pid)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get("name"), str) or not data["name"].strip():
        return api_error(E.VALIDATION_REQUIRED, "name is required")
    err = _validate(data)
    if err:
        return err
    stakeholder = stakeholder_service.create_stakeholder(pid, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(stakeholder.to_dict()), 201


@stakeholder_bp.route("/stakeholders/<int:stakeholder_id>", methods=["GET"])
def get_stakeholder(stakeholder_id):
    stakeholder = stakeholder_service.get_stakeholder(stakeholder_id)
    result = stakeholder.to_dict()
    result["engagement"] = stakeholder_service.engagement_category(
        stakeholder.influence_level, stakeholder.support_level,
    )
    return jsonify(result), 200


@stakeholder_bp.route("/stakeholders/<int:stakeholder_id>", methods=["PUT"])
def update_stakeholder(stakeholder_id):
    stakeholder = stakeholder_service.get_stakeholder(stakeholder_id)
    data = request.get_json(silent=True) or {}
    err = _validate(data)
    if err:
        return err
    stakeholder_service.update_stakeholder(stakeholder, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(stakeholder.to_dict()), 200


@stakeholder_bp.route("/stakeholders/<int:stakeholder_id>", methods=["DELETE"])
def delete_stakeholder(stakeholder_id):
    stakeholder = stakeholder_service.get_stakeholder(stakeholder_id)
    stakeholder_service.delete_stakeholder(stakeholder)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Stakeholder deleted"}), 200


# ═════════════════════════════════════════════════════════════════════════════
# Analysis & prediction
# ═════════════════════════════════════════════════════════════════════════════


@stakeholder_bp.route("/programs/<int:pid>/stakeholder-analysis", methods=["GET"])
def stakeholder_analysis(pid):
    """Power/interest grid, completeness and next actions for a program."""
    _, err = get_or_404(Program, pid)
    if err:
        return err
    return jsonify(stakeholder_service.stakeholder_analysis(pid)), 200


@stakeholder_bp.route("/stakeholders/<int:stakeholder_id>/predict", methods=["POST"])
def predict_response(stakeholder_id):
    """Body: { "interaction_type": str, "context"?: str, "program_id"?: int }

    Returns the prediction plus the stored ``interaction_id`` to report the
    actual response against.
    """
    stakeholder = stakeholder_service.get_stakeholder(stakeholder_id)
    data = request.get_json(silent=True) or {}
    interaction_type = (data.get("interaction_type") or "").strip().lower()
    if not interaction_type:
        return api_error(E.VALIDATION_REQUIRED, "interaction_type is required")
    msg = invalid_choice({"interaction_type": interaction_type}, "interaction_type", INTERACTION_TYPES)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)

    interaction, prediction = stakeholder_service.predict_response(
        stakeholder, interaction_type,
        context=data.get("context") or "",
        program_id=data.get("program_id"),
    )
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"interaction_id": interaction.id, **prediction}), 201


@stakeholder_bp.route("/interactions/<int:interaction_id>/actual", methods=["POST"])
def record_actual_response(interaction_id):
    """Body: { "actual_response": str }"""
    interaction = stakeholder_service.get_interaction(interaction_id)
    data = request.get_json(silent=True) or {}
    actual = data.get("actual_response")
    if not isinstance(actual, str) or not actual.strip():
        return api_error(E.VALIDATION_REQUIRED, "actual_response is required")

    stakeholder_service.record_actual_response(interaction, actual)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({
        "interaction": interaction.to_dict(),
        "predictive_score": interaction.stakeholder.predictive_score,
    }), 200


@stakeholder_bp.route("/stakeholders/<int:stakeholder_id>/insights", methods=["GET"])
def stakeholder_insights(stakeholder_id):
    stakeholder = stakeholder_service.get_stakeholder(stakeholder_id)
    return jsonify(stakeholder_service.get_insights(stakeholder)), 200
