"""
TPM Dashboard
Dashboard blueprint — health, completeness, recommendations and gap detection.

Endpoints:
    Program:
        GET  /api/v1/programs/<id>/health                 — completeness + health + recs
        GET  /api/v1/programs/<id>/completeness           — completeness only
    Portfolio:
        GET  /api/v1/dashboard/health                     — health badge per program
        GET  /api/v1/dashboard/recommendations            — ranked portfolio recs
        GET  /api/v1/dashboard/metrics                    — headline counters
        POST /api/v1/analyze-program                      — missing components + alerts
    Gap detection:
        POST /api/v1/programs/<id>/generate-missing-risks
        POST /api/v1/programs/generate-all-missing-risks
        POST /api/v1/programs/<id>/detect-gaps
        POST /api/v1/programs/detect-all-gaps

``include_hierarchy`` (true/false) on the health and completeness reads
overrides the COMPLETENESS_INCLUDE_HIERARCHY setting.
"""

import logging

from flask import Blueprint, jsonify, request

from tpm_dashboard.blueprints import bool_arg
from tpm_dashboard.services import gap_detection, program_health_service
from tpm_dashboard.services.scoring_rules import (
    DASHBOARD_RECOMMENDATION_LIMIT,
    PROGRAM_RECOMMENDATION_LIMIT,
)
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1")
register_service_error_handlers(dashboard_bp)

_INVALID = object()


def _limit_arg(default):
    """Integer ``limit`` query param; ``_INVALID`` when it does not parse."""
    raw = request.args.get("limit")
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return _INVALID


# ═════════════════════════════════════════════════════════════════════════════
# Program health
# ═════════════════════════════════════════════════════════════════════════════

@dashboard_bp.route("/programs/<int:program_id>/health", methods=["GET"])
def program_health(program_id):
    limit = _limit_arg(PROGRAM_RECOMMENDATION_LIMIT)
    if limit is _INVALID:
        return api_error(E.VALIDATION_INVALID, "limit must be an integer")
    result = program_health_service.program_health(
        program_id, limit=limit, include_hierarchy=bool_arg("include_hierarchy"),
    )
    return jsonify(result), 200


@dashboard_bp.route("/programs/<int:program_id>/completeness", methods=["GET"])
def program_completeness(program_id):
    result = program_health_service.program_completeness(
        program_id, include_hierarchy=bool_arg("include_hierarchy"),
    )
    return jsonify(result), 200


# ═════════════════════════════════════════════════════════════════════════════
# Portfolio
# ═════════════════════════════════════════════════════════════════════════════

@dashboard_bp.route("/dashboard/health", methods=["GET"])
def dashboard_health():
    items = program_health_service.dashboard_health(
        include_hierarchy=bool_arg("include_hierarchy"),
    )
    return jsonify({"items": items, "total": len(items)}), 200


@dashboard_bp.route("/dashboard/recommendations", methods=["GET"])
def dashboard_recommendations():
    limit = _limit_arg(DASHBOARD_RECOMMENDATION_LIMIT)
    if limit is _INVALID:
        return api_error(E.VALIDATION_INVALID, "limit must be an integer")
    items = program_health_service.dashboard_recommendations(limit=limit)
    return jsonify({"items": items, "total": len(items)}), 200


@dashboard_bp.route("/dashboard/metrics", methods=["GET"])
def dashboard_metrics():
    return jsonify(program_health_service.dashboard_metrics()), 200


@dashboard_bp.route("/analyze-program", methods=["POST"])
def analyze_program():
    """Body: { "program_id"?: int } — omit to analyze every program."""
    data = request.get_json(silent=True) or {}
    program_id = data.get("program_id")
    if program_id is not None and (isinstance(program_id, bool) or not isinstance(program_id, int)):
        return api_error(E.VALIDATION_INVALID, "program_id must be an integer")
    return jsonify(program_health_service.analyze_programs(program_id)), 200


# ═════════════════════════════════════════════════════════════════════════════
# Gap detection
# ═════════════════════════════════════════════════════════════════════════════

def _committed(payload):
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(payload), 200


@dashboard_bp.route("/programs/<int:program_id>/generate-missing-risks", methods=["POST"])
def generate_missing_risks(program_id):
    return _committed(gap_detection.generate_missing_risks(program_id))


@dashboard_bp.route("/programs/generate-all-missing-risks", methods=["POST"])
def generate_all_missing_risks():
    results = gap_detection.generate_all_missing_risks()
    return _committed({
        "results": results,
        "total_created": sum(len(r["created"]) for r in results),
    })


@dashboard_bp.route("/programs/<int:program_id>/detect-gaps", methods=["POST"])
def detect_gaps(program_id):
    return _committed(gap_detection.detect_gaps(program_id))


@dashboard_bp.route("/programs/detect-all-gaps", methods=["POST"])
def detect_all_gaps():
    results = gap_detection.detect_all_gaps()
    return _committed({
        "results": results,
        "total_created": sum(len(r["created"]) for r in results),
    })
