"""
TPM Dashboard
Report blueprint.

Endpoints:
    POST /api/v1/programs/<pid>/reports    — generate (type weekly|monthly|quarterly)
    GET  /api/v1/programs/<pid>/reports    — list (content omitted)
    GET  /api/v1/reports/<id>              — full report
"""

import logging

from flask import Blueprint, jsonify, request

from tpm_dashboard.blueprints import paginate_query
from tpm_dashboard.models.program import Program
from tpm_dashboard.models.report import REPORT_TYPES
from tpm_dashboard.services import report_service
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error, get_or_404, invalid_choice

logger = logging.getLogger(__name__)

report_bp = Blueprint("report", __name__, url_prefix="/api/v1")
register_service_error_handlers(report_bp)


@report_bp.route("/programs/<int:pid>/reports", methods=["POST"])
def generate_report(pid):
    """Body: { "type": "weekly"|"monthly"|"quarterly", "generated_by"?: str }"""
    data = request.get_json(silent=True) or {}
    if not data.get("type"):
        return api_error(E.VALIDATION_REQUIRED, "type is required")
    msg = invalid_choice(data, "type", REPORT_TYPES)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)

    report = report_service.generate_report(pid, data["type"], generated_by=data.get("generated_by"))
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(report.to_dict()), 201


@report_bp.route("/programs/<int:pid>/reports", methods=["GET"])
def list_reports(pid):
    _, err = get_or_404(Program, pid)
    if err:
        return err
    items, total = paginate_query(report_service.list_reports(pid))
    return jsonify({"items": [r.to_dict(include_content=False) for r in items], "total": total}), 200


@report_bp.route("/reports/<int:report_id>", methods=["GET"])
def get_report(report_id):
    return jsonify(report_service.get_report(report_id).to_dict()), 200
