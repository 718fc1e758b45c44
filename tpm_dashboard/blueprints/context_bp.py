"""
TPM Dashboard
Context blueprint — an entity with its program, sibling components and analytics.

Endpoints:
    GET /api/v1/milestones/<id>/context
    GET /api/v1/risks/<id>/context
    GET /api/v1/dependencies/<id>/context
    GET /api/v1/adopters/<id>/context
"""

from flask import Blueprint, jsonify

from tpm_dashboard.services import context_service
from tpm_dashboard.utils.errors import register_service_error_handlers

context_bp = Blueprint("context", __name__, url_prefix="/api/v1")
register_service_error_handlers(context_bp)


@context_bp.route("/milestones/<int:milestone_id>/context", methods=["GET"])
def milestone_context(milestone_id):
    return jsonify(context_service.milestone_context(milestone_id)), 200


@context_bp.route("/risks/<int:risk_id>/context", methods=["GET"])
def risk_context(risk_id):
    return jsonify(context_service.risk_context(risk_id)), 200


@context_bp.route("/dependencies/<int:dependency_id>/context", methods=["GET"])
def dependency_context(dependency_id):
    return jsonify(context_service.dependency_context(dependency_id)), 200


@context_bp.route("/adopters/<int:adopter_id>/context", methods=["GET"])
def adopter_context(adopter_id):
    return jsonify(context_service.adopter_context(adopter_id)), 200
