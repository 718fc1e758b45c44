"""
TPM Dashboard
Integration settings blueprint.

Endpoints:
    GET  /api/v1/integrations              — list all
    POST /api/v1/integrations              — register (name unique)
    PUT  /api/v1/integrations/<name>       — update settings / status
    POST /api/v1/integrations/jira/sync    — stamp last_sync
"""

import logging

from flask import Blueprint, jsonify, request

from tpm_dashboard.models.integration import INTEGRATION_NAMES, INTEGRATION_STATUSES
from tpm_dashboard.services import integration_service
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error, invalid_choice

logger = logging.getLogger(__name__)

integration_bp = Blueprint("integration", __name__, url_prefix="/api/v1/integrations")
register_service_error_handlers(integration_bp)


def _validate(data):
    msg = invalid_choice(data, "status", INTEGRATION_STATUSES)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)
    if "config" in data and data["config"] is not None and not isinstance(data["config"], dict):
        return api_error(E.VALIDATION_INVALID, "config must be an object")
    return None


@integration_bp.route("", methods=["GET"])
def list_integrations():
    items = [i.to_dict() for i in integration_service.list_integrations()]
    return jsonify({"items": items, "total": len(items)}), 200


@integration_bp.route("", methods=["POST"])
def create_integration():
    data = request.get_json(silent=True) or {}
    if not data.get("name"):
        return api_error(E.VALIDATION_REQUIRED, "name is required")
    msg = invalid_choice(data, "name", INTEGRATION_NAMES)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)
    err = _validate(data)
    if err:
        return err

    integration = integration_service.create_integration(data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(integration.to_dict()), 201


@integration_bp.route("/jira/sync", methods=["POST"])
def sync_jira():
    """502 when jira is not connected."""
    integration = integration_service.sync_jira()
    err = db_commit_or_error()
    if err:
        return err
    return jsonify({"message": "Jira sync completed", "integration": integration.to_dict()}), 200


@integration_bp.route("/<string:name>", methods=["PUT"])
def update_integration(name):
    data = request.get_json(silent=True) or {}
    err = _validate(data)
    if err:
        return err

    integration = integration_service.update_integration(name, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(integration.to_dict()), 200
