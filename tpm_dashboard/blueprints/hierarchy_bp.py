"""
TPM Dashboard
Delivery hierarchy blueprint — the Jira-style tree under a milestone.

Endpoints:
    GET/POST /api/v1/milestones/<id>/steps    — Milestone steps
    GET/POST /api/v1/steps/<id>/bepics        — Business epics under a step
    GET/POST /api/v1/bepics/<id>/epics        — Epics under a business epic
    GET/POST /api/v1/epics/<id>/stories       — Stories under an epic
"""

import logging

from flask import Blueprint, jsonify, request

from tpm_dashboard.models.hierarchy import (
    HIERARCHY_STATUSES,
    JiraBepic,
    JiraEpic,
    JiraStory,
    MilestoneStep,
)
from tpm_dashboard.services import program_service
from tpm_dashboard.utils.errors import E, api_error, register_service_error_handlers
from tpm_dashboard.utils.helpers import db_commit_or_error, invalid_choice, invalid_range

logger = logging.getLogger(__name__)

hierarchy_bp = Blueprint("hierarchy", __name__, url_prefix="/api/v1")
register_service_error_handlers(hierarchy_bp)


def _list(model, parent_id):
    children = program_service.list_children(model, parent_id)
    return jsonify([c.to_dict() for c in children]), 200


def _create(model, parent_id):
    data = request.get_json(silent=True) or {}
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        return api_error(E.VALIDATION_REQUIRED, "title is required")
    msg = invalid_choice(data, "status", HIERARCHY_STATUSES)
    if msg:
        return api_error(E.VALIDATION_INVALID, msg)
    if model is JiraStory:
        msg = invalid_range(data, "story_points", 0, 100)
        if msg:
            return api_error(E.VALIDATION_INVALID, msg)

    child = program_service.create_child(model, parent_id, data)
    err = db_commit_or_error()
    if err:
        return err
    return jsonify(child.to_dict()), 201


@hierarchy_bp.route("/milestones/<int:milestone_id>/steps", methods=["GET"])
def list_steps(milestone_id):
    return _list(MilestoneStep, milestone_id)


@hierarchy_bp.route("/milestones/<int:milestone_id>/steps", methods=["POST"])
def create_step(milestone_id):
    return _create(MilestoneStep, milestone_id)


@hierarchy_bp.route("/steps/<int:step_id>/bepics", methods=["GET"])
def list_bepics(step_id):
    return _list(JiraBepic, step_id)


@hierarchy_bp.route("/steps/<int:step_id>/bepics", methods=["POST"])
def create_bepic(step_id):
    return _create(JiraBepic, step_id)


@hierarchy_bp.route("/bepics/<int:bepic_id>/epics", methods=["GET"])
def list_epics(bepic_id):
    return _list(JiraEpic, bepic_id)


@hierarchy_bp.route("/bepics/<int:bepic_id>/epics", methods=["POST"])
def create_epic(bepic_id):
    return _create(JiraEpic, bepic_id)


@hierarchy_bp.route("/epics/<int:epic_id>/stories", methods=["GET"])
def list_stories(epic_id):
    return _list(JiraStory, epic_id)


@hierarchy_bp.route("/epics/<int:epic_id>/stories", methods=["POST"])
def create_story(epic_id):
    return _create(JiraStory, epic_id)
