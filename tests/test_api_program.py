"""
TPM Dashboard
Tests — Program API.

Covers:
    - Programs CRUD
    - Milestones CRUD + completion stamp + push-to-jira
    - Dependencies CRUD
    - Adopters CRUD + readiness validation
    - Delivery hierarchy (steps → bepics → epics → stories)
"""

from datetime import date

import pytest

from tpm_dashboard.models import db as _db
from tpm_dashboard.models.program import Milestone, Program


def _create_program(client, **overrides):
    """Helper: create a program and return JSON."""
    payload = {"name": "Test Program"}
    payload.update(overrides)
    res = client.post("/api/v1/programs", json=payload)
    assert res.status_code == 201
    return res.get_json()


def _create_milestone(client, pid, **overrides):
    payload = {"title": "Beta launch", "due_date": "2030-03-01"}
    payload.update(overrides)
    res = client.post(f"/api/v1/programs/{pid}/milestones", json=payload)
    assert res.status_code == 201
    return res.get_json()


# ═════════════════════════════════════════════════════════════════════════════
# PROGRAMS
# ═════════════════════════════════════════════════════════════════════════════

def test_create_program(client):
    res = client.post("/api/v1/programs", json={
        "name": "Checkout Rewrite",
        "description": "Replace the legacy checkout service.",
        "owner_id": "alice",
        "objectives": ["Cut p95 latency", " "],
        "kpis": "Conversion rate",
        "start_date": "2025-01-01",
        "end_date": "2025-12-31",
    })
    assert res.status_code == 201
    data = res.get_json()
    assert data["id"] is not None
    assert data["status"] == "planning"
    assert data["objectives"] == ["Cut p95 latency"]
    assert data["kpis"] == ["Conversion rate"]
    assert data["start_date"] == "2025-01-01"


def test_create_program_missing_name(client):
    res = client.post("/api/v1/programs", json={"description": "No name"})
    assert res.status_code == 400
    assert "name" in res.get_json()["error"].lower()


def test_create_program_invalid_status(client):
    res = client.post("/api/v1/programs", json={"name": "X", "status": "paused"})
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"


@pytest.mark.parametrize("status", [["active"], {"value": "active"}, 3])
def test_create_program_status_must_be_a_string(client, status):
    res = client.post("/api/v1/programs", json={"name": "X", "status": status})
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"


def test_create_program_objectives_must_be_list(client):
    res = client.post("/api/v1/programs", json={"name": "X", "objectives": {"a": 1}})
    assert res.status_code == 400


def test_program_without_description_is_accepted(client):
    data = _create_program(client)
    assert data["description"] == ""
    assert data["objectives"] == []


def test_list_programs_paginated(client):
    for name in ("A", "B", "C"):
        _create_program(client, name=name)
    res = client.get("/api/v1/programs?limit=2")
    assert res.status_code == 200
    body = res.get_json()
    assert body["total"] == 3
    assert [p["name"] for p in body["items"]] == ["A", "B"]


def test_list_programs_filter_status(client):
    _create_program(client, name="Active One", status="active")
    _create_program(client, name="Planning One", status="planning")
    res = client.get("/api/v1/programs?status=active")
    items = res.get_json()["items"]
    assert [p["name"] for p in items] == ["Active One"]


def test_get_program_with_children(client):
    prog = _create_program(client, name="Detail Test")
    pid = prog["id"]
    _create_milestone(client, pid)
    client.post(f"/api/v1/programs/{pid}/dependencies", json={"title": "Auth service"})
    client.post(f"/api/v1/programs/{pid}/adopters", json={"team_name": "Mobile"})
    res = client.get(f"/api/v1/programs/{pid}")
    assert res.status_code == 200
    data = res.get_json()
    assert len(data["milestones"]) == 1
    assert len(data["dependencies"]) == 1
    assert len(data["adopters"]) == 1


def test_get_program_not_found(client):
    res = client.get("/api/v1/programs/9999")
    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"


def test_update_program(client):
    pid = _create_program(client)["id"]
    res = client.put(f"/api/v1/programs/{pid}", json={
        "status": "active", "kpis": ["NPS"], "end_date": "2026-01-31",
    })
    assert res.status_code == 200
    data = res.get_json()
    assert data["status"] == "active"
    assert data["kpis"] == ["NPS"]
    assert data["end_date"] == "2026-01-31"


def test_update_program_blank_name_rejected(client):
    pid = _create_program(client)["id"]
    res = client.put(f"/api/v1/programs/{pid}", json={"name": "  "})
    assert res.status_code == 400


def test_delete_program_cascades(client):
    pid = _create_program(client)["id"]
    _create_milestone(client, pid)
    client.post(f"/api/v1/programs/{pid}/risks", json={"title": "Vendor delay"})
    res = client.delete(f"/api/v1/programs/{pid}")
    assert res.status_code == 200
    assert _db.session.get(Program, pid) is None
    assert Milestone.query.filter_by(program_id=pid).count() == 0


# ═════════════════════════════════════════════════════════════════════════════
# MILESTONES
# ═════════════════════════════════════════════════════════════════════════════

def test_create_and_list_milestones(client, program):
    pid = program["id"]
    _create_milestone(client, pid, title="Later", due_date="2030-06-01")
    _create_milestone(client, pid, title="Sooner", due_date="2030-01-01")
    res = client.get(f"/api/v1/programs/{pid}/milestones")
    assert [m["title"] for m in res.get_json()] == ["Sooner", "Later"]


def test_create_milestone_requires_title(client, program):
    res = client.post(f"/api/v1/programs/{program['id']}/milestones", json={})
    assert res.status_code == 400


def test_create_milestone_invalid_phase(client, program):
    res = client.post(f"/api/v1/programs/{program['id']}/milestones",
                      json={"title": "M", "pmp_phase": "Designing"})
    assert res.status_code == 400


def test_completing_milestone_stamps_date(client, program):
    ms = _create_milestone(client, program["id"])
    res = client.put(f"/api/v1/milestones/{ms['id']}", json={"status": "completed"})
    assert res.get_json()["completed_date"] == date.today().isoformat()
    res = client.put(f"/api/v1/milestones/{ms['id']}", json={"status": "in_progress"})
    assert res.get_json()["completed_date"] is None


def test_delete_milestone(client, program):
    ms = _create_milestone(client, program["id"])
    assert client.delete(f"/api/v1/milestones/{ms['id']}").status_code == 200
    assert client.delete(f"/api/v1/milestones/{ms['id']}").status_code == 404


def test_push_milestone_to_jira_requires_connection(client, program):
    ms = _create_milestone(client, program["id"])
    res = client.post(f"/api/v1/milestones/{ms['id']}/push-to-jira")
    assert res.status_code == 502
    assert res.get_json()["code"] == "ERR_INTEGRATION"


def test_push_milestone_to_jira(client, program, connect):
    connect("jira", config={"project_key": "TPM"})
    first = _create_milestone(client, program["id"], title="One")
    second = _create_milestone(client, program["id"], title="Two")
    res = client.post(f"/api/v1/milestones/{first['id']}/push-to-jira")
    assert res.status_code == 200
    assert res.get_json()["jira_epic_key"] == "TPM-1"
    res = client.post(f"/api/v1/milestones/{second['id']}/push-to-jira")
    assert res.get_json()["milestone"]["jira_epic_key"] == "TPM-2"


# ═════════════════════════════════════════════════════════════════════════════
# DEPENDENCIES
# ═════════════════════════════════════════════════════════════════════════════

def test_dependency_crud(client, program):
    pid = program["id"]
    res = client.post(f"/api/v1/programs/{pid}/dependencies", json={
        "title": "Identity API", "upstream_id": "identity", "owner_id": "bob",
    })
    assert res.status_code == 201
    dep = res.get_json()
    assert dep["status"] == "on_track"

    res = client.put(f"/api/v1/dependencies/{dep['id']}", json={"status": "blocked"})
    assert res.get_json()["status"] == "blocked"

    res = client.put(f"/api/v1/dependencies/{dep['id']}", json={"status": "stuck"})
    assert res.status_code == 400

    assert client.delete(f"/api/v1/dependencies/{dep['id']}").status_code == 200
    assert client.get(f"/api/v1/programs/{pid}/dependencies").get_json() == []


# ═════════════════════════════════════════════════════════════════════════════
# ADOPTERS
# ═════════════════════════════════════════════════════════════════════════════

def test_adopter_crud(client, program):
    pid = program["id"]
    res = client.post(f"/api/v1/programs/{pid}/adopters",
                      json={"team_name": "Web", "readiness_score": 40})
    assert res.status_code == 201
    adopter = res.get_json()

    res = client.put(f"/api/v1/adopters/{adopter['id']}",
                     json={"readiness_score": 85, "last_check_in": True})
    data = res.get_json()
    assert data["readiness_score"] == 85
    assert data["last_check_in"] is not None

    assert client.delete(f"/api/v1/adopters/{adopter['id']}").status_code == 200


def test_adopter_readiness_out_of_range(client, program):
    res = client.post(f"/api/v1/programs/{program['id']}/adopters",
                      json={"team_name": "Web", "readiness_score": 101})
    assert res.status_code == 400
    res = client.post(f"/api/v1/programs/{program['id']}/adopters",
                      json={"team_name": "Web", "readiness_score": "high"})
    assert res.status_code == 400


def test_adopter_requires_team_name(client, program):
    res = client.post(f"/api/v1/programs/{program['id']}/adopters", json={"readiness_score": 10})
    assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# DELIVERY HIERARCHY
# ═════════════════════════════════════════════════════════════════════════════

def test_hierarchy_chain(client, program):
    ms = _create_milestone(client, program["id"])
    step = client.post(f"/api/v1/milestones/{ms['id']}/steps", json={"title": "Design"}).get_json()
    assert step["milestone_id"] == ms["id"]
    bepic = client.post(f"/api/v1/steps/{step['id']}/bepics", json={"title": "Payments"}).get_json()
    epic = client.post(f"/api/v1/bepics/{bepic['id']}/epics", json={"title": "Card vault"}).get_json()
    res = client.post(f"/api/v1/epics/{epic['id']}/stories",
                      json={"title": "Tokenize PAN", "story_points": 5})
    assert res.status_code == 201

    stories = client.get(f"/api/v1/epics/{epic['id']}/stories").get_json()
    assert [s["title"] for s in stories] == ["Tokenize PAN"]


def test_hierarchy_parent_not_found(client):
    res = client.post("/api/v1/milestones/9999/steps", json={"title": "Orphan"})
    assert res.status_code == 404
    assert client.get("/api/v1/epics/9999/stories").status_code == 404


def test_hierarchy_validation(client, program):
    ms = _create_milestone(client, program["id"])
    assert client.post(f"/api/v1/milestones/{ms['id']}/steps", json={}).status_code == 400
    res = client.post(f"/api/v1/milestones/{ms['id']}/steps",
                      json={"title": "Design", "status": "done"})
    assert res.status_code == 400
