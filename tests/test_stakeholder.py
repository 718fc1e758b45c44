"""
TPM Dashboard
Tests — stakeholders, the power/interest grid and response prediction.
"""

import pytest

from tpm_dashboard.services.stakeholder_service import engagement_category, prediction_accuracy


def _stakeholder(client, pid, **fields):
    payload = {"name": "Dana Sponsor"}
    payload.update(fields)
    res = client.post(f"/api/v1/programs/{pid}/stakeholders", json=payload)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


# ═════════════════════════════════════════════════════════════════════════════
# GRID & ACCURACY
# ═════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("influence,support,category,priority", [
    (4, 4, "Manage Closely", "Critical"),
    (5, 2, "Keep Satisfied", "High"),
    (3, 4, "Keep Informed", "Medium"),
    (3, 3, "Monitor", "Low"),
    (None, None, "Monitor", "Low"),
])
def test_engagement_category(influence, support, category, priority):
    assert engagement_category(influence, support) == {"category": category, "priority": priority}


def test_prediction_accuracy():
    assert prediction_accuracy("a b c d", "a b x") == 50.0
    assert prediction_accuracy("Approve The Budget", "approve the budget") == 100.0
    assert prediction_accuracy("", "") == 0.0


# ═════════════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════════════

def test_stakeholder_crud(client, program):
    pid = program["id"]
    created = _stakeholder(client, pid, role="Sponsor", influence_level=5, support_level=4)
    assert created["preferred_communication"] == []

    fetched = client.get(f"/api/v1/stakeholders/{created['id']}").get_json()
    assert fetched["engagement"] == {"category": "Manage Closely", "priority": "Critical"}

    res = client.put(f"/api/v1/stakeholders/{created['id']}", json={"department": "Finance"})
    assert res.get_json()["department"] == "Finance"

    body = client.get(f"/api/v1/programs/{pid}/stakeholders").get_json()
    assert body["total"] == 1

    assert client.delete(f"/api/v1/stakeholders/{created['id']}").status_code == 200
    assert client.get(f"/api/v1/stakeholders/{created['id']}").status_code == 404


def test_stakeholder_validation(client, program):
    url = f"/api/v1/programs/{program['id']}/stakeholders"
    assert client.post(url, json={}).status_code == 400
    assert client.post(url, json={"name": "  "}).status_code == 400
    assert client.post(url, json={"name": "X", "leadership_style": "Chaotic"}).status_code == 400
    assert client.post(url, json={"name": "X", "communication_style": "Loud"}).status_code == 400
    assert client.post(url, json={"name": "X", "influence_level": 6}).status_code == 400
    assert client.post(url, json={"name": "X", "support_level": "high"}).status_code == 400
    assert client.post(url, json={"name": "X", "preferred_communication": "email"}).status_code == 400
    assert client.post("/api/v1/programs/9999/stakeholders", json={"name": "X"}).status_code == 404


def test_update_cannot_blank_name(client, program):
    s = _stakeholder(client, program["id"])
    res = client.put(f"/api/v1/stakeholders/{s['id']}", json={"name": ""})
    assert res.status_code == 422


# ═════════════════════════════════════════════════════════════════════════════
# ANALYSIS
# ═════════════════════════════════════════════════════════════════════════════

def test_analysis_without_stakeholders(client, program):
    data = client.get(f"/api/v1/programs/{program['id']}/stakeholder-analysis").get_json()
    assert data["completeness"]["percentage"] == 0
    assert data["completeness"]["missing"] == ["Stakeholder identification"]
    assert data["next_actions"][0]["priority"] == "Critical"
    assert all(members == [] for members in data["grid"].values())


def test_analysis_with_stakeholders(client, program):
    pid = program["id"]
    _stakeholder(client, pid, name="A", role="Sponsor", influence_level=5, support_level=5,
                 leadership_style="Autocratic", preferred_communication=["email"])
    _stakeholder(client, pid, name="B", role="User", influence_level=2, support_level=4)
    _stakeholder(client, pid, name="C")

    data = client.get(f"/api/v1/programs/{pid}/stakeholder-analysis").get_json()
    assert [m["name"] for m in data["grid"]["Manage Closely"]] == ["A"]
    assert [m["name"] for m in data["grid"]["Keep Informed"]] == ["B"]
    assert [m["name"] for m in data["grid"]["Monitor"]] == ["C"]
    assert data["completeness"]["completed"] == 7
    assert data["completeness"]["percentage"] == 100
    actions = [a["action"] for a in data["next_actions"]]
    assert "Assess influence levels for 1 stakeholder(s)" in actions
    assert "Define communication preferences for 2 stakeholder(s)" in actions


def test_analysis_unknown_program(client):
    assert client.get("/api/v1/programs/9999/stakeholder-analysis").status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# PREDICTION
# ═════════════════════════════════════════════════════════════════════════════

def test_predict_escalation_for_autocratic(client, program):
    s = _stakeholder(client, program["id"], leadership_style="Autocratic",
                     communication_style="Direct")
    res = client.post(f"/api/v1/stakeholders/{s['id']}/predict",
                      json={"interaction_type": "Escalation", "context": "Vendor outage"})
    assert res.status_code == 201
    data = res.get_json()
    assert data["interaction_id"]
    assert "immediate action items" in data["predicted_response"]
    assert data["confidence"] == 65
    assert "Prepare clear action items and timeline" in data["recommendations"]
    assert "Present information in: Executive summary" in data["recommendations"]


def test_predict_decision_patterns(client, program):
    s = _stakeholder(client, program["id"], leadership_style="Democratic")
    data = client.post(f"/api/v1/stakeholders/{s['id']}/predict",
                       json={"interaction_type": "decision"}).get_json()
    assert "seek input and weigh multiple options" in data["predicted_response"]
    assert data["confidence"] == 50


def test_predict_validation(client, program):
    s = _stakeholder(client, program["id"])
    url = f"/api/v1/stakeholders/{s['id']}/predict"
    assert client.post(url, json={}).status_code == 400
    assert client.post(url, json={"interaction_type": "gossip"}).status_code == 400
    assert client.post("/api/v1/stakeholders/9999/predict",
                       json={"interaction_type": "email"}).status_code == 404


def test_actual_response_updates_predictive_score(client, program):
    s = _stakeholder(client, program["id"], leadership_style="Autocratic")
    pred = client.post(f"/api/v1/stakeholders/{s['id']}/predict",
                       json={"interaction_type": "escalation"}).get_json()

    res = client.post(f"/api/v1/interactions/{pred['interaction_id']}/actual",
                      json={"actual_response": pred["predicted_response"]})
    assert res.status_code == 200
    data = res.get_json()
    assert data["interaction"]["accuracy"] == 100.0
    assert data["predictive_score"] == 20.0

    # concern in the history shows up in the next prediction
    res = client.post(f"/api/v1/interactions/{pred['interaction_id']}/actual",
                      json={"actual_response": "They raised a concern about cost"})
    assert res.status_code == 200
    nxt = client.post(f"/api/v1/stakeholders/{s['id']}/predict",
                      json={"interaction_type": "email"}).get_json()
    assert "shown concern" in nxt["predicted_response"]


def test_actual_response_validation(client, program):
    s = _stakeholder(client, program["id"])
    pred = client.post(f"/api/v1/stakeholders/{s['id']}/predict",
                       json={"interaction_type": "meeting"}).get_json()
    url = f"/api/v1/interactions/{pred['interaction_id']}/actual"
    assert client.post(url, json={}).status_code == 400
    assert client.post("/api/v1/interactions/9999/actual",
                       json={"actual_response": "ok"}).status_code == 404


def test_insights(client, program):
    s = _stakeholder(client, program["id"], communication_style="Analytical",
                     influence_level=4, support_level=1)
    client.post(f"/api/v1/stakeholders/{s['id']}/predict", json={"interaction_type": "email"})
    data = client.get(f"/api/v1/stakeholders/{s['id']}/insights").get_json()
    assert data["engagement"]["category"] == "Keep Satisfied"
    assert len(data["recent_interactions"]) == 1
    assert data["predictive_accuracy"] == 0.0
    assert "Use a data-focused, systematic approach" in data["recommendations"]
