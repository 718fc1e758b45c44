"""
TPM Dashboard
Tests — Risk register API and heatmap.
"""

import pytest

from tpm_dashboard.models.risk import calculate_risk_score, risk_rag_status
from tpm_dashboard.services.risk_service import impact_bucket, probability_bucket


def _create_risk(client, pid, **overrides):
    payload = {"title": "Vendor delay", "severity": "medium", "probability": 3, "impact": 3}
    payload.update(overrides)
    res = client.post(f"/api/v1/programs/{pid}/risks", json=payload)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


# ═════════════════════════════════════════════════════════════════════════════
# SCORING
# ═════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("probability,impact,score,rag", [
    (1, 1, 1, "green"),
    (2, 2, 4, "green"),
    (1, 5, 5, "amber"),
    (3, 3, 9, "amber"),
    (2, 5, 10, "orange"),
    (3, 5, 15, "orange"),
    (4, 4, 16, "red"),
    (5, 5, 25, "red"),
])
def test_risk_score_and_rag(probability, impact, score, rag):
    assert calculate_risk_score(probability, impact) == score
    assert risk_rag_status(score) == rag


def test_risk_score_defaults_and_clamps():
    assert calculate_risk_score(None, None) == 1
    assert calculate_risk_score(9, 0) == 5


# ═════════════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════════════

def test_create_risk_scores_it(client, program):
    risk = _create_risk(client, program["id"], probability=4, impact=5, severity="high")
    assert risk["risk_score"] == 20
    assert risk["rag_status"] == "red"
    assert risk["status"] == "identified"
    assert risk["source"] == "manual"


def test_create_risk_requires_title(client, program):
    res = client.post(f"/api/v1/programs/{program['id']}/risks", json={"severity": "low"})
    assert res.status_code == 400


@pytest.mark.parametrize("payload", [
    {"title": "X", "severity": "extreme"},
    {"title": "X", "status": "open"},
    {"title": "X", "probability": 6},
    {"title": "X", "impact": 0},
    {"title": "X", "source": "import"},
    {"title": "X", "severity": {"x": 1}},
    {"title": "X", "status": ["identified"]},
])
def test_create_risk_validation(client, program, payload):
    res = client.post(f"/api/v1/programs/{program['id']}/risks", json=payload)
    assert res.status_code == 400


def test_create_risk_unknown_program(client):
    res = client.post("/api/v1/programs/9999/risks", json={"title": "X"})
    assert res.status_code == 404


def test_list_risks_sorted_and_filtered(client, program):
    pid = program["id"]
    _create_risk(client, pid, title="Low", probability=1, impact=1, severity="low")
    _create_risk(client, pid, title="High", probability=5, impact=4, severity="high")
    _create_risk(client, pid, title="Mid", probability=3, impact=2, severity="medium")

    body = client.get(f"/api/v1/programs/{pid}/risks").get_json()
    assert body["total"] == 3
    assert [r["title"] for r in body["items"]] == ["High", "Mid", "Low"]

    body = client.get(f"/api/v1/programs/{pid}/risks?severity=low").get_json()
    assert [r["title"] for r in body["items"]] == ["Low"]


def test_update_risk_recalculates_score(client, program):
    risk = _create_risk(client, program["id"], probability=1, impact=1)
    res = client.put(f"/api/v1/risks/{risk['id']}", json={"impact": 5})
    data = res.get_json()
    assert data["risk_score"] == 5
    assert data["rag_status"] == "amber"


def test_get_and_delete_risk(client, program):
    risk = _create_risk(client, program["id"])
    assert client.get(f"/api/v1/risks/{risk['id']}").status_code == 200
    assert client.delete(f"/api/v1/risks/{risk['id']}").status_code == 200
    assert client.get(f"/api/v1/risks/{risk['id']}").status_code == 404


def test_push_to_jira_failure_still_creates(client, program):
    risk = _create_risk(client, program["id"], push_to_jira=True)
    assert risk["jira_issue_key"] is None


def test_push_to_jira_assigns_key(client, program, connect):
    connect("jira")
    first = _create_risk(client, program["id"], push_to_jira=True)
    second = _create_risk(client, program["id"], title="Another", push_to_jira=True)
    assert first["jira_issue_key"] == "RISK-1"
    assert second["jira_issue_key"] == "RISK-2"


def test_import_jira_risks_requires_connection(client, program):
    res = client.post(f"/api/v1/programs/{program['id']}/import-jira-risks")
    assert res.status_code == 502
    assert client.post("/api/v1/programs/9999/import-jira-risks").status_code == 404


def test_import_jira_risks(client, program, connect):
    pid = program["id"]
    connect("jira", config={"risk_issues": [
        {"key": "OPS-7", "summary": "Vendor API sunset", "priority": "Highest"},
        {"key": "OPS-8", "summary": "Capacity crunch", "priority": "Low", "program_id": pid},
        {"key": "OPS-9", "summary": "Other program", "program_id": pid + 1},
        {"summary": "No key"},
    ]})

    res = client.post(f"/api/v1/programs/{pid}/import-jira-risks")
    assert res.status_code == 200
    data = res.get_json()
    assert data["risks_imported"] == 2
    assert data["message"] == "Imported 2 risks from Jira"
    imported = {r["jira_issue_key"]: r for r in data["risks"]}
    assert imported["OPS-7"]["severity"] == "critical"
    assert imported["OPS-8"]["severity"] == "low"
    assert all(r["source"] == "jira" for r in data["risks"])

    again = client.post(f"/api/v1/programs/{pid}/import-jira-risks").get_json()
    assert again["risks_imported"] == 0
    assert client.get(f"/api/v1/programs/{pid}/risks?source=jira").get_json()["total"] == 2


def test_import_jira_risks_with_ticketing_disabled(app, client, program, connect):
    connect("jira", config={"risk_issues": [{"key": "OPS-1", "summary": "x"}]})
    app.config["TICKETING_ENABLED"] = False
    try:
        res = client.post(f"/api/v1/programs/{program['id']}/import-jira-risks")
    finally:
        app.config["TICKETING_ENABLED"] = True
    assert res.status_code == 200
    assert res.get_json()["risks_imported"] == 0


# ═════════════════════════════════════════════════════════════════════════════
# HEATMAP
# ═════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("value,bucket", [(1, "low"), (2, "medium"), (3, "medium"),
                                          (4, "high"), (5, "high"), (None, "medium")])
def test_probability_bucket(value, bucket):
    assert probability_bucket(value) == bucket


@pytest.mark.parametrize("value,bucket", [(1, "low"), (2, "medium"), (3, "high"),
                                          (4, "critical"), (5, "critical"), ("x", "medium")])
def test_impact_bucket(value, bucket):
    assert impact_bucket(value) == bucket


def test_heatmap(client, program):
    pid = program["id"]
    _create_risk(client, pid, title="A", probability=5, impact=5)
    _create_risk(client, pid, title="B", probability=4, impact=4)
    _create_risk(client, pid, title="C", probability=1, impact=1)

    res = client.get(f"/api/v1/programs/{pid}/risks/heatmap")
    assert res.status_code == 200
    data = res.get_json()
    assert data["total"] == 3
    assert data["probability_levels"] == ["low", "medium", "high"]
    assert data["impact_levels"] == ["low", "medium", "high", "critical"]

    top_row = data["cells"][0]
    assert top_row[0]["probability"] == "high"
    critical_cell = next(c for c in top_row if c["impact"] == "critical")
    assert critical_cell["count"] == 2
    assert {r["title"] for r in critical_cell["risks"]} == {"A", "B"}

    bottom_left = data["cells"][-1][0]
    assert (bottom_left["probability"], bottom_left["impact"], bottom_left["count"]) == ("low", "low", 1)
