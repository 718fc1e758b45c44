"""
TPM Dashboard
Tests — escalations and their per-channel fan-out.
"""

import requests


def _escalate(client, pid, **overrides):
    payload = {"summary": "Vendor missed delivery", "urgency": "high", "impact": "Launch slips"}
    payload.update(overrides)
    res = client.post(f"/api/v1/programs/{pid}/escalations", json=payload)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


def test_escalation_without_channels(client, program):
    data = _escalate(client, program["id"])
    assert data["status"] == "open"
    assert data["delivery_results"] == []


def test_escalation_requires_summary(client, program):
    res = client.post(f"/api/v1/programs/{program['id']}/escalations", json={"urgency": "high"})
    assert res.status_code == 400


def test_escalation_invalid_urgency(client, program):
    res = client.post(f"/api/v1/programs/{program['id']}/escalations",
                      json={"summary": "x", "urgency": "asap"})
    assert res.status_code == 400


def test_escalation_unknown_program(client):
    assert client.post("/api/v1/programs/9999/escalations", json={"summary": "x"}).status_code == 404


def test_escalation_fans_out_to_connected_channels(client, program, connect, http_session):
    connect("slack", webhook_url="https://hooks.example.test/slack")
    connect("teams", webhook_url="https://teams.example.test/hook")
    connect("email", config={"recipients": ["lead@example.test"]})

    data = _escalate(client, program["id"], send_to_slack=True, send_to_teams=True,
                     send_to_email=True)
    results = {r["channel"]: r for r in data["delivery_results"]}
    assert results["slack"]["delivered"] is True
    assert results["slack"]["mode"] == "webhook"
    assert results["teams"]["mode"] == "webhook"
    assert results["email"]["mode"] == "log_only"

    urls = [c["url"] for c in http_session.calls]
    assert urls == ["https://hooks.example.test/slack", "https://teams.example.test/hook"]
    slack_payload = http_session.calls[0]["json"]
    assert "Escalation: Vendor missed delivery" in slack_payload["text"]
    assert "*Program:* Test Program" in slack_payload["blocks"][0]["text"]["text"]


def test_unconfigured_channel_does_not_block_others(client, program, connect, http_session):
    connect("teams", webhook_url="https://teams.example.test/hook")
    data = _escalate(client, program["id"], send_to_slack=True, send_to_teams=True)
    results = {r["channel"]: r for r in data["delivery_results"]}
    assert results["slack"]["delivered"] is False
    assert "not configured" in results["slack"]["error"]
    assert results["teams"]["delivered"] is True


def test_webhook_failure_is_recorded(client, program, connect, http_session):
    connect("slack", webhook_url="https://hooks.example.test/slack")
    http_session.fail_with = requests.Timeout("timed out")
    data = _escalate(client, program["id"], send_to_slack=True)
    result = data["delivery_results"][0]
    assert result["delivered"] is False
    assert "webhook request failed" in result["error"]

    stored = client.get(f"/api/v1/escalations/{data['id']}").get_json()
    assert stored["delivery_results"] == data["delivery_results"]


def test_list_escalations(client, program):
    _escalate(client, program["id"], summary="First")
    _escalate(client, program["id"], summary="Second")
    body = client.get(f"/api/v1/programs/{program['id']}/escalations").get_json()
    assert body["total"] == 2
    assert {e["summary"] for e in body["items"]} == {"First", "Second"}


def test_escalation_status_transitions(client, program):
    esc = _escalate(client, program["id"])
    res = client.patch(f"/api/v1/escalations/{esc['id']}/status", json={"status": "resolved"})
    assert res.status_code == 200
    assert res.get_json()["resolved_at"] is not None

    res = client.patch(f"/api/v1/escalations/{esc['id']}/status", json={"status": "in_progress"})
    assert res.get_json()["resolved_at"] is None

    assert client.patch(f"/api/v1/escalations/{esc['id']}/status", json={}).status_code == 400
    res = client.patch(f"/api/v1/escalations/{esc['id']}/status", json={"status": "done"})
    assert res.status_code == 400


def test_escalation_not_found(client):
    assert client.get("/api/v1/escalations/9999").status_code == 404
    res = client.patch("/api/v1/escalations/9999/status", json={"status": "closed"})
    assert res.status_code == 404
