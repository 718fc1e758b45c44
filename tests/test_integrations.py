"""
TPM Dashboard
Tests — integration settings API, notification sinks, ticketing client and
channel registry.
"""

import pytest
import requests

from tpm_dashboard.core.exceptions import IntegrationError, IntegrationNotConfiguredError
from tpm_dashboard.integrations.base import NotificationMessage
from tpm_dashboard.integrations.notifications import (
    EmailSink,
    NoopSink,
    SlackSink,
    TeamsSink,
)
from tpm_dashboard.integrations.registry import get_sink, get_ticketing_client
from tpm_dashboard.integrations.ticketing import (
    JiraClient,
    NoopTicketingClient,
    map_severity_to_priority,
)
from tpm_dashboard.models import db as _db
from tpm_dashboard.models.integration import Integration


# ═════════════════════════════════════════════════════════════════════════════
# SETTINGS API
# ═════════════════════════════════════════════════════════════════════════════

def test_create_and_list_integrations(client):
    res = client.post("/api/v1/integrations", json={
        "name": "slack", "status": "connected",
        "webhook_url": "https://hooks.example.test/abc", "api_key": "secret",
    })
    assert res.status_code == 201
    data = res.get_json()
    assert data["has_api_key"] is True
    assert "api_key" not in data

    client.post("/api/v1/integrations", json={"name": "jira"})
    body = client.get("/api/v1/integrations").get_json()
    assert body["total"] == 2
    assert [i["name"] for i in body["items"]] == ["jira", "slack"]
    assert body["items"][0]["status"] == "disconnected"


def test_create_integration_validation(client):
    assert client.post("/api/v1/integrations", json={}).status_code == 400
    assert client.post("/api/v1/integrations", json={"name": "pagerduty"}).status_code == 400
    res = client.post("/api/v1/integrations", json={"name": "jira", "status": "online"})
    assert res.status_code == 400
    res = client.post("/api/v1/integrations", json={"name": "jira", "config": ["x"]})
    assert res.status_code == 400


def test_duplicate_integration_conflict(client):
    client.post("/api/v1/integrations", json={"name": "teams"})
    res = client.post("/api/v1/integrations", json={"name": "teams"})
    assert res.status_code == 409
    assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"


def test_update_integration(client):
    client.post("/api/v1/integrations", json={"name": "email"})
    res = client.put("/api/v1/integrations/email",
                     json={"status": "connected", "config": {"recipients": ["ops@example.test"]}})
    assert res.status_code == 200
    assert res.get_json()["config"] == {"recipients": ["ops@example.test"]}
    assert client.put("/api/v1/integrations/slack", json={"status": "connected"}).status_code == 404


def test_jira_sync(client, connect):
    assert client.post("/api/v1/integrations/jira/sync").status_code == 502
    connect("jira")
    res = client.post("/api/v1/integrations/jira/sync")
    assert res.status_code == 200
    assert res.get_json()["integration"]["last_sync"] is not None


# ═════════════════════════════════════════════════════════════════════════════
# SINKS
# ═════════════════════════════════════════════════════════════════════════════

MESSAGE = NotificationMessage(
    title="Escalation: API outage", text="Checkout is down", urgency="critical",
    fields={"Program": "Payments"},
)


def test_slack_sink_posts_webhook(fake_session):
    session = fake_session()
    result = SlackSink(webhook_url="https://hooks.example.test/s", session=session).send(MESSAGE)
    assert result.delivered is True
    assert result.mode == "webhook"
    call = session.calls[0]
    assert call["url"] == "https://hooks.example.test/s"
    assert call["json"]["text"].startswith(":rotating_light:")
    assert "*Program:* Payments" in call["json"]["blocks"][0]["text"]["text"]


def test_teams_sink_payload(fake_session):
    session = fake_session()
    TeamsSink(webhook_url="https://teams.example.test/t", session=session).send(MESSAGE)
    payload = session.calls[0]["json"]
    assert payload["@type"] == "MessageCard"
    assert payload["themeColor"] == "FF0000"
    assert payload["sections"][0]["facts"] == [{"name": "Program", "value": "Payments"}]


def test_sink_without_webhook_logs_only(fake_session):
    session = fake_session()
    result = SlackSink(webhook_url=None, session=session).send(MESSAGE)
    assert result.mode == "log_only"
    assert session.calls == []


def test_sink_http_error_raises_integration_error(fake_session):
    with pytest.raises(IntegrationError):
        SlackSink(webhook_url="https://x.test", session=fake_session(status_code=500)).send(MESSAGE)
    with pytest.raises(IntegrationError):
        TeamsSink(webhook_url="https://x.test",
                  session=fake_session(fail_with=requests.ConnectionError("refused"))).send(MESSAGE)


def test_email_sink_log_only_without_smtp(app):
    result = EmailSink(recipients=["ops@example.test"]).send(MESSAGE)
    assert result.delivered is True
    assert result.mode == "log_only"


def test_email_sink_over_smtp(app, monkeypatch):
    sent = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            self.host, self.port = host, port

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            pass

        def login(self, username, password):
            pass

        def send_message(self, msg):
            sent.append(msg)

    monkeypatch.setattr("tpm_dashboard.services.email_service.smtplib.SMTP", FakeSMTP)
    monkeypatch.setitem(app.config, "MAIL_SERVER", "smtp.example.test")
    result = EmailSink(recipients=["a@example.test", "b@example.test"]).send(MESSAGE)
    assert result.mode == "smtp"
    assert [m["To"] for m in sent] == ["a@example.test", "b@example.test"]
    assert sent[0]["Subject"] == "[TPM Dashboard] Program Escalation (critical): Escalation: API outage"


def test_email_sink_requires_recipients(app):
    with pytest.raises(IntegrationError):
        EmailSink(recipients=[]).send(MESSAGE)


def test_noop_sink():
    result = NoopSink("slack").send(MESSAGE)
    assert (result.channel, result.delivered, result.mode) == ("slack", False, "noop")


# ═════════════════════════════════════════════════════════════════════════════
# TICKETING
# ═════════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("severity,priority", [
    ("critical", "Highest"), ("high", "High"), ("medium", "Medium"), ("low", "Low"),
    ("LOW", "Low"), ("bogus", "Medium"), (None, "Medium"),
])
def test_map_severity_to_priority(severity, priority):
    assert map_severity_to_priority(severity) == priority


def test_jira_client_counters_live_in_config():
    integration = Integration(name="jira", status="connected", config={})
    client = JiraClient(integration, project_key="OPS")
    assert client.create_epic(summary="E1").key == "OPS-1"
    assert client.create_epic(summary="E2").key == "OPS-2"
    issue = client.create_issue(summary="R", severity="critical")
    assert issue.key == "RISK-1"
    assert issue.payload["priority"] == "Highest"
    assert integration.config == {"epic_counter": 2, "issue_counter": 1}


def test_noop_ticketing_client():
    assert NoopTicketingClient().create_issue(summary="x").key is None
    assert NoopTicketingClient().create_epic(summary="x").key is None


# ═════════════════════════════════════════════════════════════════════════════
# REGISTRY
# ═════════════════════════════════════════════════════════════════════════════

def _integration(name, status="connected", **fields):
    row = Integration(name=name, status=status, **fields)
    _db.session.add(row)
    _db.session.commit()
    return row


def test_registry_requires_connected_row():
    with pytest.raises(IntegrationNotConfiguredError):
        get_sink("slack")
    _integration("slack", status="disconnected")
    with pytest.raises(IntegrationNotConfiguredError) as exc:
        get_sink("slack")
    assert exc.value.status == "disconnected"


def test_registry_unknown_channel():
    with pytest.raises(IntegrationNotConfiguredError):
        get_sink("pagerduty")


def test_registry_builds_configured_sinks():
    _integration("slack", webhook_url="https://hooks.example.test/row")
    _integration("email", config={"recipients": "lead@example.test"})
    slack = get_sink("slack")
    assert isinstance(slack, SlackSink)
    assert slack.webhook_url == "https://hooks.example.test/row"
    email = get_sink("email")
    assert isinstance(email, EmailSink)
    assert email.recipients == ["lead@example.test"]


def test_registry_uses_app_webhook_fallback(app):
    _integration("teams")
    app.config["TEAMS_WEBHOOK_URL"] = "https://teams.example.test/fallback"
    try:
        assert get_sink("teams").webhook_url == "https://teams.example.test/fallback"
    finally:
        app.config["TEAMS_WEBHOOK_URL"] = None


def test_notifications_disabled_returns_noop(app):
    app.config["NOTIFICATIONS_ENABLED"] = False
    try:
        assert isinstance(get_sink("slack"), NoopSink)
    finally:
        app.config["NOTIFICATIONS_ENABLED"] = True


def test_ticketing_client_resolution(app):
    with pytest.raises(IntegrationNotConfiguredError):
        get_ticketing_client()
    _integration("jira", config={"project_key": "PAY"})
    client = get_ticketing_client()
    assert isinstance(client, JiraClient)
    assert client.project_key == "PAY"

    app.config["TICKETING_ENABLED"] = False
    try:
        assert isinstance(get_ticketing_client(), NoopTicketingClient)
    finally:
        app.config["TICKETING_ENABLED"] = True
