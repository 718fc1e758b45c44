"""
Channel registry.

Resolves a channel name to a configured sink or ticketing client. A channel
is usable only when its Integration row exists and is ``connected``; the
app-level NOTIFICATIONS_ENABLED / TICKETING_ENABLED switches swap in the
no-op implementations.

Usage:
    sink = get_sink("slack")
    result = sink.send(NotificationMessage(title="Escalation: ..."))
"""

from __future__ import annotations

import logging

import requests
from flask import current_app

from tpm_dashboard.core.exceptions import IntegrationNotConfiguredError
from tpm_dashboard.integrations.base import NotificationSink, TicketingClient
from tpm_dashboard.integrations.notifications import EmailSink, NoopSink, SlackSink, TeamsSink
from tpm_dashboard.integrations.ticketing import JiraClient, NoopTicketingClient
from tpm_dashboard.models.integration import Integration

logger = logging.getLogger(__name__)

NOTIFICATION_CHANNELS = ("slack", "teams", "email")

_WEBHOOK_CONFIG_KEYS = {
    "slack": "SLACK_WEBHOOK_URL",
    "teams": "TEAMS_WEBHOOK_URL",
}


def get_connected_integration(name: str) -> Integration:
    """Return the Integration row for ``name`` or raise if it is not connected."""
    integration = Integration.query.filter_by(name=name).first()
    if integration is None:
        raise IntegrationNotConfiguredError(name)
    if not integration.is_connected:
        raise IntegrationNotConfiguredError(name, integration.status)
    return integration


def _email_recipients(integration: Integration) -> list[str]:
    configured = (integration.config or {}).get("recipients")
    if isinstance(configured, str):
        configured = [configured]
    if configured:
        return list(configured)
    fallback = current_app.config.get("ESCALATION_EMAIL_TO", "")
    return [addr.strip() for addr in fallback.split(",") if addr.strip()]


def get_sink(channel: str, *, session: requests.Session | None = None) -> NotificationSink:
    """Build the sink for ``channel``.

    Raises:
        IntegrationNotConfiguredError: unknown channel, missing row, or the
            row is not ``connected``.
    """
    if channel not in NOTIFICATION_CHANNELS:
        raise IntegrationNotConfiguredError(channel)
    if not current_app.config.get("NOTIFICATIONS_ENABLED", True):
        return NoopSink(channel)

    integration = get_connected_integration(channel)
    if channel == "email":
        return EmailSink(recipients=_email_recipients(integration))

    webhook_url = integration.webhook_url or current_app.config.get(_WEBHOOK_CONFIG_KEYS[channel])
    sink_cls = SlackSink if channel == "slack" else TeamsSink
    return sink_cls(webhook_url=webhook_url, session=session)


def get_ticketing_client() -> TicketingClient:
    """Return the Jira client, or the no-op client when ticketing is disabled.

    Raises:
        IntegrationNotConfiguredError: the jira row is missing or not connected.
    """
    if not current_app.config.get("TICKETING_ENABLED", True):
        return NoopTicketingClient()
    integration = get_connected_integration("jira")
    project_key = (integration.config or {}).get("project_key") or current_app.config.get(
        "JIRA_PROJECT_KEY", "PROJ"
    )
    return JiraClient(integration, project_key=project_key)
