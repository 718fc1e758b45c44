"""
Notification sinks: Slack, Teams, email and a no-op sink.

Slack and Teams post a message card to the configured incoming-webhook URL
when one is set, otherwise they log the payload and report ``log_only``.
Email delegates to EmailService, which logs only when MAIL_SERVER is unset.

Testability: pass a fake ``session`` to the webhook sinks instead of letting
them create a real requests.Session.
"""

from __future__ import annotations

import logging

import requests

from tpm_dashboard.core.exceptions import IntegrationError
from tpm_dashboard.integrations.base import (
    DeliveryResult,
    NotificationMessage,
    NotificationSink,
)

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10

URGENCY_EMOJI = {"critical": ":rotating_light:", "high": ":warning:"}
TEAMS_THEME_COLORS = {"critical": "FF0000", "high": "FFA500"}
TEAMS_DEFAULT_COLOR = "0078D7"


class _WebhookSink(NotificationSink):
    """Shared webhook POST for chat sinks."""

    def __init__(self, webhook_url: str | None = None,
                 session: requests.Session | None = None,
                 timeout: int = _DEFAULT_TIMEOUT) -> None:
        self.webhook_url = webhook_url
        self._session = session
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def build_payload(self, message: NotificationMessage) -> dict:
        raise NotImplementedError

    def send(self, message: NotificationMessage) -> DeliveryResult:
        payload = self.build_payload(message)
        if not self.webhook_url:
            logger.info("%s (log only): %s", self.channel, payload)
            return DeliveryResult(channel=self.channel, delivered=True, mode="log_only")

        try:
            resp = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("%s webhook failed: %s", self.channel, exc)
            raise IntegrationError(self.channel, f"webhook request failed: {exc}") from exc

        logger.info("%s webhook delivered: %s", self.channel, message.title)
        return DeliveryResult(channel=self.channel, delivered=True, mode="webhook")


class SlackSink(_WebhookSink):
    channel = "slack"

    def build_payload(self, message: NotificationMessage) -> dict:
        prefix = URGENCY_EMOJI.get(message.urgency, ":information_source:")
        lines = [f"*{message.title}*", f"*Urgency:* {message.urgency}"]
        if message.text:
            lines.append(f"*Description:* {message.text}")
        lines.extend(f"*{k}:* {v}" for k, v in message.fields.items())
        return {
            "text": f"{prefix} {message.title}",
            "blocks": [
                {"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(lines)}},
            ],
        }


class TeamsSink(_WebhookSink):
    channel = "teams"

    def build_payload(self, message: NotificationMessage) -> dict:
        return {
            "@type": "MessageCard",
            "@context": "http://schema.org/extensions",
            "themeColor": TEAMS_THEME_COLORS.get(message.urgency, TEAMS_DEFAULT_COLOR),
            "summary": message.title,
            "sections": [{
                "activityTitle": message.title,
                "activitySubtitle": f"Urgency: {message.urgency}",
                "text": message.text,
                "facts": [{"name": k, "value": str(v)} for k, v in message.fields.items()],
            }],
        }


class EmailSink(NotificationSink):
    channel = "email"

    def __init__(self, recipients: list[str] | None = None) -> None:
        self.recipients = [r for r in (recipients or []) if r]

    def send(self, message: NotificationMessage) -> DeliveryResult:
        from tpm_dashboard.services.email_service import EmailService

        if not self.recipients:
            raise IntegrationError(self.channel, "no recipients configured")

        mode = None
        for recipient in self.recipients:
            mode = EmailService.send_from_template(
                to_email=recipient,
                template_name="escalation",
                context={
                    "title": message.title,
                    "urgency": message.urgency,
                    "message": message.text,
                    "details": "".join(
                        f"<li><strong>{k}:</strong> {v}</li>" for k, v in message.fields.items()
                    ),
                },
            )
        return DeliveryResult(channel=self.channel, delivered=True, mode=mode)


class NoopSink(NotificationSink):
    """Accepts and drops every message. Used when notifications are disabled."""

    def __init__(self, channel: str = "noop") -> None:
        self.channel = channel

    def send(self, message: NotificationMessage) -> DeliveryResult:
        logger.debug("Notifications disabled, dropped %s message: %s", self.channel, message.title)
        return DeliveryResult(channel=self.channel, delivered=False, mode="noop")
