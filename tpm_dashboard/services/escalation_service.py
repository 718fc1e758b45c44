"""Escalation service — create escalations and fan them out to channels.

Each flagged channel (Slack, Teams, email) is attempted independently. A
channel that is not configured or fails to deliver is recorded in the
escalation's ``delivery_results``; it never aborts the other channels or the
request.

Transaction policy: flush() only; the route handler commits.
"""
import logging
from datetime import datetime, timezone

from tpm_dashboard.core.exceptions import IntegrationError, NotFoundError
from tpm_dashboard.integrations.base import DeliveryResult, NotificationMessage
from tpm_dashboard.integrations.registry import get_sink
from tpm_dashboard.models import db
from tpm_dashboard.models.escalation import CLOSED_ESCALATION_STATUSES, Escalation

logger = logging.getLogger(__name__)

# escalation flag → channel name
CHANNEL_FLAGS = (
    ("send_to_slack", "slack"),
    ("send_to_teams", "teams"),
    ("send_to_email", "email"),
)


def build_message(escalation) -> NotificationMessage:
    fields = {}
    if escalation.program is not None:
        fields["Program"] = escalation.program.name
    if escalation.impact:
        fields["Impact"] = escalation.impact
    if escalation.owner_id:
        fields["Owner"] = escalation.owner_id
    return NotificationMessage(
        title=f"Escalation: {escalation.summary}",
        text=escalation.description or "",
        urgency=escalation.urgency or "medium",
        fields=fields,
    )


def dispatch(escalation, *, session=None) -> list[dict]:
    """Send the escalation to every flagged channel.

    Returns:
        One DeliveryResult dict per flagged channel, in flag order.
    """
    message = build_message(escalation)
    results = []
    for flag, channel in CHANNEL_FLAGS:
        if not getattr(escalation, flag):
            continue
        try:
            result = get_sink(channel, session=session).send(message)
        except IntegrationError as exc:
            logger.warning("Escalation %s not delivered to %s: %s", escalation.id, channel, exc)
            result = DeliveryResult(channel=channel, delivered=False, error=str(exc))
        except Exception as exc:
            logger.exception("Escalation %s: unexpected %s delivery error", escalation.id, channel)
            result = DeliveryResult(channel=channel, delivered=False, error=str(exc))
        results.append(result.to_dict())
    return results


def create_escalation(program_id, data, *, session=None):
    """Create an escalation and dispatch it.

    Returns:
        Escalation (flushed) with ``delivery_results`` populated.
    """
    escalation = Escalation(
        program_id=program_id,
        summary=data["summary"],
        description=data.get("description") or "",
        urgency=data.get("urgency") or "medium",
        status="open",
        owner_id=data.get("owner_id"),
        reporter_id=data.get("reporter_id"),
        impact=data.get("impact") or "",
        send_to_slack=bool(data.get("send_to_slack")),
        send_to_teams=bool(data.get("send_to_teams")),
        send_to_email=bool(data.get("send_to_email")),
    )
    db.session.add(escalation)
    db.session.flush()

    escalation.delivery_results = dispatch(escalation, session=session)
    db.session.flush()
    logger.info(
        "Escalation %s created urgency=%s channels=%s",
        escalation.id, escalation.urgency,
        [r["channel"] for r in escalation.delivery_results],
    )
    return escalation


def get_escalation(escalation_id):
    escalation = db.session.get(Escalation, escalation_id)
    if escalation is None:
        raise NotFoundError("Escalation", escalation_id)
    return escalation


def update_status(escalation, status):
    """Set status; resolved/closed stamps ``resolved_at``, reopening clears it."""
    escalation.status = status
    if status in CLOSED_ESCALATION_STATUSES:
        if escalation.resolved_at is None:
            escalation.resolved_at = datetime.now(timezone.utc)
    else:
        escalation.resolved_at = None
    db.session.flush()
    return escalation
