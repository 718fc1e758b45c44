"""Integration settings service.

Transaction policy: flush() only; the route handler commits.
"""
import logging
from datetime import datetime, timezone

from tpm_dashboard.core.exceptions import ConflictError, NotFoundError
from tpm_dashboard.integrations.registry import get_connected_integration
from tpm_dashboard.models import db
from tpm_dashboard.models.integration import Integration

logger = logging.getLogger(__name__)

_FIELDS = ("status", "api_url", "api_key", "webhook_url", "config")


def list_integrations():
    return Integration.query.order_by(Integration.name).all()


def get_integration(name):
    integration = Integration.query.filter_by(name=name).first()
    if integration is None:
        raise NotFoundError("Integration", name)
    return integration


def create_integration(data):
    if Integration.query.filter_by(name=data["name"]).first() is not None:
        raise ConflictError("Integration", "name", data["name"])
    integration = Integration(
        name=data["name"],
        status=data.get("status") or "disconnected",
        api_url=data.get("api_url"),
        api_key=data.get("api_key"),
        webhook_url=data.get("webhook_url"),
        config=data.get("config") or {},
    )
    db.session.add(integration)
    db.session.flush()
    logger.info("Integration %s created status=%s", integration.name, integration.status)
    return integration


def update_integration(name, data):
    integration = get_integration(name)
    for field in _FIELDS:
        if field in data:
            setattr(integration, field, data[field])
    db.session.flush()
    logger.info("Integration %s updated status=%s", integration.name, integration.status)
    return integration


def sync_jira():
    """Stamp ``last_sync`` on the jira integration.

    The sync itself is a stand-in; no issues are pulled.

    Raises:
        IntegrationNotConfiguredError: jira is not connected.
    """
    integration = get_connected_integration("jira")
    integration.last_sync = datetime.now(timezone.utc)
    db.session.flush()
    logger.info("Jira sync completed at %s", integration.last_sync.isoformat())
    return integration
