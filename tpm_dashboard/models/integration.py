"""
TPM Dashboard
Integration configuration model.

One row per external channel. A channel is usable only while its row is
``connected``; the notification sinks and ticketing client check this before
every send.
"""

from datetime import datetime, timezone

from tpm_dashboard.models import db

INTEGRATION_NAMES = {"jira", "slack", "teams", "email"}
INTEGRATION_STATUSES = {"connected", "limited", "disconnected", "error"}


class Integration(db.Model):
    __tablename__ = "integrations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(30), nullable=False, unique=True)
    status = db.Column(db.String(20), default="disconnected")
    api_url = db.Column(db.String(500), nullable=True)
    api_key = db.Column(db.String(500), nullable=True)
    webhook_url = db.Column(db.String(500), nullable=True)
    last_sync = db.Column(db.DateTime(timezone=True), nullable=True)
    config = db.Column(db.JSON, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    @property
    def is_connected(self):
        return self.status == "connected"

    def to_dict(self):
        # api_key is write-only
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "api_url": self.api_url,
            "has_api_key": bool(self.api_key),
            "webhook_url": self.webhook_url,
            "last_sync": self.last_sync.isoformat() if self.last_sync else None,
            "config": dict(self.config or {}),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Integration {self.name} [{self.status}]>"
