"""
TPM Dashboard
Escalation model.

An escalation is raised against a program and fanned out to the channels
flagged on it (Slack, Teams, email). Delivery results are stored as JSON so
the escalation record shows which channels actually received it.
"""

from datetime import datetime, timezone

from tpm_dashboard.models import db

ESCALATION_URGENCIES = {"low", "medium", "high", "critical"}
ESCALATION_STATUSES = {"open", "in_progress", "resolved", "closed"}
CLOSED_ESCALATION_STATUSES = {"resolved", "closed"}


class Escalation(db.Model):
    __tablename__ = "escalations"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    summary = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    urgency = db.Column(db.String(20), default="medium")
    status = db.Column(db.String(20), default="open", index=True)
    owner_id = db.Column(db.String(100), nullable=True)
    reporter_id = db.Column(db.String(100), nullable=True)
    impact = db.Column(db.Text, default="")
    send_to_slack = db.Column(db.Boolean, default=False)
    send_to_teams = db.Column(db.Boolean, default=False)
    send_to_email = db.Column(db.Boolean, default=False)
    delivery_results = db.Column(db.JSON, default=list, comment="Per-channel delivery outcome")
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    program = db.relationship("Program", backref=db.backref("escalations", lazy="dynamic",
                                                            cascade="all, delete-orphan"))

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "summary": self.summary,
            "description": self.description,
            "urgency": self.urgency,
            "status": self.status,
            "owner_id": self.owner_id,
            "reporter_id": self.reporter_id,
            "impact": self.impact,
            "send_to_slack": bool(self.send_to_slack),
            "send_to_teams": bool(self.send_to_teams),
            "send_to_email": bool(self.send_to_email),
            "delivery_results": list(self.delivery_results or []),
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Escalation {self.id}: {self.summary[:40]} [{self.status}]>"
