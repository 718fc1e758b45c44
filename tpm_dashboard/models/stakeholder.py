"""
TPM Dashboard
Stakeholder models.

Models:
    - Stakeholder: person with influence/support levels and working styles
    - StakeholderInteraction: predicted vs. actual response for one interaction

Architecture chain: Program → Stakeholder → StakeholderInteraction
"""

from datetime import datetime, timezone

from tpm_dashboard.models import db

LEADERSHIP_STYLES = {
    "Autocratic", "Democratic", "Laissez-faire", "Transformational",
    "Transactional", "Servant",
}
COMMUNICATION_STYLES = {"Direct", "Analytical", "Expressive", "Amiable"}
INTERACTION_TYPES = {"meeting", "email", "decision", "escalation", "status_update"}


class Stakeholder(db.Model):
    __tablename__ = "stakeholders"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=True)
    role = db.Column(db.String(200), nullable=True)
    department = db.Column(db.String(200), nullable=True)
    leadership_style = db.Column(db.String(50), nullable=True)
    communication_style = db.Column(db.String(50), nullable=True)
    decision_making_style = db.Column(db.String(50), nullable=True)
    influence_level = db.Column(db.Integer, nullable=True, comment="1-5")
    support_level = db.Column(db.Integer, nullable=True, comment="1-5")
    preferred_communication = db.Column(db.JSON, default=list)
    response_patterns = db.Column(db.JSON, default=dict)
    predictive_score = db.Column(db.Float, nullable=True, comment="Rolling prediction accuracy 0-100")

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    program = db.relationship("Program", backref=db.backref("stakeholders", lazy="dynamic",
                                                            cascade="all, delete-orphan"))
    interactions = db.relationship(
        "StakeholderInteraction", backref="stakeholder", lazy="dynamic",
        cascade="all, delete-orphan", order_by="StakeholderInteraction.created_at.desc()",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "department": self.department,
            "leadership_style": self.leadership_style,
            "communication_style": self.communication_style,
            "decision_making_style": self.decision_making_style,
            "influence_level": self.influence_level,
            "support_level": self.support_level,
            "preferred_communication": list(self.preferred_communication or []),
            "response_patterns": dict(self.response_patterns or {}),
            "predictive_score": self.predictive_score,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Stakeholder {self.id}: {self.name}>"


class StakeholderInteraction(db.Model):
    __tablename__ = "stakeholder_interactions"

    id = db.Column(db.Integer, primary_key=True)
    stakeholder_id = db.Column(
        db.Integer, db.ForeignKey("stakeholders.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    program_id = db.Column(db.Integer, db.ForeignKey("programs.id", ondelete="SET NULL"), nullable=True)
    interaction_type = db.Column(db.String(30), nullable=True)
    context = db.Column(db.Text, default="")
    predicted_response = db.Column(db.Text, nullable=True)
    actual_response = db.Column(db.Text, nullable=True)
    accuracy = db.Column(db.Float, nullable=True, comment="0-100 word overlap")
    recommendations = db.Column(db.JSON, default=list)
    follow_up_required = db.Column(db.Boolean, default=False)
    follow_up_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "stakeholder_id": self.stakeholder_id,
            "program_id": self.program_id,
            "interaction_type": self.interaction_type,
            "context": self.context,
            "predicted_response": self.predicted_response,
            "actual_response": self.actual_response,
            "accuracy": self.accuracy,
            "recommendations": list(self.recommendations or []),
            "follow_up_required": bool(self.follow_up_required),
            "follow_up_date": self.follow_up_date.isoformat() if self.follow_up_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<StakeholderInteraction {self.id} stakeholder={self.stakeholder_id}>"
