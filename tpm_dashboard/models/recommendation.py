"""
TPM Dashboard
Persisted PMP best-practice recommendations.

These rows come from the best-practice catalog and carry a review workflow
(pending → accepted / implemented / rejected). They are separate from the
transient recommendations the scoring engine computes on every request.
"""

from datetime import datetime, timezone

from tpm_dashboard.models import db

PMP_RECOMMENDATION_STATUSES = {"pending", "accepted", "implemented", "rejected"}


class PmpRecommendation(db.Model):
    __tablename__ = "pmp_recommendations"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    pmp_phase = db.Column(db.String(40), nullable=False)
    knowledge_area = db.Column(db.String(60), nullable=True)
    recommendation = db.Column(db.Text, nullable=False)
    reasoning = db.Column(db.Text, default="")
    priority = db.Column(db.Integer, default=2, comment="1-5")
    status = db.Column(db.String(20), default="pending", index=True)
    implemented_date = db.Column(db.DateTime(timezone=True), nullable=True)
    feedback = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "pmp_phase": self.pmp_phase,
            "knowledge_area": self.knowledge_area,
            "recommendation": self.recommendation,
            "reasoning": self.reasoning,
            "priority": self.priority,
            "status": self.status,
            "implemented_date": self.implemented_date.isoformat() if self.implemented_date else None,
            "feedback": self.feedback,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<PmpRecommendation {self.id}: {self.knowledge_area} p{self.priority}>"
