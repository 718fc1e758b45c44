"""
TPM Dashboard
Generated program report.

``content`` holds the structured snapshot assembled at generation time
(completeness, health, recommendations, risk and milestone summaries), so a
report keeps showing what was true when it was produced.
"""

from datetime import datetime, timezone

from tpm_dashboard.models import db

REPORT_TYPES = {"weekly", "monthly", "quarterly"}


class Report(db.Model):
    __tablename__ = "reports"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    generated_by = db.Column(db.String(100), nullable=True)
    content = db.Column(db.JSON, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_dict(self, include_content=True):
        result = {
            "id": self.id,
            "program_id": self.program_id,
            "title": self.title,
            "type": self.type,
            "generated_by": self.generated_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_content:
            result["content"] = dict(self.content or {})
        return result

    def __repr__(self):
        return f"<Report {self.id}: {self.type} program={self.program_id}>"
