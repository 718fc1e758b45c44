"""
TPM Dashboard
Risk domain model.

Risk score = probability × impact (1-25) with RAG classification. Severity is
the coarse label the health score reads; the numeric score drives the heatmap
and list ordering.

Architecture chain: Program → Risk
"""

from datetime import datetime, timezone

from tpm_dashboard.models import db


# ── Constants ────────────────────────────────────────────────────────────────

RISK_SEVERITIES = {"low", "medium", "high", "critical"}
RISK_STATUSES = {"identified", "in_progress", "mitigated", "resolved", "accepted"}

RISK_SOURCES = {"manual", "gap_detection", "jira"}


# ── Risk Scoring Matrix ─────────────────────────────────────────────────────

def calculate_risk_score(probability, impact) -> int:
    """
    Calculate risk score: probability (1-5) × impact (1-5).
    Range: 1–25.
    """
    p = max(1, min(5, int(probability or 1)))
    i = max(1, min(5, int(impact or 1)))
    return p * i


def risk_rag_status(score: int) -> str:
    """
    RAG classification based on risk score.
      1-4  → green
      5-9  → amber
      10-15 → orange
      16-25 → red
    """
    if score <= 4:
        return "green"
    if score <= 9:
        return "amber"
    if score <= 15:
        return "orange"
    return "red"


# ═══════════════════════════════════════════════════════════════════════════
#  RISK
# ═══════════════════════════════════════════════════════════════════════════

class Risk(db.Model):
    """A risk tracked for a program, entered manually, raised by gap detection or imported from Jira."""

    __tablename__ = "risks"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    severity = db.Column(db.String(20), nullable=True, index=True, comment="low | medium | high | critical")
    status = db.Column(db.String(30), default="identified", index=True)
    impact = db.Column(db.Integer, nullable=True, comment="1-5")
    probability = db.Column(db.Integer, nullable=True, comment="1-5")
    risk_score = db.Column(db.Integer, default=1, comment="probability × impact")
    rag_status = db.Column(db.String(10), default="green")
    owner_id = db.Column(db.String(100), nullable=True)
    mitigation_plan = db.Column(db.Text, default="")
    due_date = db.Column(db.Date, nullable=True)
    jira_issue_key = db.Column(db.String(50), nullable=True)
    pmp_category = db.Column(db.String(40), nullable=True)
    source = db.Column(
        db.String(30), default="manual",
        comment="manual | gap_detection | jira",
    )
    source_component = db.Column(
        db.String(100), nullable=True,
        comment="Missing component that raised this risk (gap detection only)",
    )

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def recalculate_score(self):
        """Refresh risk_score and rag_status from probability × impact."""
        self.risk_score = calculate_risk_score(self.probability, self.impact)
        self.rag_status = risk_rag_status(self.risk_score)

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "status": self.status,
            "impact": self.impact,
            "probability": self.probability,
            "risk_score": self.risk_score,
            "rag_status": self.rag_status,
            "owner_id": self.owner_id,
            "mitigation_plan": self.mitigation_plan,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "jira_issue_key": self.jira_issue_key,
            "pmp_category": self.pmp_category,
            "source": self.source,
            "source_component": self.source_component,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Risk {self.id}: {self.title[:40]} [{self.severity}]>"
