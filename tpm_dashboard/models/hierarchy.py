"""
TPM Dashboard
Delivery hierarchy mirrored from the ticketing system.

Models:
    - MilestoneStep: ordered step inside a milestone
    - JiraBepic: business epic grouped under a step
    - JiraEpic: epic grouped under a business epic
    - JiraStory: story grouped under an epic

Architecture chain: Milestone → MilestoneStep → JiraBepic → JiraEpic → JiraStory

The completeness check counts these per program when the hierarchy is in use.
"""

from datetime import datetime, timezone

from tpm_dashboard.models import db

HIERARCHY_STATUSES = {"not_started", "in_progress", "completed", "blocked"}


class _HierarchyMixin:
    """Columns shared by every hierarchy level."""

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(30), default="not_started")
    jira_key = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    _parent_field = None

    def to_dict(self):
        return {
            "id": self.id,
            self._parent_field: getattr(self, self._parent_field),
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "jira_key": self.jira_key,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class MilestoneStep(_HierarchyMixin, db.Model):
    __tablename__ = "milestone_steps"
    _parent_field = "milestone_id"

    milestone_id = db.Column(
        db.Integer, db.ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    sort_order = db.Column(db.Integer, default=0)

    bepics = db.relationship(
        "JiraBepic", backref="step", lazy="dynamic", cascade="all, delete-orphan",
    )

    def to_dict(self):
        result = super().to_dict()
        result["sort_order"] = self.sort_order
        return result

    def __repr__(self):
        return f"<MilestoneStep {self.id}: {self.title[:40]}>"


class JiraBepic(_HierarchyMixin, db.Model):
    __tablename__ = "jira_bepics"
    _parent_field = "step_id"

    step_id = db.Column(
        db.Integer, db.ForeignKey("milestone_steps.id", ondelete="CASCADE"), nullable=False, index=True,
    )

    epics = db.relationship(
        "JiraEpic", backref="bepic", lazy="dynamic", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<JiraBepic {self.id}: {self.title[:40]}>"


class JiraEpic(_HierarchyMixin, db.Model):
    __tablename__ = "jira_epics"
    _parent_field = "bepic_id"

    bepic_id = db.Column(
        db.Integer, db.ForeignKey("jira_bepics.id", ondelete="CASCADE"), nullable=False, index=True,
    )

    stories = db.relationship(
        "JiraStory", backref="epic", lazy="dynamic", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<JiraEpic {self.id}: {self.title[:40]}>"


class JiraStory(_HierarchyMixin, db.Model):
    __tablename__ = "jira_stories"
    _parent_field = "epic_id"

    epic_id = db.Column(
        db.Integer, db.ForeignKey("jira_epics.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    story_points = db.Column(db.Integer, nullable=True)

    def to_dict(self):
        result = super().to_dict()
        result["story_points"] = self.story_points
        return result

    def __repr__(self):
        return f"<JiraStory {self.id}: {self.title[:40]}>"
