"""
TPM Dashboard
Program domain models.

Models:
    - Program: top-level delivery program with objectives and KPIs
    - Milestone: dated checkpoint owned by a program
    - Dependency: upstream/downstream coupling that can block a program
    - Adopter: team onboarding onto the program's output, with readiness score

Architecture chain: Program → Milestone / Dependency / Adopter / Risk
"""

from datetime import datetime, timezone

from tpm_dashboard.models import db


# ── Constants ────────────────────────────────────────────────────────────────

PROGRAM_STATUSES = {"planning", "active", "on_hold", "completed", "cancelled"}
MILESTONE_STATUSES = {"not_started", "in_progress", "at_risk", "completed", "delayed"}
DEPENDENCY_STATUSES = {"blocked", "at_risk", "on_track", "completed"}
ADOPTER_STATUSES = {"not_started", "in_progress", "ready", "blocked", "completed"}

PMI_PHASES = ("Initiating", "Planning", "Executing", "Monitoring & Controlling", "Closing")


def _iso(value):
    return value.isoformat() if value else None


# ── Program ──────────────────────────────────────────────────────────────────


class Program(db.Model):
    """
    A program tracked on the dashboard.

    Absent description/owner/dates/objectives/KPIs are valid states; they
    surface as completeness gaps, not as validation errors.
    """

    __tablename__ = "programs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(
        db.String(30),
        default="planning",
        index=True,
        comment="planning | active | on_hold | completed | cancelled",
    )
    owner_id = db.Column(db.String(100), nullable=True, comment="Owning user reference")
    objectives = db.Column(db.JSON, default=list, comment="Ordered list of OKR strings")
    kpis = db.Column(db.JSON, default=list, comment="Ordered list of KPI strings")
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # ── Relationships ────────────────────────────────────────────────────
    milestones = db.relationship(
        "Milestone", backref="program", lazy="dynamic",
        cascade="all, delete-orphan", order_by="Milestone.due_date",
    )
    dependencies = db.relationship(
        "Dependency", backref="program", lazy="dynamic",
        cascade="all, delete-orphan",
    )
    adopters = db.relationship(
        "Adopter", backref="program", lazy="dynamic",
        cascade="all, delete-orphan", order_by="Adopter.team_name",
    )
    risks = db.relationship(
        "Risk", backref="program", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_children=False):
        """Serialize program to dictionary."""
        result = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "owner_id": self.owner_id,
            "objectives": list(self.objectives or []),
            "kpis": list(self.kpis or []),
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_children:
            result["milestones"] = [m.to_dict() for m in self.milestones]
            result["dependencies"] = [d.to_dict() for d in self.dependencies]
            result["adopters"] = [a.to_dict() for a in self.adopters]
        return result

    def __repr__(self):
        return f"<Program {self.id}: {self.name}>"


# ── Milestone ────────────────────────────────────────────────────────────────


class Milestone(db.Model):
    """A dated checkpoint. Overdue when past due and not completed."""

    __tablename__ = "milestones"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(30), default="not_started", index=True)
    owner_id = db.Column(db.String(100), nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    completed_date = db.Column(db.Date, nullable=True)
    jira_epic_key = db.Column(db.String(50), nullable=True)
    pmp_phase = db.Column(db.String(40), nullable=True, comment="PMI process group")

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    steps = db.relationship(
        "MilestoneStep", backref="milestone", lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "owner_id": self.owner_id,
            "due_date": _iso(self.due_date),
            "completed_date": _iso(self.completed_date),
            "jira_epic_key": self.jira_epic_key,
            "pmp_phase": self.pmp_phase,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Milestone {self.id}: {self.title[:40]}>"


# ── Dependency ───────────────────────────────────────────────────────────────


class Dependency(db.Model):
    """Upstream/downstream coupling for a program."""

    __tablename__ = "dependencies"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, default="")
    upstream_id = db.Column(db.String(100), nullable=True, comment="Program or milestone reference")
    downstream_id = db.Column(db.String(100), nullable=True, comment="Program or milestone reference")
    status = db.Column(db.String(30), default="on_track", index=True)
    owner_id = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "title": self.title,
            "description": self.description,
            "upstream_id": self.upstream_id,
            "downstream_id": self.downstream_id,
            "status": self.status,
            "owner_id": self.owner_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Dependency {self.id}: {self.title[:40]} ({self.status})>"


# ── Adopter ──────────────────────────────────────────────────────────────────


class Adopter(db.Model):
    """A team adopting the program's output."""

    __tablename__ = "adopters"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    team_name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(30), default="not_started", index=True)
    readiness_score = db.Column(db.Integer, nullable=True, comment="0-100")
    contact_id = db.Column(db.String(100), nullable=True)
    onboarding_notes = db.Column(db.Text, default="")
    last_check_in = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "team_name": self.team_name,
            "description": self.description,
            "status": self.status,
            "readiness_score": self.readiness_score,
            "contact_id": self.contact_id,
            "onboarding_notes": self.onboarding_notes,
            "last_check_in": _iso(self.last_check_in),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Adopter {self.id}: {self.team_name}>"
