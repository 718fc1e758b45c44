"""
TPM Dashboard
Portfolio domain models.

Models:
    - Initiative: strategic grouping above programs
    - Project: delivery unit owned by a program
    - InitiativeProgram / InitiativeProject: weighted links from an
      initiative to the programs and projects that contribute to it

Architecture chain: Initiative → Program → Project
"""

from datetime import datetime, timezone

from tpm_dashboard.models import db
from tpm_dashboard.models.program import PROGRAM_STATUSES, _iso

INITIATIVE_STATUSES = PROGRAM_STATUSES
PROJECT_STATUSES = PROGRAM_STATUSES


# ═══════════════════════════════════════════════════════════════════════════
#  INITIATIVE
# ═══════════════════════════════════════════════════════════════════════════

class Initiative(db.Model):
    __tablename__ = "initiatives"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(30), default="planning", index=True)
    owner_id = db.Column(db.String(100), nullable=True)
    strategic_objectives = db.Column(db.JSON, default=list)
    success_criteria = db.Column(db.JSON, default=list)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    program_links = db.relationship(
        "InitiativeProgram", backref="initiative", lazy="dynamic",
        cascade="all, delete-orphan", order_by="InitiativeProgram.priority",
    )
    project_links = db.relationship(
        "InitiativeProject", backref="initiative", lazy="dynamic",
        cascade="all, delete-orphan", order_by="InitiativeProject.priority",
    )

    def to_dict(self, include_links=False):
        result = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "owner_id": self.owner_id,
            "strategic_objectives": list(self.strategic_objectives or []),
            "success_criteria": list(self.success_criteria or []),
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_links:
            result["programs"] = [link.to_dict() for link in self.program_links]
            result["projects"] = [link.to_dict() for link in self.project_links]
        return result

    def __repr__(self):
        return f"<Initiative {self.id}: {self.name}>"


# ═══════════════════════════════════════════════════════════════════════════
#  PROJECT
# ═══════════════════════════════════════════════════════════════════════════

class Project(db.Model):
    """A delivery unit inside a program. Budget is stored with cents precision."""

    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(30), default="planning", index=True)
    owner_id = db.Column(db.String(100), nullable=True)
    deliverables = db.Column(db.JSON, default=list)
    budget = db.Column(db.Numeric(12, 2), nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    program = db.relationship(
        "Program",
        backref=db.backref("projects", lazy="dynamic", cascade="all, delete-orphan"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "program_id": self.program_id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "owner_id": self.owner_id,
            "deliverables": list(self.deliverables or []),
            "budget": float(self.budget) if self.budget is not None else None,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Project {self.id}: {self.name}>"


# ── Initiative links ─────────────────────────────────────────────────────────


class InitiativeProgram(db.Model):
    __tablename__ = "initiative_programs"
    __table_args__ = (
        db.UniqueConstraint("initiative_id", "program_id", name="uq_initiative_program"),
    )

    id = db.Column(db.Integer, primary_key=True)
    initiative_id = db.Column(
        db.Integer, db.ForeignKey("initiatives.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    contribution = db.Column(db.Text, default="", comment="How the program serves the initiative")
    priority = db.Column(db.Integer, default=1, comment="1 = highest")

    program = db.relationship(
        "Program",
        backref=db.backref("initiative_links", lazy="dynamic", cascade="all, delete-orphan"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "initiative_id": self.initiative_id,
            "program_id": self.program_id,
            "program_name": self.program.name if self.program else None,
            "contribution": self.contribution,
            "priority": self.priority,
        }


class InitiativeProject(db.Model):
    __tablename__ = "initiative_projects"
    __table_args__ = (
        db.UniqueConstraint("initiative_id", "project_id", name="uq_initiative_project"),
    )

    id = db.Column(db.Integer, primary_key=True)
    initiative_id = db.Column(
        db.Integer, db.ForeignKey("initiatives.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    contribution = db.Column(db.Text, default="")
    priority = db.Column(db.Integer, default=1)

    project = db.relationship(
        "Project",
        backref=db.backref("initiative_links", lazy="dynamic", cascade="all, delete-orphan"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "initiative_id": self.initiative_id,
            "project_id": self.project_id,
            "project_name": self.project.name if self.project else None,
            "contribution": self.contribution,
            "priority": self.priority,
        }
