"""initial_tpm_schema

Programs with milestones, dependencies, adopters and risks; the mirrored
delivery hierarchy; escalations, integrations, stakeholders, PMP
recommendations and reports; initiatives and projects.

Revision ID: a1c3e5f7b901
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "a1c3e5f7b901"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _hierarchy_columns():
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=True),
        sa.Column("jira_key", sa.String(length=50), nullable=True),
        *_timestamps(),
    ]


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    if "programs" not in existing_tables:
        op.create_table(
            "programs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("owner_id", sa.String(length=100), nullable=True),
            sa.Column("objectives", sa.JSON(), nullable=True),
            sa.Column("kpis", sa.JSON(), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("end_date", sa.Date(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_programs_status", "programs", ["status"])

    if "milestones" not in existing_tables:
        op.create_table(
            "milestones",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("owner_id", sa.String(length=100), nullable=True),
            sa.Column("due_date", sa.Date(), nullable=True),
            sa.Column("completed_date", sa.Date(), nullable=True),
            sa.Column("jira_epic_key", sa.String(length=50), nullable=True),
            sa.Column("pmp_phase", sa.String(length=40), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_milestones_program_id", "milestones", ["program_id"])
        op.create_index("ix_milestones_status", "milestones", ["status"])

    if "dependencies" not in existing_tables:
        op.create_table(
            "dependencies",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("upstream_id", sa.String(length=100), nullable=True),
            sa.Column("downstream_id", sa.String(length=100), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("owner_id", sa.String(length=100), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_dependencies_program_id", "dependencies", ["program_id"])
        op.create_index("ix_dependencies_status", "dependencies", ["status"])

    if "adopters" not in existing_tables:
        op.create_table(
            "adopters",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=False),
            sa.Column("team_name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("readiness_score", sa.Integer(), nullable=True),
            sa.Column("contact_id", sa.String(length=100), nullable=True),
            sa.Column("onboarding_notes", sa.Text(), nullable=True),
            sa.Column("last_check_in", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_adopters_program_id", "adopters", ["program_id"])
        op.create_index("ix_adopters_status", "adopters", ["status"])

    if "risks" not in existing_tables:
        op.create_table(
            "risks",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("severity", sa.String(length=20), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("impact", sa.Integer(), nullable=True),
            sa.Column("probability", sa.Integer(), nullable=True),
            sa.Column("risk_score", sa.Integer(), nullable=True),
            sa.Column("rag_status", sa.String(length=10), nullable=True),
            sa.Column("owner_id", sa.String(length=100), nullable=True),
            sa.Column("mitigation_plan", sa.Text(), nullable=True),
            sa.Column("due_date", sa.Date(), nullable=True),
            sa.Column("jira_issue_key", sa.String(length=50), nullable=True),
            sa.Column("pmp_category", sa.String(length=40), nullable=True),
            sa.Column("source", sa.String(length=30), nullable=True),
            sa.Column("source_component", sa.String(length=100), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_risks_program_id", "risks", ["program_id"])
        op.create_index("ix_risks_severity", "risks", ["severity"])
        op.create_index("ix_risks_status", "risks", ["status"])

    # ── Delivery hierarchy ───────────────────────────────────────────────
    for table, fk, parent in (
        ("milestone_steps", "milestone_id", "milestones"),
        ("jira_bepics", "step_id", "milestone_steps"),
        ("jira_epics", "bepic_id", "jira_bepics"),
        ("jira_stories", "epic_id", "jira_epics"),
    ):
        if table in existing_tables:
            continue
        extra = []
        if table == "milestone_steps":
            extra.append(sa.Column("sort_order", sa.Integer(), nullable=True))
        if table == "jira_stories":
            extra.append(sa.Column("story_points", sa.Integer(), nullable=True))
        op.create_table(
            table,
            *_hierarchy_columns(),
            sa.Column(fk, sa.Integer(), nullable=False),
            *extra,
            sa.ForeignKeyConstraint([fk], [f"{parent}.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_{fk}", table, [fk])

    if "escalations" not in existing_tables:
        op.create_table(
            "escalations",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=False),
            sa.Column("summary", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("urgency", sa.String(length=20), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=True),
            sa.Column("owner_id", sa.String(length=100), nullable=True),
            sa.Column("reporter_id", sa.String(length=100), nullable=True),
            sa.Column("impact", sa.Text(), nullable=True),
            sa.Column("send_to_slack", sa.Boolean(), nullable=True),
            sa.Column("send_to_teams", sa.Boolean(), nullable=True),
            sa.Column("send_to_email", sa.Boolean(), nullable=True),
            sa.Column("delivery_results", sa.JSON(), nullable=True),
            sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_escalations_program_id", "escalations", ["program_id"])
        op.create_index("ix_escalations_status", "escalations", ["status"])

    if "integrations" not in existing_tables:
        op.create_table(
            "integrations",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=30), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=True),
            sa.Column("api_url", sa.String(length=500), nullable=True),
            sa.Column("api_key", sa.String(length=500), nullable=True),
            sa.Column("webhook_url", sa.String(length=500), nullable=True),
            sa.Column("last_sync", sa.DateTime(timezone=True), nullable=True),
            sa.Column("config", sa.JSON(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )

    if "stakeholders" not in existing_tables:
        op.create_table(
            "stakeholders",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=True),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=True),
            sa.Column("role", sa.String(length=200), nullable=True),
            sa.Column("department", sa.String(length=200), nullable=True),
            sa.Column("leadership_style", sa.String(length=50), nullable=True),
            sa.Column("communication_style", sa.String(length=50), nullable=True),
            sa.Column("decision_making_style", sa.String(length=50), nullable=True),
            sa.Column("influence_level", sa.Integer(), nullable=True),
            sa.Column("support_level", sa.Integer(), nullable=True),
            sa.Column("preferred_communication", sa.JSON(), nullable=True),
            sa.Column("response_patterns", sa.JSON(), nullable=True),
            sa.Column("predictive_score", sa.Float(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_stakeholders_program_id", "stakeholders", ["program_id"])

    if "stakeholder_interactions" not in existing_tables:
        op.create_table(
            "stakeholder_interactions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("stakeholder_id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=True),
            sa.Column("interaction_type", sa.String(length=30), nullable=True),
            sa.Column("context", sa.Text(), nullable=True),
            sa.Column("predicted_response", sa.Text(), nullable=True),
            sa.Column("actual_response", sa.Text(), nullable=True),
            sa.Column("accuracy", sa.Float(), nullable=True),
            sa.Column("recommendations", sa.JSON(), nullable=True),
            sa.Column("follow_up_required", sa.Boolean(), nullable=True),
            sa.Column("follow_up_date", sa.Date(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["stakeholder_id"], ["stakeholders.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_stakeholder_interactions_stakeholder_id",
            "stakeholder_interactions", ["stakeholder_id"],
        )

    if "pmp_recommendations" not in existing_tables:
        op.create_table(
            "pmp_recommendations",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=False),
            sa.Column("pmp_phase", sa.String(length=40), nullable=False),
            sa.Column("knowledge_area", sa.String(length=60), nullable=True),
            sa.Column("recommendation", sa.Text(), nullable=False),
            sa.Column("reasoning", sa.Text(), nullable=True),
            sa.Column("priority", sa.Integer(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=True),
            sa.Column("implemented_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("feedback", sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_pmp_recommendations_program_id", "pmp_recommendations", ["program_id"])
        op.create_index("ix_pmp_recommendations_status", "pmp_recommendations", ["status"])

    if "reports" not in existing_tables:
        op.create_table(
            "reports",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("type", sa.String(length=20), nullable=False),
            sa.Column("generated_by", sa.String(length=100), nullable=True),
            sa.Column("content", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_reports_program_id", "reports", ["program_id"])

    if "initiatives" not in existing_tables:
        op.create_table(
            "initiatives",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("owner_id", sa.String(length=100), nullable=True),
            sa.Column("strategic_objectives", sa.JSON(), nullable=True),
            sa.Column("success_criteria", sa.JSON(), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("end_date", sa.Date(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_initiatives_status", "initiatives", ["status"])

    if "projects" not in existing_tables:
        op.create_table(
            "projects",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("status", sa.String(length=30), nullable=True),
            sa.Column("owner_id", sa.String(length=100), nullable=True),
            sa.Column("deliverables", sa.JSON(), nullable=True),
            sa.Column("budget", sa.Numeric(precision=12, scale=2), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("end_date", sa.Date(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_projects_program_id", "projects", ["program_id"])
        op.create_index("ix_projects_status", "projects", ["status"])

    if "initiative_programs" not in existing_tables:
        op.create_table(
            "initiative_programs",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("initiative_id", sa.Integer(), nullable=False),
            sa.Column("program_id", sa.Integer(), nullable=False),
            sa.Column("contribution", sa.Text(), nullable=True),
            sa.Column("priority", sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(["initiative_id"], ["initiatives.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["program_id"], ["programs.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("initiative_id", "program_id", name="uq_initiative_program"),
        )
        op.create_index("ix_initiative_programs_initiative_id", "initiative_programs", ["initiative_id"])
        op.create_index("ix_initiative_programs_program_id", "initiative_programs", ["program_id"])

    if "initiative_projects" not in existing_tables:
        op.create_table(
            "initiative_projects",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("initiative_id", sa.Integer(), nullable=False),
            sa.Column("project_id", sa.Integer(), nullable=False),
            sa.Column("contribution", sa.Text(), nullable=True),
            sa.Column("priority", sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(["initiative_id"], ["initiatives.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("initiative_id", "project_id", name="uq_initiative_project"),
        )
        op.create_index("ix_initiative_projects_initiative_id", "initiative_projects", ["initiative_id"])
        op.create_index("ix_initiative_projects_project_id", "initiative_projects", ["project_id"])


def downgrade():
    for table in (
        "initiative_projects",
        "initiative_programs",
        "projects",
        "initiatives",
        "reports",
        "pmp_recommendations",
        "stakeholder_interactions",
        "stakeholders",
        "integrations",
        "escalations",
        "jira_stories",
        "jira_epics",
        "jira_bepics",
        "milestone_steps",
        "risks",
        "adopters",
        "dependencies",
        "milestones",
        "programs",
    ):
        op.drop_table(table)
