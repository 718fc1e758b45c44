"""Risk service layer — risk CRUD with auto-scoring, Jira import and the risk heatmap.

Transaction policy: functions use flush() for ID generation, never commit().
Caller (route handler) is responsible for db.session.commit().
"""
import logging

from tpm_dashboard.core.exceptions import IntegrationError
from tpm_dashboard.integrations.registry import get_ticketing_client
from tpm_dashboard.integrations.ticketing import map_priority_to_severity
from tpm_dashboard.models import db
from tpm_dashboard.models.risk import Risk
from tpm_dashboard.utils.helpers import parse_date

logger = logging.getLogger(__name__)

_RISK_FIELDS = ("title", "description", "severity", "status", "owner_id",
                "mitigation_plan", "pmp_category")

# Heatmap axes
PROBABILITY_BUCKETS = ("low", "medium", "high")
IMPACT_BUCKETS = ("low", "medium", "high", "critical")
HEATMAP_DEFAULT_LEVEL = 2


def create_risk(program_id, data, *, push_to_jira=False):
    """Create a risk with score and RAG status.

    When ``push_to_jira`` is set, the risk is pushed to the ticketing system;
    a push failure is logged and the risk is still created.

    Returns:
        Risk instance (already flushed).
    """
    risk = Risk(
        program_id=program_id,
        title=data["title"],
        description=data.get("description") or "",
        severity=data.get("severity"),
        status=data.get("status") or "identified",
        impact=data.get("impact"),
        probability=data.get("probability"),
        owner_id=data.get("owner_id"),
        mitigation_plan=data.get("mitigation_plan") or "",
        due_date=parse_date(data.get("due_date")),
        pmp_category=data.get("pmp_category"),
        source=data.get("source") or "manual",
        source_component=data.get("source_component"),
    )
    risk.recalculate_score()
    db.session.add(risk)
    db.session.flush()

    if push_to_jira:
        try:
            push_risk_to_jira(risk)
        except IntegrationError as exc:
            logger.warning("Risk %s created but ticketing push failed: %s", risk.id, exc)

    return risk


def update_risk(risk, data):
    """Update a risk, recalculating score if probability/impact changed."""
    for field in _RISK_FIELDS:
        if field in data:
            setattr(risk, field, data[field])
    if "due_date" in data:
        risk.due_date = parse_date(data["due_date"])
    if "probability" in data or "impact" in data:
        risk.probability = data.get("probability", risk.probability)
        risk.impact = data.get("impact", risk.impact)
        risk.recalculate_score()
    db.session.flush()
    return risk


def delete_risk(risk):
    db.session.delete(risk)
    db.session.flush()


def push_risk_to_jira(risk):
    """Create a ticketing issue for the risk and store its key.

    Raises:
        IntegrationNotConfiguredError: jira is not connected.
    """
    client = get_ticketing_client()
    result = client.create_issue(
        summary=risk.title,
        description=risk.description or "",
        severity=risk.severity,
    )
    if result.key:
        risk.jira_issue_key = result.key
    db.session.flush()
    return result


def import_jira_risks(program):
    """Create risks for ticketing issues the program does not hold yet.

    Issues scoped to another program are skipped; an issue key already on
    one of the program's risks is never imported twice.

    Raises:
        IntegrationNotConfiguredError: jira is not connected.
    """
    client = get_ticketing_client()
    known = {
        key for (key,) in db.session.query(Risk.jira_issue_key)
        .filter(Risk.program_id == program.id, Risk.jira_issue_key.isnot(None))
    }
    imported = []
    for issue in client.search_risk_issues():
        scope = issue.get("program_id")
        if scope is not None and scope != program.id:
            continue
        if issue["key"] in known:
            continue
        risk = Risk(
            program_id=program.id,
            title=issue["summary"],
            description=issue.get("description") or "",
            severity=map_priority_to_severity(issue.get("priority")),
            status="identified",
            jira_issue_key=issue["key"],
            source="jira",
        )
        risk.recalculate_score()
        db.session.add(risk)
        known.add(issue["key"])
        imported.append(risk)
    db.session.flush()
    logger.info("Imported %d Jira risks into program %s", len(imported), program.id)
    return imported


# ── Heatmap ──────────────────────────────────────────────────────────────────


def probability_bucket(value) -> str:
    level = value if isinstance(value, int) and not isinstance(value, bool) else HEATMAP_DEFAULT_LEVEL
    if level <= 1:
        return "low"
    if level <= 3:
        return "medium"
    return "high"


def impact_bucket(value) -> str:
    level = value if isinstance(value, int) and not isinstance(value, bool) else HEATMAP_DEFAULT_LEVEL
    if level <= 1:
        return "low"
    if level <= 2:
        return "medium"
    if level <= 3:
        return "high"
    return "critical"


def build_heatmap(risks):
    """Bucket risks into a 3 (probability) × 4 (impact) matrix.

    Returns:
        dict with ``probability_levels``, ``impact_levels`` and ``cells``,
        a list of rows (high probability first) of
        ``{"probability", "impact", "count", "risks": [{id, title}]}``.
    """
    cells = {
        (p, i): []
        for p in PROBABILITY_BUCKETS
        for i in IMPACT_BUCKETS
    }
    for risk in risks:
        cells[(probability_bucket(risk.probability), impact_bucket(risk.impact))].append(
            {"id": risk.id, "title": risk.title, "severity": risk.severity}
        )

    rows = []
    for p in reversed(PROBABILITY_BUCKETS):
        rows.append([
            {"probability": p, "impact": i, "count": len(cells[(p, i)]), "risks": cells[(p, i)]}
            for i in IMPACT_BUCKETS
        ])
    return {
        "probability_levels": list(PROBABILITY_BUCKETS),
        "impact_levels": list(IMPACT_BUCKETS),
        "cells": rows,
        "total": sum(len(v) for v in cells.values()),
    }
