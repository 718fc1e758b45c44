"""Program report generation.

A report is a structured snapshot stored in ``Report.content``:

    summary          program status, owner and dates
    completeness     CompletenessResult.to_dict()
    health           HealthMetrics.to_dict()
    recommendations  top recommendations for the program
    risks            counts by severity and status, the open high/critical list
    milestones       counts by status, overdue, completed and upcoming in window
    adopters         count and mean readiness

The report window (7 / 30 / 90 days) bounds the "recently completed" and
"upcoming" milestone lists.

Transaction policy: flush() only; the route handler commits.
"""
import logging
from collections import Counter
from datetime import date, timedelta

from tpm_dashboard.core.exceptions import NotFoundError, ValidationError
from tpm_dashboard.models import db
from tpm_dashboard.models.program import Adopter, Milestone, Program
from tpm_dashboard.models.report import REPORT_TYPES, Report
from tpm_dashboard.models.risk import Risk
from tpm_dashboard.services import program_health_service
from tpm_dashboard.services.health import is_critical_risk, is_overdue_milestone
from tpm_dashboard.services.scoring_rules import OPEN_RISK_STATUSES

logger = logging.getLogger(__name__)

REPORT_WINDOW_DAYS = {"weekly": 7, "monthly": 30, "quarterly": 90}
REPORT_RECOMMENDATION_LIMIT = 5


def _risk_section(risks):
    open_risks = [r for r in risks if (r.status or "") in OPEN_RISK_STATUSES]
    return {
        "total": len(risks),
        "open": len(open_risks),
        "by_severity": dict(Counter(r.severity or "unknown" for r in risks)),
        "by_status": dict(Counter(r.status or "unknown" for r in risks)),
        "top_open": [
            {"id": r.id, "title": r.title, "severity": r.severity, "risk_score": r.risk_score}
            for r in sorted(open_risks, key=lambda r: -(r.risk_score or 0))
            if is_critical_risk(r)
        ],
    }


def _milestone_section(milestones, today, window):
    since = today - timedelta(days=window)
    until = today + timedelta(days=window)
    completed = [
        m for m in milestones
        if m.completed_date is not None and m.completed_date >= since
    ]
    upcoming = [
        m for m in milestones
        if m.due_date and today <= m.due_date <= until and m.status != "completed"
    ]
    overdue = [m for m in milestones if is_overdue_milestone(m, today)]

    def brief(m):
        return {
            "id": m.id,
            "title": m.title,
            "status": m.status,
            "due_date": m.due_date.isoformat() if m.due_date else None,
        }

    return {
        "total": len(milestones),
        "by_status": dict(Counter(m.status or "unknown" for m in milestones)),
        "overdue": [brief(m) for m in overdue],
        "completed_in_window": [brief(m) for m in completed],
        "upcoming_in_window": [brief(m) for m in sorted(upcoming, key=lambda m: m.due_date)],
    }


def build_report_content(program, report_type, today=None):
    today = today or date.today()
    window = REPORT_WINDOW_DAYS[report_type]
    assessment = program_health_service.program_health(
        program.id, limit=REPORT_RECOMMENDATION_LIMIT, today=today,
    )
    risks = Risk.query.filter_by(program_id=program.id).order_by(Risk.id).all()
    milestones = Milestone.query.filter_by(program_id=program.id).order_by(Milestone.id).all()
    readiness = [a.readiness_score or 0 for a in Adopter.query.filter_by(program_id=program.id)]

    return {
        "report_type": report_type,
        "period": {
            "start": (today - timedelta(days=window)).isoformat(),
            "end": today.isoformat(),
        },
        "summary": {
            "program_id": program.id,
            "program_name": program.name,
            "status": program.status,
            "owner_id": program.owner_id,
            "start_date": program.start_date.isoformat() if program.start_date else None,
            "end_date": program.end_date.isoformat() if program.end_date else None,
        },
        "completeness": assessment["completeness"],
        "health": assessment["health"],
        "recommendations": assessment["recommendations"],
        "risks": _risk_section(risks),
        "milestones": _milestone_section(milestones, today, window),
        "adopters": {
            "total": len(readiness),
            "average_readiness": round(sum(readiness) / len(readiness), 1) if readiness else 0,
        },
    }


def generate_report(program_id, report_type, generated_by=None, today=None):
    """Build and store a report.

    Raises:
        NotFoundError: program does not exist.
        ValidationError: unknown report type.
    """
    if report_type not in REPORT_TYPES:
        raise ValidationError(
            f"Unknown report type '{report_type}'.",
            details={"type": sorted(REPORT_TYPES)},
        )
    program = db.session.get(Program, program_id)
    if program is None:
        raise NotFoundError("Program", program_id)

    report = Report(
        program_id=program.id,
        title=f"{report_type.capitalize()} Report - {program.name}",
        type=report_type,
        generated_by=generated_by or "system",
        content=build_report_content(program, report_type, today),
    )
    db.session.add(report)
    db.session.flush()
    logger.info("Report generated id=%s program=%s type=%s", report.id, program.id, report_type)
    return report


def list_reports(program_id):
    return Report.query.filter_by(program_id=program_id).order_by(Report.created_at.desc(), Report.id.desc())


def get_report(report_id):
    report = db.session.get(Report, report_id)
    if report is None:
        raise NotFoundError("Report", report_id)
    return report
