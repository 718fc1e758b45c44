"""
PMP best-practice recommendation service.

Builds persisted recommendations from a catalog of PMI best practices keyed by
process group and knowledge area. The phase comes from the program status
unless the caller names one; knowledge areas come from challenge keywords.

Functions:
    - infer_phase:              Program status → PMI process group
    - relevant_knowledge_areas: Challenge keywords → knowledge areas
    - priority_for:             1-5 priority for one catalog item
    - generate_for_program:     Persist a fresh batch for a program
    - list_recommendations / update_recommendation

Transaction policy: flush() only; the route handler commits.
"""

import logging
from datetime import datetime, timezone

from tpm_dashboard.core.exceptions import NotFoundError, ValidationError
from tpm_dashboard.models import db
from tpm_dashboard.models.program import PMI_PHASES, Program
from tpm_dashboard.models.recommendation import PMP_RECOMMENDATION_STATUSES, PmpRecommendation

logger = logging.getLogger(__name__)

KNOWLEDGE_AREAS = (
    "Integration Management",
    "Scope Management",
    "Schedule Management",
    "Cost Management",
    "Quality Management",
    "Resource Management",
    "Communications Management",
    "Risk Management",
    "Procurement Management",
    "Stakeholder Management",
)

# process group → knowledge area → practices
BEST_PRACTICES: dict[str, dict[str, list[str]]] = {
    "Initiating": {
        "Integration Management": [
            "Develop project charter to formally authorize the project",
            "Identify and document stakeholders early in the project",
            "Define project scope at a high level",
            "Establish initial project objectives and constraints",
        ],
        "Stakeholder Management": [
            "Conduct comprehensive stakeholder analysis",
            "Create stakeholder register with influence/interest matrix",
            "Plan stakeholder engagement strategies",
            "Establish communication protocols with key stakeholders",
        ],
    },
    "Planning": {
        "Scope Management": [
            "Create detailed Work Breakdown Structure (WBS)",
            "Define scope baseline with clear acceptance criteria",
            "Establish scope change control process",
            "Validate scope with stakeholders before execution",
        ],
        "Schedule Management": [
            "Develop realistic project schedule using critical path method",
            "Identify schedule dependencies and critical path",
            "Build in appropriate buffers for schedule risks",
            "Establish schedule baseline and change control",
        ],
        "Risk Management": [
            "Conduct comprehensive risk identification workshops",
            "Perform qualitative and quantitative risk analysis",
            "Develop risk response strategies for high-priority risks",
            "Create risk register with ownership assignments",
        ],
    },
    "Executing": {
        "Resource Management": [
            "Acquire and develop the project team effectively",
            "Manage team performance and resolve conflicts promptly",
            "Optimize resource allocation across project activities",
            "Conduct regular team building and development activities",
        ],
        "Communications Management": [
            "Execute communication management plan consistently",
            "Hold regular status meetings with appropriate stakeholders",
            "Maintain transparent project reporting and dashboards",
            "Address communication gaps and conflicts immediately",
        ],
    },
    "Monitoring & Controlling": {
        "Integration Management": [
            "Monitor work performance and compare against baselines",
            "Implement integrated change control process",
            "Update project management plan as needed",
            "Ensure deliverables meet quality standards",
        ],
        "Quality Management": [
            "Perform quality assurance activities regularly",
            "Control quality through inspections and testing",
            "Implement corrective actions for quality issues",
            "Document lessons learned for future projects",
        ],
    },
    "Closing": {
        "Integration Management": [
            "Complete formal project closure activities",
            "Obtain final acceptance of deliverables",
            "Transfer project outputs to operations team",
            "Document lessons learned and best practices",
        ],
        "Procurement Management": [
            "Close all procurement contracts properly",
            "Conduct vendor performance evaluations",
            "Archive procurement documentation",
            "Release project resources back to organization",
        ],
    },
}

_STATUS_PHASE = {
    "planning": "Planning",
    "active": "Executing",
    "on_hold": "Monitoring & Controlling",
    "completed": "Closing",
}

# keyword(s) → knowledge area, checked in this order
_CHALLENGE_AREAS = (
    (("stakeholder",), "Stakeholder Management"),
    (("schedule", "delay"), "Schedule Management"),
    (("risk",), "Risk Management"),
    (("communication",), "Communications Management"),
    (("scope",), "Scope Management"),
)
DEFAULT_AREAS = ("Stakeholder Management", "Communications Management", "Risk Management")
_PROACTIVE_VERBS = ("Establish", "Create", "Develop")

CHECK_IN_PRIORITY = 4
CHALLENGE_PRIORITY = 5


def infer_phase(program) -> str:
    if program is None:
        return "Initiating"
    return _STATUS_PHASE.get(program.status, "Initiating")


def _clean(challenges):
    return [c.strip() for c in (challenges or []) if isinstance(c, str) and c.strip()]


def relevant_knowledge_areas(challenges) -> list[str]:
    """Integration Management plus one area per matched keyword group.

    With no keyword match the stakeholder, communications and risk areas
    are added.
    """
    lowered = [c.lower() for c in _clean(challenges)]
    areas = ["Integration Management"]
    for keywords, area in _CHALLENGE_AREAS:
        if any(k in c for c in lowered for k in keywords):
            areas.append(area)
    if len(areas) == 1:
        areas.extend(DEFAULT_AREAS)
    return areas


def priority_for(practice: str, challenges) -> int:
    """5 when the practice mentions a challenge's leading word, 3 for
    proactive items, 2 otherwise."""
    text = practice.lower()
    for challenge in _clean(challenges):
        if challenge.lower().split()[0] in text:
            return CHALLENGE_PRIORITY
    if any(verb in practice for verb in _PROACTIVE_VERBS):
        return 3
    return 2


def build_recommendations(program, current_phase=None, challenges=None) -> list[dict]:
    """Catalog items for the phase and areas, then the context-specific items."""
    phase = current_phase or infer_phase(program)
    challenges = _clean(challenges)
    items = []
    catalog = BEST_PRACTICES.get(phase, {})
    for area in relevant_knowledge_areas(challenges):
        for practice in catalog.get(area, []):
            items.append({
                "pmp_phase": phase,
                "knowledge_area": area,
                "recommendation": practice,
                "reasoning": f"PMI PMP best practice for {area} during {phase} phase",
                "priority": priority_for(practice, challenges),
            })

    context_phase = infer_phase(program)
    if challenges:
        items.append({
            "pmp_phase": context_phase,
            "knowledge_area": "Risk Management",
            "recommendation": f"Address current challenges: {', '.join(challenges)}. "
                              "Implement risk response strategies.",
            "reasoning": "Context-specific recommendation based on identified challenges",
            "priority": CHALLENGE_PRIORITY,
        })
    items.append({
        "pmp_phase": context_phase,
        "knowledge_area": "Stakeholder Management",
        "recommendation": "Schedule regular stakeholder check-ins to maintain engagement "
                          "and gather feedback",
        "reasoning": "Proactive stakeholder management to prevent issues",
        "priority": CHECK_IN_PRIORITY,
    })
    return items


def generate_for_program(program_id, current_phase=None, challenges=None):
    program = db.session.get(Program, program_id)
    if program is None:
        raise NotFoundError("Program", program_id)
    if current_phase is not None and current_phase not in PMI_PHASES:
        raise ValidationError(
            f"Unknown phase '{current_phase}'.",
            details={"current_phase": sorted(PMI_PHASES)},
        )

    created = []
    for item in build_recommendations(program, current_phase, challenges):
        rec = PmpRecommendation(program_id=program.id, status="pending", **item)
        db.session.add(rec)
        created.append(rec)
    db.session.flush()
    logger.info(
        "PMP recommendations generated",
        extra={"program_id": program.id, "count": len(created)},
    )
    return created


def list_recommendations(program_id=None, status=None):
    q = PmpRecommendation.query
    if program_id is not None:
        q = q.filter_by(program_id=program_id)
    if status:
        q = q.filter_by(status=status)
    return q.order_by(PmpRecommendation.priority.desc(), PmpRecommendation.id)


def get_recommendation(rec_id):
    rec = db.session.get(PmpRecommendation, rec_id)
    if rec is None:
        raise NotFoundError("PmpRecommendation", rec_id)
    return rec


def update_recommendation(rec, data):
    """Apply a status and/or feedback change; ``implemented`` stamps the date."""
    if "status" in data:
        status = data["status"]
        if status not in PMP_RECOMMENDATION_STATUSES:
            raise ValidationError(
                f"Unknown status '{status}'.",
                details={"status": sorted(PMP_RECOMMENDATION_STATUSES)},
            )
        rec.status = status
        if status == "implemented":
            rec.implemented_date = datetime.now(timezone.utc)
    if "feedback" in data:
        rec.feedback = data["feedback"]
    db.session.flush()
    return rec
