"""
Stakeholder Management Service.

Business logic for stakeholder tracking, the power/interest grid, stakeholder
completeness for a program, PMI next actions, and rule-based response
prediction with accuracy feedback.

Functions:
    - engagement_category:        Power/interest grid placement (1-5 levels)
    - create/update/delete_stakeholder
    - stakeholder_analysis:       Grid, completeness and next actions for a program
    - predict_response:           Predict a response and record it as an interaction
    - record_actual_response:     Score a prediction and update the rolling score
    - get_insights:               Recent interactions, accuracy and guidance

Transaction policy: flush() only; the route handler commits.
"""

import logging
import re

from tpm_dashboard.core.exceptions import NotFoundError, ValidationError
from tpm_dashboard.models import db
from tpm_dashboard.models.stakeholder import Stakeholder, StakeholderInteraction

logger = logging.getLogger(__name__)


# ── Style reference tables ───────────────────────────────────────────────────

LEADERSHIP_STYLE_PROFILES: dict[str, dict] = {
    "Autocratic": {
        "communication_preferences": ["Brief updates", "Clear recommendations", "Direct communication"],
        "decision_patterns": ["make quick decisions", "prefer options with clear outcomes"],
        "response_time": "Fast",
        "preferred_format": "Executive summary",
    },
    "Democratic": {
        "communication_preferences": ["Team discussions", "Multiple perspectives", "Collaborative meetings"],
        "decision_patterns": ["seek input", "weigh multiple options"],
        "response_time": "Moderate",
        "preferred_format": "Detailed analysis with options",
    },
    "Laissez-faire": {
        "communication_preferences": ["High-level updates", "Exception reporting", "Minimal meetings"],
        "decision_patterns": ["delegate decisions", "intervene minimally"],
        "response_time": "Variable",
        "preferred_format": "Brief status updates",
    },
    "Transformational": {
        "communication_preferences": ["Strategic discussions", "Vision alignment", "Innovation focus"],
        "decision_patterns": ["think strategically", "take a long-term view"],
        "response_time": "Thoughtful",
        "preferred_format": "Strategic impact analysis",
    },
    "Transactional": {
        "communication_preferences": ["Metrics and KPIs", "Performance data", "Clear deliverables"],
        "decision_patterns": ["decide on data", "focus on ROI"],
        "response_time": "Systematic",
        "preferred_format": "Data-driven reports",
    },
}

COMMUNICATION_STYLE_PROFILES: dict[str, dict] = {
    "Direct": {
        "approach": "straightforward, factual",
        "preferences": ["Clear action items", "Bottom-line up front"],
        "avoidances": ["Lengthy explanations", "Ambiguous language"],
    },
    "Analytical": {
        "approach": "data-focused, systematic",
        "preferences": ["Supporting data", "Thorough analysis"],
        "avoidances": ["Emotional appeals", "Incomplete information"],
    },
    "Expressive": {
        "approach": "relationship-focused, big-picture",
        "preferences": ["Stories and examples", "Visual presentations"],
        "avoidances": ["Too much detail", "Impersonal communication"],
    },
    "Amiable": {
        "approach": "supportive, team-oriented",
        "preferences": ["Consensus building", "Team impact consideration"],
        "avoidances": ["Aggressive tactics", "Rushed timelines"],
    },
}

INTERACTION_GUIDANCE: dict[str, list[str]] = {
    "escalation": [
        "Prepare clear action items and timeline",
        "Have solution options ready",
        "Include impact assessment",
    ],
    "decision": [
        "Provide clear recommendation with rationale",
        "Include risk analysis",
        "Present options with pros/cons",
    ],
    "status_update": [
        "Focus on key metrics and progress",
        "Highlight any risks or blockers",
        "Include next steps and timeline",
    ],
}


# ── Power / interest grid ────────────────────────────────────────────────────

_GRID: dict[tuple[bool, bool], tuple[str, str]] = {
    (True, True): ("Manage Closely", "Critical"),
    (True, False): ("Keep Satisfied", "High"),
    (False, True): ("Keep Informed", "Medium"),
    (False, False): ("Monitor", "Low"),
}
GRID_CATEGORIES = ("Manage Closely", "Keep Satisfied", "Keep Informed", "Monitor")
HIGH_LEVEL = 4


def engagement_category(influence_level, support_level) -> dict:
    """Place a stakeholder on the power/interest grid.

    Missing levels count as 1. Level ≥ 4 counts as high on that axis.
    """
    power = influence_level or 1
    interest = support_level or 1
    category, priority = _GRID[(power >= HIGH_LEVEL, interest >= HIGH_LEVEL)]
    return {"category": category, "priority": priority}


# ── CRUD ─────────────────────────────────────────────────────────────────────

_FIELDS = (
    "name", "email", "role", "department", "leadership_style", "communication_style",
    "decision_making_style", "influence_level", "support_level",
    "preferred_communication", "response_patterns",
)


def get_stakeholder(stakeholder_id):
    stakeholder = db.session.get(Stakeholder, stakeholder_id)
    if stakeholder is None:
        raise NotFoundError("Stakeholder", stakeholder_id)
    return stakeholder


def list_stakeholders(program_id):
    return Stakeholder.query.filter_by(program_id=program_id).order_by(Stakeholder.name).all()


def create_stakeholder(program_id, data):
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Stakeholder name is required.", details={"name": "required"})
    stakeholder = Stakeholder(program_id=program_id)
    for field in _FIELDS:
        if field in data:
            setattr(stakeholder, field, data[field])
    stakeholder.name = name[:200]
    db.session.add(stakeholder)
    db.session.flush()
    logger.info(
        "Stakeholder created",
        extra={"program_id": program_id, "stakeholder_id": stakeholder.id},
    )
    return stakeholder


def update_stakeholder(stakeholder, data):
    for field in _FIELDS:
        if field in data:
            setattr(stakeholder, field, data[field])
    if not (stakeholder.name or "").strip():
        raise ValidationError("Stakeholder name is required.", details={"name": "required"})
    db.session.flush()
    return stakeholder


def delete_stakeholder(stakeholder):
    db.session.delete(stakeholder)
    db.session.flush()


# ── Program-level analysis ───────────────────────────────────────────────────

STAKEHOLDER_REQUIREMENTS_TOTAL = 7
MIN_STAKEHOLDERS_FOR_MAPPING = 3


def stakeholder_completeness(stakeholders) -> dict:
    """Score stakeholder management against seven PMI requirements."""
    if not stakeholders:
        return {
            "percentage": 0,
            "completed": 0,
            "total": STAKEHOLDER_REQUIREMENTS_TOTAL,
            "missing": ["Stakeholder identification"],
        }

    checks = [
        ("Stakeholder identification", True),
        ("Role definitions", any(s.role for s in stakeholders)),
        ("Influence level assessment", any(s.influence_level for s in stakeholders)),
        ("Support level evaluation", any(s.support_level for s in stakeholders)),
        ("Leadership style analysis", any(s.leadership_style for s in stakeholders)),
        ("Communication preferences", any(s.preferred_communication for s in stakeholders)),
        ("Comprehensive stakeholder mapping", len(stakeholders) >= MIN_STAKEHOLDERS_FOR_MAPPING),
    ]
    completed = sum(1 for _, ok in checks if ok)
    return {
        "percentage": round(100 * completed / STAKEHOLDER_REQUIREMENTS_TOTAL),
        "completed": completed,
        "total": STAKEHOLDER_REQUIREMENTS_TOTAL,
        "missing": [name for name, ok in checks if not ok],
    }


def next_actions(stakeholders) -> list[dict]:
    actions = []
    if not stakeholders:
        actions.append({
            "priority": "Critical",
            "action": "Conduct stakeholder identification workshop",
            "description": "Use brainstorming and analysis techniques to identify all stakeholders.",
            "due": "Immediate",
            "pmi_basis": "PMBOK Stakeholder Management - Identify Stakeholders process",
        })
    if len(stakeholders) < MIN_STAKEHOLDERS_FOR_MAPPING:
        actions.append({
            "priority": "High",
            "action": "Complete stakeholder mapping",
            "description": "Make sure sponsors, users and vendors are all represented.",
            "due": "Within 1 week",
            "pmi_basis": "PMI Standard for Project Management - Stakeholder engagement",
        })
    missing_influence = sum(1 for s in stakeholders if not s.influence_level)
    if missing_influence:
        actions.append({
            "priority": "High",
            "action": f"Assess influence levels for {missing_influence} stakeholder(s)",
            "description": "Rate stakeholder power on a 1-5 scale to pick an engagement strategy.",
            "due": "Within 3 days",
            "pmi_basis": "PMI Power/Interest Grid methodology",
        })
    missing_comm = sum(1 for s in stakeholders if not s.preferred_communication)
    if missing_comm:
        actions.append({
            "priority": "Medium",
            "action": f"Define communication preferences for {missing_comm} stakeholder(s)",
            "description": "Document preferred communication methods and frequency.",
            "due": "Within 1 week",
            "pmi_basis": "PMBOK Communications Management integration",
        })
    return actions


def stakeholder_analysis(program_id) -> dict:
    stakeholders = list_stakeholders(program_id)
    grid = {category: [] for category in GRID_CATEGORIES}
    for s in stakeholders:
        placement = engagement_category(s.influence_level, s.support_level)
        grid[placement["category"]].append({"id": s.id, "name": s.name, **placement})
    return {
        "program_id": program_id,
        "stakeholders": [s.to_dict() for s in stakeholders],
        "grid": grid,
        "completeness": stakeholder_completeness(stakeholders),
        "next_actions": next_actions(stakeholders),
    }


# ── Prediction ───────────────────────────────────────────────────────────────


def guidance(stakeholder, interaction_type) -> list[str]:
    """Tailored engagement guidance for one interaction type."""
    recs = []
    leadership = LEADERSHIP_STYLE_PROFILES.get(stakeholder.leadership_style or "")
    communication = COMMUNICATION_STYLE_PROFILES.get(stakeholder.communication_style or "")
    if leadership:
        recs.append(f"Communication approach: {', '.join(leadership['communication_preferences'])}")
        recs.append(f"Present information in: {leadership['preferred_format']}")
    if communication:
        recs.append(f"Use a {communication['approach']} approach")
        recs.append(f"Include: {', '.join(communication['preferences'])}")
        recs.append(f"Avoid: {', '.join(communication['avoidances'])}")
    recs.extend(INTERACTION_GUIDANCE.get((interaction_type or "").lower(), []))
    return recs


def _concern_history(stakeholder) -> bool:
    for interaction in stakeholder.interactions:
        actual = (interaction.actual_response or "").lower()
        if "concern" in actual or "risk" in actual:
            return True
    return False


def predicted_text(stakeholder, interaction_type) -> str:
    leadership = LEADERSHIP_STYLE_PROFILES.get(stakeholder.leadership_style or "")
    communication = COMMUNICATION_STYLE_PROFILES.get(stakeholder.communication_style or "")
    kind = (interaction_type or "").lower()

    text = (
        f"Based on {stakeholder.name}'s {stakeholder.leadership_style or 'unassessed'} leadership "
        f"style and {stakeholder.communication_style or 'unassessed'} communication approach, "
    )
    if kind == "decision" and leadership:
        text += f"they will likely {' and '.join(leadership['decision_patterns'])}. "
        text += f"Expect {leadership['response_time'].lower()} decision-making. "
    elif kind == "escalation" and stakeholder.leadership_style == "Autocratic":
        text += "they will want immediate action items and clear resolution steps. "
    elif kind == "escalation" and stakeholder.leadership_style == "Democratic":
        text += "they will want to understand team impact and seek input on resolution. "
    elif kind == "status_update" and communication:
        text += f"they prefer {' and '.join(communication['preferences']).lower()}. "
        text += f"Avoid {' and '.join(communication['avoidances']).lower()}. "
    else:
        text += "they will respond according to their established patterns. "

    if _concern_history(stakeholder):
        text += "Historically, they have shown concern about similar situations. "
    return text.strip()


def prediction_confidence(stakeholder) -> float:
    """50 base, +20 with response patterns, +0.3 × predictive score,
    +15 when both styles are known; clamped to [0, 100]."""
    confidence = 50.0
    if stakeholder.response_patterns:
        confidence += 20
    if stakeholder.predictive_score:
        confidence += float(stakeholder.predictive_score) * 0.3
    if stakeholder.leadership_style and stakeholder.communication_style:
        confidence += 15
    return max(0.0, min(100.0, confidence))


def predict_response(stakeholder, interaction_type, context="", program_id=None):
    """Predict a response and store it as a pending interaction.

    Returns:
        (interaction, {"predicted_response", "confidence", "recommendations"})
    """
    prediction = {
        "predicted_response": predicted_text(stakeholder, interaction_type),
        "confidence": round(prediction_confidence(stakeholder), 2),
        "recommendations": guidance(stakeholder, interaction_type),
    }
    interaction = StakeholderInteraction(
        stakeholder_id=stakeholder.id,
        program_id=program_id or stakeholder.program_id,
        interaction_type=interaction_type,
        context=context or "",
        predicted_response=prediction["predicted_response"],
        recommendations=prediction["recommendations"],
    )
    db.session.add(interaction)
    db.session.flush()
    return interaction, prediction


_WORD_SPLIT = re.compile(r"\s+")


def prediction_accuracy(predicted: str, actual: str) -> float:
    """Share of predicted words found in the actual response, 0-100.

    Divides by the longer of the two word lists.
    """
    predicted_words = [w for w in _WORD_SPLIT.split(predicted.lower().strip()) if w]
    actual_words = [w for w in _WORD_SPLIT.split(actual.lower().strip()) if w]
    denominator = max(len(predicted_words), len(actual_words))
    if denominator == 0:
        return 0.0
    actual_set = set(actual_words)
    matches = sum(1 for w in predicted_words if w in actual_set)
    return matches / denominator * 100


def get_interaction(interaction_id):
    interaction = db.session.get(StakeholderInteraction, interaction_id)
    if interaction is None:
        raise NotFoundError("StakeholderInteraction", interaction_id)
    return interaction


def record_actual_response(interaction, actual_response):
    """Store the actual response and fold its accuracy into the stakeholder's
    predictive score as ``0.8 × old + 0.2 × accuracy``."""
    interaction.actual_response = actual_response
    if interaction.predicted_response:
        accuracy = round(prediction_accuracy(interaction.predicted_response, actual_response), 2)
        interaction.accuracy = accuracy
        stakeholder = interaction.stakeholder
        current = float(stakeholder.predictive_score or 0)
        stakeholder.predictive_score = round(current * 0.8 + accuracy * 0.2, 2)
    db.session.flush()
    return interaction


RECENT_INTERACTIONS = 10


def get_insights(stakeholder) -> dict:
    recent = stakeholder.interactions.limit(RECENT_INTERACTIONS).all()
    return {
        "stakeholder": stakeholder.to_dict(),
        "engagement": engagement_category(stakeholder.influence_level, stakeholder.support_level),
        "recent_interactions": [i.to_dict() for i in recent],
        "predictive_accuracy": float(stakeholder.predictive_score or 0),
        "recommendations": guidance(stakeholder, "general"),
    }
