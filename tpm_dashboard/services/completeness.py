"""
Program completeness check.

One canonical, ordered list of required components. Every caller (program
detail, dashboard, gap detection, reports, recommendations) uses it, so a
component is either missing everywhere or nowhere.

The order and names come from ``REQUIRED_COMPONENTS`` and
``HIERARCHY_COMPONENTS`` in scoring_rules; this module only knows how to
test each one.
"""

from __future__ import annotations

from tpm_dashboard.services.health import non_negative_count
from tpm_dashboard.services.scoring_rules import (
    DESCRIPTION_MIN_LENGTH,
    HIERARCHY_COMPONENTS,
    REQUIRED_COMPONENTS,
)
from tpm_dashboard.services.snapshot import CompletenessResult


def has_description(text) -> bool:
    return isinstance(text, str) and len(text.strip()) >= DESCRIPTION_MIN_LENGTH


def _present(value) -> bool:
    return value is not None and value != ""


def _non_empty(values) -> bool:
    if isinstance(values, str):
        return bool(values.strip())
    if not isinstance(values, (list, tuple)):
        return False
    return any(v is not None and str(v).strip() for v in values)


def _at_least_one(source, attr) -> bool:
    return non_negative_count(getattr(source, attr, 0)) >= 1


# component name → check(program, counts)
_PROGRAM_CHECKS = {
    "Description": lambda p, c: has_description(getattr(p, "description", None)),
    "Owner": lambda p, c: _present(getattr(p, "owner_id", None)),
    "Start Date": lambda p, c: _present(getattr(p, "start_date", None)),
    "End Date": lambda p, c: _present(getattr(p, "end_date", None)),
    "Objectives": lambda p, c: _non_empty(getattr(p, "objectives", None)),
    "KPIs": lambda p, c: _non_empty(getattr(p, "kpis", None)),
    "Milestones": lambda p, c: _at_least_one(c, "milestones"),
    "Risks": lambda p, c: _at_least_one(c, "risks"),
    "Dependencies": lambda p, c: _at_least_one(c, "dependencies"),
    "Adopters": lambda p, c: _at_least_one(c, "adopters"),
}

_HIERARCHY_ATTRS = {
    "Milestone Steps": "steps",
    "Business Epics": "bepics",
    "Epics": "epics",
    "Stories": "stories",
}


def component_checks(program, counts) -> list[tuple[str, bool]]:
    """Return ``(component, present)`` pairs in canonical order."""
    checks = [(name, _PROGRAM_CHECKS[name](program, counts)) for name in REQUIRED_COMPONENTS]

    hierarchy = getattr(counts, "hierarchy", None) if counts is not None else None
    if hierarchy is not None:
        checks.extend(
            (name, _at_least_one(hierarchy, _HIERARCHY_ATTRS[name])) for name in HIERARCHY_COMPONENTS
        )
    return checks


def analyze_completeness(program, counts) -> CompletenessResult:
    """Check a program against the required component list.

    Args:
        program: ProgramView or Program row.
        counts: EntityCounts. Hierarchy checks run only when
            ``counts.hierarchy`` is set.

    Returns:
        CompletenessResult; ``missing`` keeps the canonical check order.
    """
    checks = component_checks(program, counts)
    total = len(checks)
    completed = sum(1 for _, present in checks if present)
    missing = tuple(name for name, present in checks if not present)
    percentage = round(100 * completed / total) if total else 100
    return CompletenessResult(
        percentage=percentage,
        completed=completed,
        total=total,
        missing=missing,
    )
