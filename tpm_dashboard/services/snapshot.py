"""
Immutable snapshot views consumed by the scoring engine.

The health, completeness and recommendation functions never touch the ORM.
Callers copy the rows they loaded into these frozen dataclasses (tuples for
collections) so a session refresh or concurrent write cannot change the data
mid-computation.

``from_model`` constructors only read attributes, so they accept ORM rows,
other views, or any object with the same attribute names.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date


def _tuple(value) -> tuple:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


# ═════════════════════════════════════════════════════════════════════════════
# Entity views
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProgramView:
    id: int | None
    name: str = ""
    description: str | None = None
    status: str | None = None
    owner_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    objectives: tuple = ()
    kpis: tuple = ()

    @classmethod
    def from_model(cls, obj) -> "ProgramView":
        return cls(
            id=getattr(obj, "id", None),
            name=getattr(obj, "name", "") or "",
            description=getattr(obj, "description", None),
            status=getattr(obj, "status", None),
            owner_id=getattr(obj, "owner_id", None),
            start_date=getattr(obj, "start_date", None),
            end_date=getattr(obj, "end_date", None),
            objectives=_tuple(getattr(obj, "objectives", None)),
            kpis=_tuple(getattr(obj, "kpis", None)),
        )


@dataclass(frozen=True)
class RiskView:
    id: int | None = None
    program_id: int | None = None
    title: str = ""
    severity: str | None = None
    status: str | None = None
    impact: int | None = None
    probability: int | None = None
    due_date: date | None = None

    @classmethod
    def from_model(cls, obj) -> "RiskView":
        return cls(
            id=getattr(obj, "id", None),
            program_id=getattr(obj, "program_id", None),
            title=getattr(obj, "title", "") or "",
            severity=getattr(obj, "severity", None),
            status=getattr(obj, "status", None),
            impact=getattr(obj, "impact", None),
            probability=getattr(obj, "probability", None),
            due_date=getattr(obj, "due_date", None),
        )


@dataclass(frozen=True)
class MilestoneView:
    id: int | None = None
    program_id: int | None = None
    title: str = ""
    status: str | None = None
    due_date: date | None = None
    owner_id: str | None = None

    @classmethod
    def from_model(cls, obj) -> "MilestoneView":
        return cls(
            id=getattr(obj, "id", None),
            program_id=getattr(obj, "program_id", None),
            title=getattr(obj, "title", "") or "",
            status=getattr(obj, "status", None),
            due_date=getattr(obj, "due_date", None),
            owner_id=getattr(obj, "owner_id", None),
        )


@dataclass(frozen=True)
class DependencyView:
    id: int | None = None
    program_id: int | None = None
    title: str = ""
    status: str | None = None
    owner_id: str | None = None

    @classmethod
    def from_model(cls, obj) -> "DependencyView":
        return cls(
            id=getattr(obj, "id", None),
            program_id=getattr(obj, "program_id", None),
            title=getattr(obj, "title", "") or "",
            status=getattr(obj, "status", None),
            owner_id=getattr(obj, "owner_id", None),
        )


@dataclass(frozen=True)
class AdopterView:
    id: int | None = None
    program_id: int | None = None
    team_name: str = ""
    status: str | None = None
    readiness_score: int | None = None

    @classmethod
    def from_model(cls, obj) -> "AdopterView":
        return cls(
            id=getattr(obj, "id", None),
            program_id=getattr(obj, "program_id", None),
            team_name=getattr(obj, "team_name", "") or "",
            status=getattr(obj, "status", None),
            readiness_score=getattr(obj, "readiness_score", None),
        )


# ═════════════════════════════════════════════════════════════════════════════
# Aggregates
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class HierarchyCounts:
    """Counts of the mirrored delivery hierarchy below a program's milestones."""
    steps: int = 0
    bepics: int = 0
    epics: int = 0
    stories: int = 0


@dataclass(frozen=True)
class EntityCounts:
    """Related-entity counts for the completeness check.

    ``hierarchy`` is None when the mirrored hierarchy is not in use; the
    extended checks only run when it is supplied.
    """
    milestones: int = 0
    risks: int = 0
    dependencies: int = 0
    adopters: int = 0
    hierarchy: HierarchyCounts | None = None


@dataclass(frozen=True)
class RelatedEntities:
    """Everything loaded for one program."""
    risks: tuple = ()
    milestones: tuple = ()
    dependencies: tuple = ()
    adopters: tuple = ()
    hierarchy: HierarchyCounts | None = None

    def counts(self) -> EntityCounts:
        return EntityCounts(
            milestones=len(self.milestones),
            risks=len(self.risks),
            dependencies=len(self.dependencies),
            adopters=len(self.adopters),
            hierarchy=self.hierarchy,
        )

    def health_snapshot(self, missing_components: int) -> "HealthSnapshot":
        return HealthSnapshot(
            risks=self.risks,
            milestones=self.milestones,
            dependencies=self.dependencies,
            adopters=self.adopters,
            missing_components=missing_components,
        )


@dataclass(frozen=True)
class HealthSnapshot:
    risks: tuple = ()
    milestones: tuple = ()
    dependencies: tuple = ()
    adopters: tuple = ()
    missing_components: int = 0


# ═════════════════════════════════════════════════════════════════════════════
# Results
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class HealthBreakdown:
    critical_risks: int = 0
    overdue_milestones: int = 0
    blocked_dependencies: int = 0
    missing_components: int = 0


@dataclass(frozen=True)
class HealthMetrics:
    score: int
    status: str
    color: str
    breakdown: HealthBreakdown = field(default_factory=HealthBreakdown)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CompletenessResult:
    percentage: int
    completed: int
    total: int
    missing: tuple = ()

    def to_dict(self) -> dict:
        return {
            "percentage": self.percentage,
            "completed": self.completed,
            "total": self.total,
            "missing": list(self.missing),
        }


@dataclass(frozen=True)
class Recommendation:
    category: str
    title: str
    description: str
    pmi_reference: str
    priority: str
    program_id: int | None = None
    program_name: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)
