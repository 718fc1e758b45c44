"""
Capability interfaces for outbound channels.

A NotificationSink delivers a NotificationMessage and reports a
DeliveryResult. A TicketingClient creates issues and epics in the ticketing
system and reports the created key. The scoring engine never depends on
either.
"""

from __future__ import annotations

import abc
from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class NotificationMessage:
    title: str
    text: str = ""
    urgency: str = "medium"
    fields: dict = field(default_factory=dict)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one send attempt.

    ``mode`` is "webhook", "smtp", "log_only" or "noop" when delivered.
    """
    channel: str
    delivered: bool
    mode: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TicketResult:
    key: str | None
    issue_type: str
    payload: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


class NotificationSink(abc.ABC):
    channel = "abstract"

    @abc.abstractmethod
    def send(self, message: NotificationMessage) -> DeliveryResult:
        """Deliver ``message``; raise IntegrationError on failure."""


class TicketingClient(abc.ABC):
    name = "abstract"

    @abc.abstractmethod
    def create_issue(self, *, summary: str, description: str = "",
                     severity: str | None = None) -> TicketResult:
        """Create an issue (used for risks)."""

    @abc.abstractmethod
    def create_epic(self, *, summary: str, description: str = "",
                    due_date: str | None = None) -> TicketResult:
        """Create an epic (used for milestones)."""

    @abc.abstractmethod
    def search_risk_issues(self) -> list[dict]:
        """Return risk issues as ``{key, summary, description, priority, program_id}`` dicts."""
