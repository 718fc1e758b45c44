"""
Ticketing clients.

JiraClient is a deterministic stand-in for the Jira REST API: it builds the
issue payload a real call would send and returns sequential keys
(``<PROJECT_KEY>-<n>`` for epics, ``RISK-<n>`` for issues). Counters live in
the integration row's ``config`` so keys stay unique across restarts, and
``config["risk_issues"]`` stands in for the remote issue search; the
caller owns the commit.
"""

from __future__ import annotations

import logging

from tpm_dashboard.integrations.base import TicketingClient, TicketResult

logger = logging.getLogger(__name__)

SEVERITY_TO_PRIORITY = {
    "critical": "Highest",
    "high": "High",
    "medium": "Medium",
    "low": "Low",
}
DEFAULT_PRIORITY = "Medium"
RISK_KEY_PREFIX = "RISK"

PRIORITY_TO_SEVERITY = {v.lower(): k for k, v in SEVERITY_TO_PRIORITY.items()}
PRIORITY_TO_SEVERITY["lowest"] = "low"


def map_severity_to_priority(severity) -> str:
    if not isinstance(severity, str):
        return DEFAULT_PRIORITY
    return SEVERITY_TO_PRIORITY.get(severity.strip().lower(), DEFAULT_PRIORITY)


def map_priority_to_severity(priority) -> str:
    if not isinstance(priority, str):
        return "medium"
    return PRIORITY_TO_SEVERITY.get(priority.strip().lower(), "medium")


class JiraClient(TicketingClient):
    name = "jira"

    def __init__(self, integration, project_key: str = "PROJ") -> None:
        self.integration = integration
        self.project_key = project_key

    def _next_number(self, counter: str) -> int:
        config = dict(self.integration.config or {})
        number = int(config.get(counter, 0)) + 1
        config[counter] = number
        # reassign so the JSON column is flagged dirty
        self.integration.config = config
        return number

    def create_issue(self, *, summary: str, description: str = "",
                     severity: str | None = None) -> TicketResult:
        payload = {
            "summary": summary,
            "description": description or "",
            "priority": map_severity_to_priority(severity),
            "issuetype": "Task",
        }
        key = f"{RISK_KEY_PREFIX}-{self._next_number('issue_counter')}"
        logger.info("Jira issue created (mock): %s %s", key, payload["priority"])
        return TicketResult(key=key, issue_type="Task", payload=payload)

    def create_epic(self, *, summary: str, description: str = "",
                    due_date: str | None = None) -> TicketResult:
        payload = {
            "project": self.project_key,
            "summary": summary,
            "description": description or "",
            "duedate": due_date,
            "issuetype": "Epic",
        }
        key = f"{self.project_key}-{self._next_number('epic_counter')}"
        logger.info("Jira epic created (mock): %s", key)
        return TicketResult(key=key, issue_type="Epic", payload=payload)

    def search_risk_issues(self) -> list[dict]:
        """Read the mocked issue store, ``config["risk_issues"]``.

        Entries without a key or summary are skipped; ``program_id`` is
        optional and scopes an issue to one program.
        """
        issues = []
        for raw in (self.integration.config or {}).get("risk_issues") or []:
            if not isinstance(raw, dict) or not raw.get("key") or not raw.get("summary"):
                continue
            issues.append({
                "key": str(raw["key"]),
                "summary": str(raw["summary"]),
                "description": raw.get("description") or "",
                "priority": raw.get("priority") or DEFAULT_PRIORITY,
                "program_id": raw.get("program_id"),
            })
        logger.info("Jira risk search (mock): %d issues", len(issues))
        return issues


class NoopTicketingClient(TicketingClient):
    """Creates nothing and returns no key. Used when ticketing is disabled."""

    name = "noop"

    def create_issue(self, *, summary: str, description: str = "",
                     severity: str | None = None) -> TicketResult:
        logger.debug("Ticketing disabled, skipped issue: %s", summary)
        return TicketResult(key=None, issue_type="Task")

    def create_epic(self, *, summary: str, description: str = "",
                    due_date: str | None = None) -> TicketResult:
        logger.debug("Ticketing disabled, skipped epic: %s", summary)
        return TicketResult(key=None, issue_type="Epic")

    def search_risk_issues(self) -> list[dict]:
        return []
