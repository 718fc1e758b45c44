"""
Dashboard-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and map them to consistent HTTP status codes.

Usage:
    from tpm_dashboard.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Program", resource_id=42)
    raise ValidationError("title is required", details={"title": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Maps to HTTP 404.

    Args:
        resource: Human-readable entity name (e.g. "Program", "Risk").
        resource_id: The PK that was looked up. Included in logs and message.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when well-formed input violates a business rule.

    Maps to HTTP 422. Malformed request bodies are rejected with 400 in the
    blueprint before reaching the service layer.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown keyed by field name.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


class IntegrationError(Exception):
    """Raised when an outbound integration call fails.

    Maps to HTTP 502 when it reaches a blueprint. Escalation fan-out catches
    it per channel and records the failure instead.

    Args:
        channel: Integration name ("slack", "teams", "email", "jira").
        message: What went wrong.
    """

    def __init__(self, channel: str, message: str) -> None:
        self.channel = channel
        super().__init__(f"{channel}: {message}")


class IntegrationNotConfiguredError(IntegrationError):
    """Raised when a channel's integration row is missing or not connected."""

    def __init__(self, channel: str, status: str | None = None) -> None:
        self.status = status
        detail = "not configured" if status is None else f"status is {status!r}"
        super().__init__(channel, detail)
