"""Shared utility functions used across blueprints.

get_or_404:          tuple-return lookup (obj, err)
parse_date:          returns None on bad input
db_commit_or_error:  commit with uniform rollback + JSON error
"""
import logging
from datetime import date, datetime

from flask import jsonify

from tpm_dashboard.models import db

logger = logging.getLogger(__name__)


def get_or_404(model, pk, label=None):
    """Fetch a model instance by primary key or return a 404 error tuple.

    - Success: (obj, None)
    - Failure: (None, (jsonify_response, 404))

    Usage:
        obj, err = get_or_404(Program, pid)
        if err:
            return err
    """
    label = label or model.__name__
    obj = db.session.get(model, pk)
    if not obj:
        return None, (jsonify({"error": f"{label} not found", "code": "ERR_NOT_FOUND"}), 404)
    return obj, None


def parse_date(value):
    """Parse a date string to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


# ── Database commit helper ───────────────────────────────────────────────────

def db_commit_or_error():
    """Commit the current SQLAlchemy session, returning an error response on failure.

    Returns:
        None on success.
        (response, status_code) tuple on failure, ready for ``return``.

    IntegrityError → 409 (duplicate / constraint violation)
    OperationalError → 500 (connection / lock issues)
    Other → 500 (unexpected)
    """
    from sqlalchemy.exc import IntegrityError, OperationalError

    try:
        db.session.commit()
        return None
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        return jsonify({"error": "Duplicate or constraint violation"}), 409
    except OperationalError:
        db.session.rollback()
        logger.exception("Database operational error on commit")
        return jsonify({"error": "Database error"}), 500
    except Exception:
        db.session.rollback()
        logger.exception("Unexpected database error on commit")
        return jsonify({"error": "Database error"}), 500


# ── Request validation helpers ───────────────────────────────────────────────

def invalid_choice(data, field, allowed):
    """Return an error message when ``data[field]`` is present but not allowed.

    Usage:
        msg = invalid_choice(data, "status", PROGRAM_STATUSES)
        if msg:
            return api_error(E.VALIDATION_INVALID, msg)
    """
    if field not in data or data[field] is None:
        return None
    if not isinstance(data[field], str) or data[field] not in allowed:
        return f"Invalid {field}: {data[field]!r}. Must be one of {sorted(allowed)}"
    return None


def invalid_range(data, field, low, high):
    """Return an error message when ``data[field]`` is present but not an int in [low, high]."""
    if field not in data or data[field] is None:
        return None
    value = data[field]
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        return f"{field} must be an integer between {low} and {high}"
    return None
