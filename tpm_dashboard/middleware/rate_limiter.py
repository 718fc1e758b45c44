"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance
is created in tpm_dashboard/__init__.py with no default limits; this module
applies limits per route category.

Usage:
    from tpm_dashboard.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# Blueprints that fan out to external systems or write many rows
OUTBOUND_BLUEPRINTS = ("escalation", "integration")
WRITE_BLUEPRINTS = ("program", "hierarchy", "risk", "stakeholder", "pmp", "report", "portfolio")
READ_BLUEPRINTS = ("dashboard", "context")


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Outbound (escalations, integrations): RATE_LIMIT_OUTBOUND, default 20/minute
        - CRUD blueprints:                      RATE_LIMIT_WRITE, default 60/minute
        - Dashboard reads:                      RATE_LIMIT_READ, default 200/minute
        - Health check:                         exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    outbound = app.config.get("RATE_LIMIT_OUTBOUND", "20/minute")
    write = app.config.get("RATE_LIMIT_WRITE", "60/minute")
    read = app.config.get("RATE_LIMIT_READ", "200/minute")

    for names, limit in ((OUTBOUND_BLUEPRINTS, outbound),
                         (WRITE_BLUEPRINTS, write),
                         (READ_BLUEPRINTS, read)):
        for bp_name in names:
            bp = app.blueprints.get(bp_name)
            if bp:
                limiter.limit(limit)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — outbound: %s, write: %s, read: %s", outbound, write, read,
    )
