"""
TPM Dashboard
Flask Application Factory.

Usage:
    from tpm_dashboard import create_app
    app = create_app()           # defaults to APP_ENV, then "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from tpm_dashboard.config import config
from tpm_dashboard.middleware.logging_config import configure_logging
from tpm_dashboard.middleware.rate_limiter import init_rate_limits
from tpm_dashboard.middleware.timing import init_request_timing
from tpm_dashboard.models import db

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # no global limit, applied per blueprint
)


def _register_blueprints(app):
    from tpm_dashboard.blueprints.context_bp import context_bp
    from tpm_dashboard.blueprints.dashboard_bp import dashboard_bp
    from tpm_dashboard.blueprints.escalation_bp import escalation_bp
    from tpm_dashboard.blueprints.health_bp import health_bp
    from tpm_dashboard.blueprints.hierarchy_bp import hierarchy_bp
    from tpm_dashboard.blueprints.integration_bp import integration_bp
    from tpm_dashboard.blueprints.pmp_bp import pmp_bp
    from tpm_dashboard.blueprints.portfolio_bp import portfolio_bp
    from tpm_dashboard.blueprints.program_bp import program_bp
    from tpm_dashboard.blueprints.report_bp import report_bp
    from tpm_dashboard.blueprints.risk_bp import risk_bp
    from tpm_dashboard.blueprints.stakeholder_bp import stakeholder_bp

    for bp in (
        program_bp, hierarchy_bp, risk_bp, dashboard_bp, escalation_bp,
        integration_bp, stakeholder_bp, pmp_bp, report_bp, portfolio_bp,
        context_bp, health_bp,
    ):
        app.register_blueprint(bp)


def _register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return {"error": "Not found", "code": "ERR_NOT_FOUND", "path": request.path}, 404
        return "Not found", 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "code": "ERR_RATE_LIMITED",
                "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        if request.path.startswith("/api/"):
            return {"error": "Internal server error", "code": "ERR_INTERNAL"}, 500
        return "Internal Server Error", 500


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and \
            ":memory:" not in app.config["SQLALCHEMY_DATABASE_URI"]:
        db_dir = os.path.dirname(app.config["SQLALCHEMY_DATABASE_URI"][len("sqlite:///"):])
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from tpm_dashboard.models import escalation as _escalation_models        # noqa: F401
    from tpm_dashboard.models import hierarchy as _hierarchy_models          # noqa: F401
    from tpm_dashboard.models import integration as _integration_models      # noqa: F401
    from tpm_dashboard.models import portfolio as _portfolio_models          # noqa: F401
    from tpm_dashboard.models import program as _program_models              # noqa: F401
    from tpm_dashboard.models import recommendation as _recommendation_models  # noqa: F401
    from tpm_dashboard.models import report as _report_models                # noqa: F401
    from tpm_dashboard.models import risk as _risk_models                    # noqa: F401
    from tpm_dashboard.models import stakeholder as _stakeholder_models      # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        try:
            db.create_all()
            app.logger.info("db.create_all() completed successfully")
        except Exception as e:
            app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints & error handlers ──────────────────────────────────────
    _register_blueprints(app)
    _register_error_handlers(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("detect-gaps")
    def detect_gaps_cmd():
        """Run gap detection for every program and commit the generated risks."""
        from tpm_dashboard.services.gap_detection import detect_all_gaps
        results = detect_all_gaps()
        db.session.commit()
        created = sum(len(r["created"]) for r in results)
        logger.info("Gap detection: %s program(s), %s risk(s) created.", len(results), created)

    return app
