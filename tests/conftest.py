"""
Shared pytest fixtures for the TPM Dashboard test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - program: Pre-created Program via the API
    - http_session: Fake requests.Session installed for outbound webhooks
"""

import pytest
import requests

from tpm_dashboard import create_app
from tpm_dashboard.middleware.timing import reset_metrics
from tpm_dashboard.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()
    app.extensions.pop("http_session", None)
    reset_metrics()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def program(client):
    """Create and return a test Program via the API."""
    res = client.post("/api/v1/programs", json={"name": "Test Program", "status": "active"})
    assert res.status_code == 201
    return res.get_json()


class FakeResponse:
    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Records webhook POSTs instead of sending them."""

    def __init__(self, status_code=200, fail_with=None):
        self.status_code = status_code
        self.fail_with = fail_with
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.fail_with is not None:
            raise self.fail_with
        return FakeResponse(self.status_code)


@pytest.fixture()
def http_session(app):
    """Install a FakeSession where the escalation endpoint looks for one."""
    fake = FakeSession()
    app.extensions["http_session"] = fake
    return fake


@pytest.fixture()
def connect(client):
    """Register a connected integration: ``connect("slack", webhook_url=...)``."""
    def _connect(name, **fields):
        res = client.post("/api/v1/integrations", json={"name": name, "status": "connected", **fields})
        assert res.status_code == 201, res.get_json()
        return res.get_json()
    return _connect


@pytest.fixture()
def fake_session():
    """The FakeSession class, for tests that build sinks directly."""
    return FakeSession
