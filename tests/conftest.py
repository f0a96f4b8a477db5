"""
Shared pytest fixtures for the onboarding CRM test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user / auth_headers: user factory and bearer token helper
    - super_admin, team_member: ready-made staff users
    - make_client: create a Client with its empty compliance/console rows
"""

from datetime import datetime, timezone

import pytest

from app import create_app
from app.models import db as _db
from app.models.auth import ROLE_SUPER_ADMIN, ROLE_TEAM_MEMBER, User
from app.models.client import Client, ComplianceDocument, PlayConsoleStatus
from app.services.jwt_service import generate_access_token
from app.utils.crypto import hash_password

DEFAULT_PASSWORD = "Passw0rd!23"


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


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Users & tokens ───────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Factory: ``make_user(role, email=None, name=None, client_id=None, is_active=True)``."""
    counter = {"n": 0}

    def _make(role=ROLE_TEAM_MEMBER, *, email=None, name=None, client_id=None,
              is_active=True, password=DEFAULT_PASSWORD):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role.lower()}{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
            client_id=client_id,
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


def _bearer(user):
    token = generate_access_token(user.id, user.role, user.client_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers():
    """``auth_headers(user)`` -> Authorization header dict."""
    return _bearer


@pytest.fixture()
def super_admin(make_user):
    return make_user(ROLE_SUPER_ADMIN, email="admin@example.com", name="Admin")


@pytest.fixture()
def team_member(make_user):
    return make_user(ROLE_TEAM_MEMBER, email="member@example.com", name="Team Member")


# ── Clients ──────────────────────────────────────────────────────────────


@pytest.fixture()
def make_client():
    """Factory: ORM-level client with empty compliance and Play Console rows."""
    counter = {"n": 0}

    def _make(owner=None, *, created_at=None, **fields):
        counter["n"] += 1
        n = counter["n"]
        client = Client(
            legal_name=fields.pop("legal_name", f"Client {n}"),
            pan_number=fields.pop("pan_number", f"ABCDE{1000 + n:04d}F"),
            company_type=fields.pop("company_type", "PVT_LTD"),
            email=fields.pop("email", f"client{n}@example.com"),
            created_by_id=owner.id if owner else None,
            created_at=created_at or datetime.now(timezone.utc),
            **fields,
        )
        client.compliance = ComplianceDocument(msme_status="NOT_CREATED",
                                               duns_status="NOT_CREATED")
        client.play_console = PlayConsoleStatus()
        _db.session.add(client)
        _db.session.commit()
        return client

    return _make
