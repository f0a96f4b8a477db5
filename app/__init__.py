"""
App-store onboarding CRM
Flask Application Factory.

Usage:
    from app import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from app.config import config
from app.core.exceptions import (
    AlreadyReleasedError,
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotEligibleError,
    NotFoundError,
    ValidationError,
    WrongPasswordError,
)
from app.models import db
from app.middleware.logging_config import configure_logging
from app.middleware.timing import init_request_timing
from app.middleware.rate_limiter import client_ip, init_rate_limits
from app.middleware.jwt_auth import init_jwt_middleware
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=client_ip,
    default_limits=[],                     # no global limit - apply per-blueprint
)


def _register_error_handlers(app):
    """One JSON error shape for every blueprint."""

    @app.errorhandler(AuthenticationError)
    def _unauthenticated(e):
        logger.info("Unauthenticated: %s", e.reason)
        return api_error(E.UNAUTHENTICATED, "Authentication required")

    @app.errorhandler(ForbiddenError)
    def _forbidden(e):
        logger.warning("Forbidden: %s", e.reason)
        return api_error(E.FORBIDDEN, "Access denied")

    @app.errorhandler(ValidationError)
    def _validation(e):
        return api_error(E.VALIDATION_INVALID, str(e), details=e.details)

    @app.errorhandler(WrongPasswordError)
    def _wrong_password(e):
        return api_error(E.WRONG_PASSWORD, str(e), details=e.details)

    @app.errorhandler(NotFoundError)
    def _not_found(e):
        return api_error(E.NOT_FOUND, str(e))

    @app.errorhandler(ConflictError)
    def _conflict(e):
        logger.info("Conflict on %s.%s", e.resource, e.field)
        code = E.CONFLICT_STATE if isinstance(e, AlreadyReleasedError) else E.CONFLICT_DUPLICATE
        return api_error(code, str(e), details={"field": e.field})

    @app.errorhandler(NotEligibleError)
    def _not_eligible(e):
        return api_error(E.NOT_ELIGIBLE, str(e))

    @app.errorhandler(404)
    def _route_not_found(e):
        return api_error(E.NOT_FOUND, "Not found")

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(429)
    def _rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests")

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return api_error(E.VALIDATION_INVALID, e.description or e.name, status=e.code)

    @app.errorhandler(SQLAlchemyError)
    def _database_error(e):
        logger.exception("Database error: %s", e)
        db.session.rollback()
        return api_error(E.DATABASE, "Internal server error")

    @app.errorhandler(Exception)
    def _internal(e):
        logger.exception("Unhandled error: %s", e)
        db.session.rollback()
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):
    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("name")
    @click.password_option()
    def create_admin_cmd(email, name, password):
        """Create the first SUPER_ADMIN account."""
        from app.models.auth import ROLE_SUPER_ADMIN, User
        from app.utils.crypto import hash_password

        email = email.strip().lower()
        if User.query.filter(db.func.lower(User.email) == email).first():
            raise click.ClickException(f"User {email} already exists")
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=ROLE_SUPER_ADMIN,
            is_active=True,
        )
        db.session.add(user)
        db.session.commit()
        logger.info("Super admin created id=%s", user.id)


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
    # Instantiated so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
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

    # ── JWT auth middleware (sets g.jwt_user_id from the bearer token) ───
    init_jwt_middleware(app)

    app.config.setdefault("MAX_CONTENT_LENGTH", 2 * 1024 * 1024)  # 2 MB

    # ── Import all models so Alembic can detect them ─────────────────────
    from app.models import auth as _auth_models             # noqa: F401
    from app.models import client as _client_models         # noqa: F401
    from app.models import workflow as _workflow_models     # noqa: F401
    from app.models import audit as _audit_models           # noqa: F401

    # ── Auto-create tables for local SQLite runs ─────────────────────────
    if config_name == "development":
        os.makedirs(app.instance_path, exist_ok=True)
        with app.app_context():
            db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    from app.blueprints.auth_bp import auth_bp
    from app.blueprints.client_bp import client_bp
    from app.blueprints.milestone_bp import milestone_bp
    from app.blueprints.dashboard_bp import dashboard_bp
    from app.blueprints.team_bp import team_bp
    from app.blueprints.portal_bp import portal_bp
    from app.blueprints.health_bp import health_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(client_bp)
    app.register_blueprint(milestone_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(team_bp)
    app.register_blueprint(portal_bp)
    app.register_blueprint(health_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    _register_error_handlers(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    _register_cli(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
