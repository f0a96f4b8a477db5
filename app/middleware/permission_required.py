"""
Permission Decorators: JWT-aware role decorators for route protection.

Usage:
    @bp.route("/api/v1/clients", methods=["GET"])
    @login_required
    def list_clients():
        user = current_user()
        ...

    @bp.route("/api/v1/admin/team", methods=["GET"])
    @require_role("SUPER_ADMIN")
    def list_team():
        ...

The role checked is the one stored on the User row, not the token claim,
so a role change or deactivation takes effect on the next request.
"""

import functools
import logging

from flask import g

from app.core.exceptions import AuthenticationError, ForbiddenError
from app.models import db
from app.models.auth import User

logger = logging.getLogger(__name__)


def current_user() -> User:
    """Return the authenticated, active User for this request.

    Raises:
        AuthenticationError: no token, unknown user, or inactive user.
    """
    cached = getattr(g, "current_user", None)
    if cached is not None:
        return cached

    user_id = getattr(g, "jwt_user_id", None)
    if user_id is None:
        raise AuthenticationError("missing or invalid bearer token")

    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError(f"user {user_id} missing or inactive")

    g.current_user = user
    return user


def login_required(f):
    """Decorator: require an authenticated caller."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        current_user()
        return f(*args, **kwargs)
    return decorated


def require_role(*roles: str):
    """
    Decorator: require the caller's role to be one of ``roles``.

    Args:
        roles: e.g. "SUPER_ADMIN", "TEAM_MEMBER"
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user = current_user()
            if user.role not in roles:
                logger.warning(
                    "User %d denied: role %s not in %s on %s",
                    user.id, user.role, roles, f.__name__,
                )
                raise ForbiddenError(f"role {user.role} not allowed")
            return f(*args, **kwargs)
        return decorated
    return decorator
