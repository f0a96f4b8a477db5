"""
Team Service: user CRUD for the admin team screen, login, password change.

All team mutations require SUPER_ADMIN. A SUPER_ADMIN account can never be
deactivated, deleted or demoted by any path, and the acting admin cannot
deactivate or delete themselves.
"""

import logging

from email_validator import EmailNotValidError, validate_email

from app.core.exceptions import (
    AuthenticationError,
    DuplicateEmailError,
    NotFoundError,
    ValidationError,
    WrongPasswordError,
)
from app.models import db
from app.models.auth import (
    LINKED_ROLES,
    ROLE_CLIENT,
    ROLE_TEAM_MEMBER,
    STAFF_ROLES,
    USER_ROLES,
    User,
)
from app.models.client import Client
from app.models.workflow import PaymentMilestone
from app.services import access_scope
from app.utils.crypto import hash_password, verify_password
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _normalize_email(email) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email is required", details={"field": "email"})
    try:
        return validate_email(email.strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        raise ValidationError("Invalid email address", details={"field": "email"})


def _check_password(password, field: str = "password") -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"field": field},
        )
    return password


def _check_name(name) -> str:
    if not isinstance(name, str) or len(name.strip()) < 2:
        raise ValidationError("Name must be at least 2 characters", details={"field": "name"})
    return name.strip()


def _check_role(role) -> str:
    if role not in USER_ROLES:
        raise ValidationError(
            f"Role must be one of: {', '.join(sorted(USER_ROLES))}", details={"field": "role"},
        )
    return role


def _check_client_link(role: str, client_id):
    """CLIENT users must point at an existing client; MEMBER may."""
    if client_id is None:
        if role == ROLE_CLIENT:
            raise ValidationError("Client users need a linked client",
                                  details={"field": "clientId"})
        return None
    if role not in LINKED_ROLES:
        raise ValidationError("Only MEMBER and CLIENT users can be linked to a client",
                              details={"field": "clientId"})
    if db.session.get(Client, client_id) is None:
        raise NotFoundError(resource="Client", resource_id=client_id)
    return client_id


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    q = User.query.filter(db.func.lower(User.email) == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


def _load_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user


# ═══════════════════════════════════════════════════════════════
# Authentication
# ═══════════════════════════════════════════════════════════════
def authenticate_user(email: str, password: str) -> User:
    """Verify credentials; inactive users are rejected like unknown ones."""
    email = (email or "").strip().lower()
    if not email or not password:
        raise ValidationError("Email and password are required", details={"field": "email"})

    user = User.query.filter(db.func.lower(User.email) == email).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login for %s", email)
        raise AuthenticationError("invalid credentials")
    if not user.is_active:
        logger.warning("Login attempt on inactive account user=%s", user.id)
        raise AuthenticationError("inactive account")
    return user


def change_own_password(user, current_password, new_password) -> None:
    if not current_password or not new_password:
        raise ValidationError("Current password and new password are required",
                              details={"field": "newPassword"})
    _check_password(new_password, "newPassword")
    if not verify_password(current_password, user.password_hash):
        raise WrongPasswordError()
    if current_password == new_password:
        raise ValidationError("New password must differ from the current password",
                              details={"field": "newPassword"})

    user.password_hash = hash_password(new_password)
    commit_or_raise()
    logger.info("Password changed user=%s", user.id)


# ═══════════════════════════════════════════════════════════════
# Team CRUD (SUPER_ADMIN)
# ═══════════════════════════════════════════════════════════════
def list_team(actor) -> list[dict]:
    access_scope.require_super_admin(actor)
    users = (
        User.query.filter(User.role.in_(STAFF_ROLES))
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return [u.to_dict() for u in users]


def create_team_member(data: dict, actor) -> dict:
    access_scope.require_super_admin(actor)
    data = data or {}

    name = _check_name(data.get("name"))
    email = _normalize_email(data.get("email"))
    password = _check_password(data.get("password"))
    role = _check_role(data.get("role") or ROLE_TEAM_MEMBER)
    client_id = _check_client_link(role, data.get("clientId"))

    if _email_taken(email):
        raise DuplicateEmailError(resource="User", value=email)

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        client_id=client_id,
    )
    db.session.add(user)
    commit_or_raise()
    logger.info("Team member created id=%s role=%s by user=%s", user.id, role, actor.id)
    return user.to_dict()


def update_team_member(user_id: int, data: dict, actor) -> dict:
    access_scope.require_super_admin(actor)
    target = _load_user(user_id)
    data = data or {}

    is_active = data.get("isActive")
    if is_active is not None and not isinstance(is_active, bool):
        raise ValidationError("isActive must be true or false", details={"field": "isActive"})
    role = _check_role(data["role"]) if data.get("role") is not None else None

    access_scope.guard_team_update(actor, target, is_active=is_active, role=role)

    if "name" in data:
        target.name = _check_name(data.get("name"))
    if "email" in data:
        email = _normalize_email(data.get("email"))
        if _email_taken(email, exclude_id=target.id):
            raise DuplicateEmailError(resource="User", value=email)
        target.email = email
    if data.get("password"):
        target.password_hash = hash_password(_check_password(data["password"]))
    if role is not None:
        target.role = role
    if "clientId" in data or role is not None:
        if "clientId" in data:
            link = data.get("clientId")
        else:
            link = target.client_id if target.role in LINKED_ROLES else None
        target.client_id = _check_client_link(target.role, link)
    if is_active is not None:
        target.is_active = is_active

    commit_or_raise()
    logger.info("Team member updated id=%s by user=%s", target.id, actor.id)
    return target.to_dict()


def delete_team_member(user_id: int, actor) -> None:
    """Hard delete. Owned clients become unassigned."""
    access_scope.require_super_admin(actor)
    target = _load_user(user_id)
    access_scope.guard_team_delete(actor, target)

    Client.query.filter_by(created_by_id=target.id).update(
        {"created_by_id": None}, synchronize_session=False,
    )
    PaymentMilestone.query.filter_by(released_by_id=target.id).update(
        {"released_by_id": None}, synchronize_session=False,
    )
    db.session.delete(target)
    commit_or_raise()
    logger.info("Team member deleted id=%s by user=%s", user_id, actor.id)
