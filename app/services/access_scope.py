"""
Access Scope Resolver: who may see or change which client.

    can_access_client:  SUPER_ADMIN, the owner (client.created_by_id), or the
                        user linked to the client (user.client_id)
    require_super_admin / require_staff: role gates raising ForbiddenError

Team management guards live here too: no path may deactivate, delete or
demote a SUPER_ADMIN, and nobody may deactivate or delete themselves.

``user`` is any object with ``id``, ``role`` and ``client_id``.
"""

import logging

from app.core.exceptions import ForbiddenError
from app.models.auth import ROLE_CLIENT, ROLE_SUPER_ADMIN, STAFF_ROLES

logger = logging.getLogger(__name__)


def is_super_admin(user) -> bool:
    return user is not None and user.role == ROLE_SUPER_ADMIN


def can_access_client(user, client) -> bool:
    if user is None or client is None:
        return False
    if user.role == ROLE_SUPER_ADMIN:
        return True
    if client.created_by_id is not None and client.created_by_id == user.id:
        return True
    return user.client_id is not None and user.client_id == client.id


def can_mutate_client(user, client) -> bool:
    """Portal users read their client; they never write to it."""
    return user is not None and user.role != ROLE_CLIENT and can_access_client(user, client)


def require_client_access(user, client, *, write: bool = False) -> None:
    allowed = can_mutate_client(user, client) if write else can_access_client(user, client)
    if not allowed:
        logger.warning(
            "Client access denied: user=%s role=%s client=%s write=%s",
            getattr(user, "id", None), getattr(user, "role", None),
            getattr(client, "id", None), write,
        )
        raise ForbiddenError(f"user {getattr(user, 'id', None)} cannot access client")


def require_super_admin(user) -> None:
    if not is_super_admin(user):
        logger.warning("Super admin required: user=%s", getattr(user, "id", None))
        raise ForbiddenError("super admin required")


def require_staff(user) -> None:
    if user is None or user.role not in STAFF_ROLES:
        raise ForbiddenError("staff role required")


def client_scope_owner_id(user) -> int | None:
    """``created_by_id`` filter for list/aggregate queries; None means all clients."""
    if is_super_admin(user):
        return None
    return user.id


# ── Team management guards ───────────────────────────────────────────────────


def guard_team_update(actor, target, *, is_active=None, role=None) -> None:
    """Raise ForbiddenError when an update would touch a protected account."""
    if target.role == ROLE_SUPER_ADMIN:
        if is_active is False:
            raise ForbiddenError("cannot deactivate a super admin")
        if role is not None and role != ROLE_SUPER_ADMIN:
            raise ForbiddenError("cannot change a super admin's role")
    resulting_role = role if role is not None else target.role
    resulting_active = is_active if is_active is not None else target.is_active
    if resulting_role == ROLE_SUPER_ADMIN and not resulting_active:
        raise ForbiddenError("a super admin must be active")
    if target.id == actor.id and is_active is False:
        raise ForbiddenError("cannot deactivate yourself")


def guard_team_delete(actor, target) -> None:
    if target.role == ROLE_SUPER_ADMIN:
        raise ForbiddenError("cannot delete a super admin")
    if target.id == actor.id:
        raise ForbiddenError("cannot delete yourself")
