"""
Auth Models: users and the canonical role enum.

Roles (one per user):
    SUPER_ADMIN  - global visibility, team management, payment release.
                   Protected: can never be deactivated or deleted.
    TEAM_MEMBER  - creates clients; sees only clients it owns.
    MEMBER       - like TEAM_MEMBER, plus self-view of its linked client.
    CLIENT       - portal-only, read access to its linked client.
"""

from datetime import datetime, timezone

from app.models import db


# ── Constants ────────────────────────────────────────────────────────────────

ROLE_SUPER_ADMIN = "SUPER_ADMIN"
ROLE_TEAM_MEMBER = "TEAM_MEMBER"
ROLE_MEMBER = "MEMBER"
ROLE_CLIENT = "CLIENT"

USER_ROLES = {ROLE_SUPER_ADMIN, ROLE_TEAM_MEMBER, ROLE_MEMBER, ROLE_CLIENT}

# Roles that work inside the back office (everything except the portal)
STAFF_ROLES = {ROLE_SUPER_ADMIN, ROLE_TEAM_MEMBER, ROLE_MEMBER}

# Roles that may hold a user.client_id link (self-view)
LINKED_ROLES = {ROLE_MEMBER, ROLE_CLIENT}


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    role = db.Column(db.String(20), nullable=False, default=ROLE_TEAM_MEMBER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    # Portal / self-view link. Plain column: clients.created_by_id already
    # points back at users, and delete_client clears stale links.
    client_id = db.Column(db.Integer, nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "isActive": self.is_active,
            "clientId": self.client_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.role})>"
