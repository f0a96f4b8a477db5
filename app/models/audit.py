"""
App-store onboarding CRM
Audit domain model.

Models:
    - AuditLog: immutable, append-only audit trail. One row per mutation.

Rows are never updated or deleted. Client deletion detaches them
(client_id → NULL) so the dispute trail survives the client.
"""

import json
from datetime import datetime, timezone

from app.models import db


# ── Constants ────────────────────────────────────────────────────────────────

ACTION_CLIENT_CREATED = "CLIENT_CREATED"
ACTION_CLIENT_DELETED = "CLIENT_DELETED"
ACTION_CLIENT_REASSIGNED = "CLIENT_REASSIGNED"
ACTION_APPLICATION_SUBMITTED = "APPLICATION_SUBMITTED"
ACTION_PAYMENT_RELEASED = "PAYMENT_RELEASED"
ACTION_MILESTONE_CREATED = "MILESTONE_CREATED"
ACTION_MILESTONE_ELIGIBILITY_CHANGED = "MILESTONE_ELIGIBILITY_CHANGED"
ACTION_REJECTION_ATTRIBUTED = "REJECTION_ATTRIBUTED"
ACTION_TASK_CREATED = "TASK_CREATED"

# Task status changes are recorded as STATUS_CHANGED_TO_<STATUS>
STATUS_CHANGE_PREFIX = "STATUS_CHANGED_TO_"

# Counted by the timeline extension calculation
CLIENT_DELAY_ACTIONS = (
    "STATUS_CHANGED_TO_PENDING_CLIENT",
    "STATUS_CHANGED_TO_BLOCKED",
)


def step_saved_action(step: int) -> str:
    return f"STEP_{step}_SAVED"


class AuditLog(db.Model):
    """
    Immutable audit trail.

    ``old_value`` / ``new_value`` carry opaque JSON snapshots of the fields a
    mutation touched.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("idx_audit_client", "client_id"),
        db.Index("idx_audit_record", "table_name", "record_id"),
        db.Index("idx_audit_action", "action"),
        db.Index("idx_audit_ts", "changed_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(
        db.Integer,
        db.ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
    )
    table_name = db.Column(db.String(60), nullable=False)
    record_id = db.Column(db.String(36), nullable=False)
    action = db.Column(db.String(60), nullable=False)
    old_value = db.Column(db.Text, default="{}")
    new_value = db.Column(db.Text, default="{}")
    changed_by = db.Column(
        db.String(150), nullable=False, default="system",
        comment="User id as string, or 'system'",
    )
    changed_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _load(raw) -> dict:
        try:
            return json.loads(raw or "{}")
        except (json.JSONDecodeError, TypeError):
            return {}

    @property
    def old(self) -> dict:
        return self._load(self.old_value)

    @property
    def new(self) -> dict:
        return self._load(self.new_value)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "clientId": self.client_id,
            "tableName": self.table_name,
            "recordId": self.record_id,
            "action": self.action,
            "oldValue": self.old,
            "newValue": self.new,
            "changedBy": self.changed_by,
            "changedAt": self.changed_at.isoformat() if self.changed_at else None,
        }

    def __repr__(self):
        return f"<AuditLog {self.id}: {self.action} on {self.table_name}/{self.record_id}>"


# ── Convenience writer ───────────────────────────────────────────────────────

def write_audit(
    *,
    client_id: int | None,
    table_name: str,
    record_id,
    action: str,
    changed_by="system",
    old_value: dict | None = None,
    new_value: dict | None = None,
) -> AuditLog:
    """
    Append a single audit row. Uses ``flush`` so callers keep
    transaction control: the row commits together with the mutation it
    describes, or not at all.
    """
    log = AuditLog(
        client_id=client_id,
        table_name=table_name,
        record_id=str(record_id),
        action=action,
        old_value=json.dumps(old_value or {}, default=str),
        new_value=json.dumps(new_value or {}, default=str),
        changed_by=str(changed_by),
    )
    db.session.add(log)
    db.session.flush()
    return log
