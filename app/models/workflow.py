"""
App-store onboarding CRM
Formal task and milestone models.

Models:
    - WebsiteTask:         named website work item with Status + Responsibility
    - AppDevelopmentTask:  named app-build work item
    - PlayStoreAsset:      one store-listing asset (icon, screenshot, ...)
    - SubmissionReview:    1:1 - store review outcome, publication, rejection
    - PaymentMilestone:    explicit, amount-bearing payment record

These rows run alongside the boolean flags on Client. The flags drive the
workflow display; these rows drive payment release and fault attribution.

Lifecycle (shared Status enum):
    NOT_STARTED → IN_PROGRESS | PENDING_CLIENT | BLOCKED
    IN_PROGRESS → COMPLETED | PENDING_CLIENT | PENDING_VERIFICATION | BLOCKED | FAILED
    COMPLETED is terminal; FAILED restarts at NOT_STARTED.
"""

from datetime import datetime, timezone

from app.models import db


# ── Constants ────────────────────────────────────────────────────────────────

STATUS_NOT_STARTED = "NOT_STARTED"
STATUS_PENDING_CLIENT = "PENDING_CLIENT"
STATUS_PENDING_VERIFICATION = "PENDING_VERIFICATION"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_COMPLETED = "COMPLETED"
STATUS_FAILED = "FAILED"
STATUS_BLOCKED = "BLOCKED"

TASK_STATUSES = {
    STATUS_NOT_STARTED, STATUS_PENDING_CLIENT, STATUS_PENDING_VERIFICATION,
    STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_FAILED, STATUS_BLOCKED,
}

RESPONSIBILITY_CLIENT = "CLIENT"
RESPONSIBILITY_COMPANY = "COMPANY"
RESPONSIBILITIES = {RESPONSIBILITY_CLIENT, RESPONSIBILITY_COMPANY}

TASK_TRANSITIONS = {
    STATUS_NOT_STARTED:          [STATUS_IN_PROGRESS, STATUS_PENDING_CLIENT, STATUS_BLOCKED],
    STATUS_PENDING_CLIENT:       [STATUS_IN_PROGRESS, STATUS_BLOCKED, STATUS_FAILED],
    STATUS_PENDING_VERIFICATION: [STATUS_COMPLETED, STATUS_FAILED, STATUS_BLOCKED],
    STATUS_IN_PROGRESS:          [STATUS_COMPLETED, STATUS_PENDING_CLIENT,
                                  STATUS_PENDING_VERIFICATION, STATUS_BLOCKED, STATUS_FAILED],
    STATUS_COMPLETED:            [],
    STATUS_FAILED:               [STATUS_NOT_STARTED],
    STATUS_BLOCKED:              [STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_PENDING_CLIENT],
}

ASSET_TYPES = {
    "ICON", "SHORT_DESCRIPTION", "LONG_DESCRIPTION",
    "FEATURE_GRAPHIC", "SCREENSHOT", "PRIVACY_POLICY",
}

MANDATORY_ASSET_TYPES = [
    "ICON", "SHORT_DESCRIPTION", "LONG_DESCRIPTION", "FEATURE_GRAPHIC", "SCREENSHOT",
]

MIN_SCREENSHOTS = 6


def _utcnow():
    return datetime.now(timezone.utc)


class _TaskMixin:
    """Columns shared by every status-bearing task row."""

    status = db.Column(db.String(30), nullable=False, default=STATUS_NOT_STARTED)
    responsibility = db.Column(db.String(10), nullable=True)
    blocked_reason = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def _base_dict(self):
        return {
            "id": self.id,
            "clientId": self.client_id,
            "status": self.status,
            "responsibility": self.responsibility,
            "blockedReason": self.blocked_reason,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class WebsiteTask(_TaskMixin, db.Model):
    __tablename__ = "website_tasks"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(
        db.Integer, db.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    task_name = db.Column(db.String(200), nullable=False)

    client = db.relationship("Client", back_populates="website_tasks")

    @property
    def display_name(self):
        return self.task_name

    def to_dict(self):
        d = self._base_dict()
        d["taskName"] = self.task_name
        return d


class AppDevelopmentTask(_TaskMixin, db.Model):
    __tablename__ = "app_development_tasks"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(
        db.Integer, db.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    task_name = db.Column(db.String(200), nullable=False)

    client = db.relationship("Client", back_populates="app_development_tasks")

    @property
    def display_name(self):
        return self.task_name

    def to_dict(self):
        d = self._base_dict()
        d["taskName"] = self.task_name
        return d


class PlayStoreAsset(_TaskMixin, db.Model):
    __tablename__ = "play_store_assets"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(
        db.Integer, db.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    asset_type = db.Column(db.String(30), nullable=False)
    asset_url = db.Column(db.String(500))

    client = db.relationship("Client", back_populates="play_store_assets")

    @property
    def display_name(self):
        return self.asset_type.replace("_", " ").title()

    def to_dict(self):
        d = self._base_dict()
        d["assetType"] = self.asset_type
        d["assetUrl"] = self.asset_url
        return d


class SubmissionReview(db.Model):
    __tablename__ = "submission_reviews"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(
        db.Integer, db.ForeignKey("clients.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )
    review_status = db.Column(db.String(30), nullable=False, default=STATUS_NOT_STARTED)
    client_approval = db.Column(db.Boolean, nullable=False, default=False)
    rejection_reason = db.Column(db.Text)
    responsibility = db.Column(db.String(10))
    published = db.Column(db.Boolean, nullable=False, default=False)
    live_url = db.Column(db.String(500))
    submitted_at = db.Column(db.DateTime(timezone=True))
    published_at = db.Column(db.DateTime(timezone=True))
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    client = db.relationship("Client", back_populates="submission_review")

    def to_dict(self):
        return {
            "id": self.id,
            "reviewStatus": self.review_status,
            "clientApproval": self.client_approval,
            "rejectionReason": self.rejection_reason,
            "responsibility": self.responsibility,
            "published": self.published,
            "liveUrl": self.live_url,
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
        }


class PaymentMilestone(db.Model):
    __tablename__ = "payment_milestones"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(
        db.Integer, db.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    milestone_name = db.Column(db.String(200), nullable=False)
    amount = db.Column(db.Float, nullable=False, default=0.0)
    eligible_for_payment = db.Column(db.Boolean, nullable=False, default=False)
    released = db.Column(db.Boolean, nullable=False, default=False)
    released_at = db.Column(db.DateTime(timezone=True))
    released_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    client = db.relationship("Client", back_populates="payment_milestones")

    def to_dict(self):
        return {
            "id": self.id,
            "clientId": self.client_id,
            "milestoneName": self.milestone_name,
            "amount": self.amount,
            "eligibleForPayment": self.eligible_for_payment,
            "released": self.released,
            "releasedAt": self.released_at.isoformat() if self.released_at else None,
            "releasedById": self.released_by_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
