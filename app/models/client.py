"""
App-store onboarding CRM
Client domain models.

Models:
    - Client:              root entity; per-stage boolean flags + URLs + ownership
    - ComplianceDocument:  1:1 - MSME and D-U-N-S status, document URLs, numbers
    - PlayConsoleStatus:   1:1 - developer account sub-verifications, account sale
    - OrganizationCost:    1:1 (lazy) - liability carried by the organization

The workflow position of a client (current step, status label, blocked) is
never stored here; ``app.services.workflow_state`` derives it from these
columns on every read.
"""

from datetime import datetime, timezone

from app.models import db


# ── Constants ────────────────────────────────────────────────────────────────

COMPANY_TYPES = {"INDIVIDUAL", "FIRM", "PVT_LTD"}

ONBOARDING_STATUSES = {"DRAFT", "SUBMITTED", "VERIFIED", "REJECTED"}

PUBLISHING_STATUSES = {"NOT_SUBMITTED", "IN_REVIEW", "PRODUCTION"}

COMPLIANCE_STATUSES = {"NOT_CREATED", "PENDING", "APPROVED"}

DEFAULT_PLAY_CONSOLE_FEE = 25.0


def _utcnow():
    return datetime.now(timezone.utc)


class Client(db.Model):
    __tablename__ = "clients"
    __table_args__ = (
        db.Index("ix_clients_created_by", "created_by_id"),
        db.Index("ix_clients_created_at", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)

    # Identity
    legal_name = db.Column(db.String(200), nullable=False)
    pan_number = db.Column(db.String(10), unique=True, nullable=False)
    company_type = db.Column(db.String(20), nullable=False, default="INDIVIDUAL")
    email = db.Column(db.String(200), unique=True, nullable=False)
    phone = db.Column(db.String(30))

    # Parallel work - website
    website_design_done = db.Column(db.Boolean, nullable=False, default=False)
    website_dev_done = db.Column(db.Boolean, nullable=False, default=False)
    website_search_console_done = db.Column(db.Boolean, nullable=False, default=False)
    website_verified = db.Column(db.Boolean, nullable=False, default=False)

    # Parallel work - app development
    app_ui_done = db.Column(db.Boolean, nullable=False, default=False)
    app_dev_done = db.Column(db.Boolean, nullable=False, default=False)
    app_testing_done = db.Column(db.Boolean, nullable=False, default=False)
    app_approved = db.Column(db.Boolean, nullable=False, default=False)

    # Parallel work - store upload
    upload_assets_done = db.Column(db.Boolean, nullable=False, default=False)
    upload_screenshots_done = db.Column(db.Boolean, nullable=False, default=False)
    upload_apk_done = db.Column(db.Boolean, nullable=False, default=False)
    privacy_policy_done = db.Column(db.Boolean, nullable=False, default=False)
    published = db.Column(db.Boolean, nullable=False, default=False)

    # Associated URLs
    website_url = db.Column(db.String(500))
    assets_url = db.Column(db.String(500))
    apk_url = db.Column(db.String(500))
    privacy_policy_page_url = db.Column(db.String(500))
    live_url = db.Column(db.String(500))

    publishing_status = db.Column(db.String(20), nullable=False, default="NOT_SUBMITTED")
    onboarding_status = db.Column(db.String(20), nullable=False, default="DRAFT")

    # Ownership
    created_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # Relationships
    created_by = db.relationship("User", foreign_keys=[created_by_id])
    compliance = db.relationship(
        "ComplianceDocument", uselist=False, back_populates="client",
        cascade="all, delete-orphan",
    )
    play_console = db.relationship(
        "PlayConsoleStatus", uselist=False, back_populates="client",
        cascade="all, delete-orphan",
    )
    organization_cost = db.relationship(
        "OrganizationCost", uselist=False, back_populates="client",
        cascade="all, delete-orphan",
    )
    website_tasks = db.relationship(
        "WebsiteTask", back_populates="client", cascade="all, delete-orphan",
        order_by="WebsiteTask.id",
    )
    app_development_tasks = db.relationship(
        "AppDevelopmentTask", back_populates="client", cascade="all, delete-orphan",
        order_by="AppDevelopmentTask.id",
    )
    play_store_assets = db.relationship(
        "PlayStoreAsset", back_populates="client", cascade="all, delete-orphan",
        order_by="PlayStoreAsset.id",
    )
    submission_review = db.relationship(
        "SubmissionReview", uselist=False, back_populates="client",
        cascade="all, delete-orphan",
    )
    payment_milestones = db.relationship(
        "PaymentMilestone", back_populates="client", cascade="all, delete-orphan",
        order_by="PaymentMilestone.created_at",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.legal_name,
            "pan": self.pan_number,
            "type": self.company_type,
            "email": self.email,
            "phone": self.phone,
            "website": {
                "design": self.website_design_done,
                "dev": self.website_dev_done,
                "searchConsole": self.website_search_console_done,
                "verified": self.website_verified,
            },
            "appDev": {
                "ui": self.app_ui_done,
                "dev": self.app_dev_done,
                "testing": self.app_testing_done,
                "approved": self.app_approved,
            },
            "upload": {
                "assets": self.upload_assets_done,
                "screenshots": self.upload_screenshots_done,
                "uploaded": self.upload_apk_done,
                "privacyPolicy": self.privacy_policy_done,
                "published": self.published,
            },
            "websiteUrl": self.website_url,
            "assetsUrl": self.assets_url,
            "apkUrl": self.apk_url,
            "privacyPolicyPageUrl": self.privacy_policy_page_url,
            "liveUrl": self.live_url,
            "publishingStatus": self.publishing_status,
            "onboardingStatus": self.onboarding_status,
            "createdById": self.created_by_id,
            "createdByName": self.created_by.name if self.created_by else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Client {self.id}: {self.legal_name}>"


class ComplianceDocument(db.Model):
    __tablename__ = "compliance_documents"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(
        db.Integer, db.ForeignKey("clients.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )
    msme_status = db.Column(db.String(20), nullable=False, default="NOT_CREATED")
    msme_document_url = db.Column(db.String(500))
    msme_number = db.Column(db.String(50))
    duns_status = db.Column(db.String(20), nullable=False, default="NOT_CREATED")
    duns_document_url = db.Column(db.String(500))
    duns_number = db.Column(db.String(50))
    last_verified_at = db.Column(db.DateTime(timezone=True))

    client = db.relationship("Client", back_populates="compliance")

    def to_dict(self):
        return {
            "msmeStatus": self.msme_status,
            "msmeDocumentUrl": self.msme_document_url,
            "msmeNumber": self.msme_number,
            "dunsStatus": self.duns_status,
            "dunsDocumentUrl": self.duns_document_url,
            "dunsNumber": self.duns_number,
            "lastVerifiedAt": self.last_verified_at.isoformat() if self.last_verified_at else None,
        }


class PlayConsoleStatus(db.Model):
    __tablename__ = "play_console_statuses"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(
        db.Integer, db.ForeignKey("clients.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )
    account_created = db.Column(db.Boolean, nullable=False, default=False)
    account_paid = db.Column(db.Boolean, nullable=False, default=False)
    identity_verification_status = db.Column(db.Boolean, nullable=False, default=False)
    company_verification_status = db.Column(db.Boolean, nullable=False, default=False)
    payment_profile_status = db.Column(db.Boolean, nullable=False, default=False)
    developer_invited = db.Column(db.Boolean, nullable=False, default=False)
    developer_invite_email = db.Column(db.String(200))
    console_email = db.Column(db.String(200))
    # Stored copy of workflow_state.console_ready(); rewritten on every step-5 save
    console_ready = db.Column(db.Boolean, nullable=False, default=False)
    account_sale_complete = db.Column(db.Boolean, nullable=False, default=False)
    account_sale_amount = db.Column(db.Float, nullable=True)

    client = db.relationship("Client", back_populates="play_console")

    def to_dict(self):
        return {
            "accountCreated": self.account_created,
            "accountPaid": self.account_paid,
            "identityVerified": self.identity_verification_status,
            "companyVerified": self.company_verification_status,
            "paymentProfile": self.payment_profile_status,
            "developerInvited": self.developer_invited,
            "developerInviteEmail": self.developer_invite_email,
            "consoleEmail": self.console_email,
            "consoleReady": self.console_ready,
            "accountSaleComplete": self.account_sale_complete,
            "accountSaleAmount": self.account_sale_amount,
        }


class OrganizationCost(db.Model):
    __tablename__ = "organization_costs"

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(
        db.Integer, db.ForeignKey("clients.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )
    domain_cost = db.Column(db.Float, nullable=False, default=0.0)
    play_console_fee = db.Column(db.Float, nullable=False, default=DEFAULT_PLAY_CONSOLE_FEE)
    other_costs = db.Column(db.Float, nullable=False, default=0.0)
    cost_notes = db.Column(db.Text)

    client = db.relationship("Client", back_populates="organization_cost")

    @property
    def total(self) -> float:
        return (self.domain_cost or 0) + (self.play_console_fee or 0) + (self.other_costs or 0)

    def to_dict(self):
        return {
            "domainCost": self.domain_cost,
            "playConsoleFee": self.play_console_fee,
            "otherCosts": self.other_costs,
            "costNotes": self.cost_notes,
            "total": self.total,
        }
