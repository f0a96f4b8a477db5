"""initial_onboarding_schema

Users, clients and their one-to-one sub-entities, formal task rows,
payment milestones and the append-only audit log.

Revision ID: 0a1b2c3d4e51
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "0a1b2c3d4e51"
down_revision = None
branch_labels = None
depends_on = None


def _task_columns():
    return [
        sa.Column("status", sa.String(length=30), nullable=False, server_default="NOT_STARTED"),
        sa.Column("responsibility", sa.String(length=10), nullable=True),
        sa.Column("blocked_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _client_fk(unique=False):
    return sa.Column(
        "client_id", sa.Integer(),
        sa.ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False, unique=unique,
    )


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False, unique=True),
            sa.Column("password_hash", sa.String(length=256), nullable=True),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="TEAM_MEMBER"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("client_id", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index("ix_users_client_id", "users", ["client_id"])

    if "clients" not in existing_tables:
        flags = [
            "website_design_done", "website_dev_done", "website_search_console_done",
            "website_verified", "app_ui_done", "app_dev_done", "app_testing_done",
            "app_approved", "upload_assets_done", "upload_screenshots_done",
            "upload_apk_done", "privacy_policy_done", "published",
        ]
        op.create_table(
            "clients",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("legal_name", sa.String(length=200), nullable=False),
            sa.Column("pan_number", sa.String(length=10), nullable=False, unique=True),
            sa.Column("company_type", sa.String(length=20), nullable=False,
                      server_default="INDIVIDUAL"),
            sa.Column("email", sa.String(length=200), nullable=False, unique=True),
            sa.Column("phone", sa.String(length=30), nullable=True),
            *[sa.Column(f, sa.Boolean(), nullable=False, server_default=sa.false())
              for f in flags],
            sa.Column("website_url", sa.String(length=500), nullable=True),
            sa.Column("assets_url", sa.String(length=500), nullable=True),
            sa.Column("apk_url", sa.String(length=500), nullable=True),
            sa.Column("privacy_policy_page_url", sa.String(length=500), nullable=True),
            sa.Column("live_url", sa.String(length=500), nullable=True),
            sa.Column("publishing_status", sa.String(length=20), nullable=False,
                      server_default="NOT_SUBMITTED"),
            sa.Column("onboarding_status", sa.String(length=20), nullable=False,
                      server_default="DRAFT"),
            sa.Column("created_by_id", sa.Integer(),
                      sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index("ix_clients_created_by", "clients", ["created_by_id"])
        op.create_index("ix_clients_created_at", "clients", ["created_at"])

    if "compliance_documents" not in existing_tables:
        op.create_table(
            "compliance_documents",
            sa.Column("id", sa.Integer(), primary_key=True),
            _client_fk(unique=True),
            sa.Column("msme_status", sa.String(length=20), nullable=False,
                      server_default="NOT_CREATED"),
            sa.Column("msme_document_url", sa.String(length=500), nullable=True),
            sa.Column("msme_number", sa.String(length=50), nullable=True),
            sa.Column("duns_status", sa.String(length=20), nullable=False,
                      server_default="NOT_CREATED"),
            sa.Column("duns_document_url", sa.String(length=500), nullable=True),
            sa.Column("duns_number", sa.String(length=50), nullable=True),
            sa.Column("last_verified_at", sa.DateTime(timezone=True), nullable=True),
        )

    if "play_console_statuses" not in existing_tables:
        flags = [
            "account_created", "account_paid", "identity_verification_status",
            "company_verification_status", "payment_profile_status", "developer_invited",
            "console_ready", "account_sale_complete",
        ]
        op.create_table(
            "play_console_statuses",
            sa.Column("id", sa.Integer(), primary_key=True),
            _client_fk(unique=True),
            *[sa.Column(f, sa.Boolean(), nullable=False, server_default=sa.false())
              for f in flags],
            sa.Column("developer_invite_email", sa.String(length=200), nullable=True),
            sa.Column("console_email", sa.String(length=200), nullable=True),
            sa.Column("account_sale_amount", sa.Float(), nullable=True),
        )

    if "organization_costs" not in existing_tables:
        op.create_table(
            "organization_costs",
            sa.Column("id", sa.Integer(), primary_key=True),
            _client_fk(unique=True),
            sa.Column("domain_cost", sa.Float(), nullable=False, server_default="0"),
            sa.Column("play_console_fee", sa.Float(), nullable=False, server_default="25"),
            sa.Column("other_costs", sa.Float(), nullable=False, server_default="0"),
            sa.Column("cost_notes", sa.Text(), nullable=True),
        )

    if "website_tasks" not in existing_tables:
        op.create_table(
            "website_tasks",
            sa.Column("id", sa.Integer(), primary_key=True),
            _client_fk(),
            sa.Column("task_name", sa.String(length=200), nullable=False),
            *_task_columns(),
        )
        op.create_index("ix_website_tasks_client_id", "website_tasks", ["client_id"])

    if "app_development_tasks" not in existing_tables:
        op.create_table(
            "app_development_tasks",
            sa.Column("id", sa.Integer(), primary_key=True),
            _client_fk(),
            sa.Column("task_name", sa.String(length=200), nullable=False),
            *_task_columns(),
        )
        op.create_index("ix_app_development_tasks_client_id", "app_development_tasks",
                        ["client_id"])

    if "play_store_assets" not in existing_tables:
        op.create_table(
            "play_store_assets",
            sa.Column("id", sa.Integer(), primary_key=True),
            _client_fk(),
            sa.Column("asset_type", sa.String(length=30), nullable=False),
            sa.Column("asset_url", sa.String(length=500), nullable=True),
            *_task_columns(),
        )
        op.create_index("ix_play_store_assets_client_id", "play_store_assets", ["client_id"])

    if "submission_reviews" not in existing_tables:
        op.create_table(
            "submission_reviews",
            sa.Column("id", sa.Integer(), primary_key=True),
            _client_fk(unique=True),
            sa.Column("review_status", sa.String(length=30), nullable=False,
                      server_default="NOT_STARTED"),
            sa.Column("client_approval", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("rejection_reason", sa.Text(), nullable=True),
            sa.Column("responsibility", sa.String(length=10), nullable=True),
            sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("live_url", sa.String(length=500), nullable=True),
            sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        )

    if "payment_milestones" not in existing_tables:
        op.create_table(
            "payment_milestones",
            sa.Column("id", sa.Integer(), primary_key=True),
            _client_fk(),
            sa.Column("milestone_name", sa.String(length=200), nullable=False),
            sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
            sa.Column("eligible_for_payment", sa.Boolean(), nullable=False,
                      server_default=sa.false()),
            sa.Column("released", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("released_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("released_by_id", sa.Integer(),
                      sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("ix_payment_milestones_client_id", "payment_milestones", ["client_id"])

    if "audit_logs" not in existing_tables:
        op.create_table(
            "audit_logs",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("client_id", sa.Integer(),
                      sa.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True),
            sa.Column("table_name", sa.String(length=60), nullable=False),
            sa.Column("record_id", sa.String(length=36), nullable=False),
            sa.Column("action", sa.String(length=60), nullable=False),
            sa.Column("old_value", sa.Text(), nullable=True),
            sa.Column("new_value", sa.Text(), nullable=True),
            sa.Column("changed_by", sa.String(length=150), nullable=False,
                      server_default="system"),
            sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("idx_audit_client", "audit_logs", ["client_id"])
        op.create_index("idx_audit_record", "audit_logs", ["table_name", "record_id"])
        op.create_index("idx_audit_action", "audit_logs", ["action"])
        op.create_index("idx_audit_ts", "audit_logs", ["changed_at"])


def downgrade():
    for table in (
        "audit_logs", "payment_milestones", "submission_reviews", "play_store_assets",
        "app_development_tasks", "website_tasks", "organization_costs",
        "play_console_statuses", "compliance_documents", "clients", "users",
    ):
        op.drop_table(table)
