"""
Client Service: client lifecycle and the seven step mutation handlers.

Every mutation follows the same order: load → access check → validate →
write → audit → one commit. Validation and ownership are checked before
anything is written; a failed commit is rolled back as a whole.

Operations:
    create_client, get_client_view, list_clients, update_step,
    submit_application, delete_client, assign_client,
    get_dependency_report, get_audit_trail
"""

import logging
import math
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import or_

from app.core.exceptions import (
    DuplicateEmailError,
    DuplicatePanError,
    NotFoundError,
    ValidationError,
)
from app.models import db
from app.models.audit import (
    ACTION_APPLICATION_SUBMITTED,
    ACTION_CLIENT_CREATED,
    ACTION_CLIENT_DELETED,
    ACTION_CLIENT_REASSIGNED,
    AuditLog,
    step_saved_action,
    write_audit,
)
from app.models.auth import STAFF_ROLES, User
from app.models.client import (
    DEFAULT_PLAY_CONSOLE_FEE,
    Client,
    ComplianceDocument,
    OrganizationCost,
    PlayConsoleStatus,
)
from app.models.workflow import STATUS_COMPLETED, SubmissionReview
from app.services import access_scope
from app.services.dependency_checker import stage_report
from app.services.step_validation import validate_client_info, validate_step
from app.services.workflow_state import (
    TOTAL_STEPS,
    console_ready,
    derive_client_state,
    derived_bucket,
    progress_milestones,
)
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

STATUS_FILTERS = {"ALL", "ONGOING", "COMPLETED", "BLOCKED"}


def _utcnow():
    return datetime.now(timezone.utc)


# ── Helpers ──────────────────────────────────────────────────────────────────


def _snapshot(obj, fields) -> dict:
    if obj is None:
        return {}
    return {f: getattr(obj, f) for f in fields}


def _apply(obj, values: dict) -> None:
    for key, value in values.items():
        setattr(obj, key, value)


def load_client(client_id: int) -> Client:
    client = db.session.get(Client, client_id)
    if client is None:
        raise NotFoundError(resource="Client", resource_id=client_id)
    return client


def get_accessible_client(client_id: int, user, *, write: bool = False) -> Client:
    """Load a client and enforce the caller's scope (NotFound before Forbidden)."""
    client = load_client(client_id)
    access_scope.require_client_access(user, client, write=write)
    return client


def _check_unique(pan: str, email: str, *, exclude_id: int | None = None) -> None:
    q = Client.query
    if exclude_id is not None:
        q = q.filter(Client.id != exclude_id)
    if q.filter(Client.pan_number == pan).first() is not None:
        raise DuplicatePanError(pan)
    if q.filter(Client.email == email).first() is not None:
        raise DuplicateEmailError(value=email)


# ═════════════════════════════════════════════════════════════════════════════
# Views
# ═════════════════════════════════════════════════════════════════════════════


def client_summary(client: Client) -> dict:
    """List row: identity + derived workflow position."""
    state = derive_client_state(client)
    return {
        "id": client.id,
        "name": client.legal_name,
        "type": client.company_type,
        "email": client.email,
        "phone": client.phone,
        "currentStep": state.current_step,
        "totalSteps": TOTAL_STEPS,
        "status": state.status,
        "blocked": state.blocked,
        "createdById": client.created_by_id,
        "createdByName": client.created_by.name if client.created_by else None,
    }


def client_view(client: Client) -> dict:
    """Full ClientView: client fields, derived state and every sub-entity."""
    state = derive_client_state(client)
    data = client.to_dict()
    data.update(state.to_dict())
    data["compliance"] = client.compliance.to_dict() if client.compliance else None
    data["playConsole"] = client.play_console.to_dict() if client.play_console else None
    data["organizationCost"] = (
        client.organization_cost.to_dict() if client.organization_cost else None
    )
    data["websiteTasks"] = [t.to_dict() for t in client.website_tasks]
    data["appDevelopmentTasks"] = [t.to_dict() for t in client.app_development_tasks]
    data["playStoreAssets"] = [a.to_dict() for a in client.play_store_assets]
    data["submissionReview"] = (
        client.submission_review.to_dict() if client.submission_review else None
    )
    data["paymentMilestones"] = [m.to_dict() for m in client.payment_milestones]
    data["dependencies"] = stage_report(client)
    data["progress"] = progress_milestones(
        client, client.play_console, client.organization_cost,
    )
    return data


def get_client_view(client_id: int, user) -> dict:
    return client_view(get_accessible_client(client_id, user))


# ═════════════════════════════════════════════════════════════════════════════
# Create / list
# ═════════════════════════════════════════════════════════════════════════════


def create_client(data: dict, user) -> dict:
    """Intake (step 1). Creates the empty compliance and Play Console rows too."""
    access_scope.require_staff(user)
    fields = validate_client_info(data)
    _check_unique(fields["pan_number"], fields["email"])

    client = Client(created_by_id=user.id, **fields)
    client.compliance = ComplianceDocument(msme_status="NOT_CREATED", duns_status="NOT_CREATED")
    client.play_console = PlayConsoleStatus()
    db.session.add(client)
    db.session.flush()

    write_audit(
        client_id=client.id,
        table_name="clients",
        record_id=client.id,
        action=ACTION_CLIENT_CREATED,
        changed_by=user.id,
        new_value={"legalName": client.legal_name, "panNumber": client.pan_number,
                   "email": client.email},
    )
    commit_or_raise()
    logger.info("Client created id=%s by user=%s", client.id, user.id)
    return client_view(client)


def _page_args(page, limit) -> tuple[int, int]:
    cfg = current_app.config
    try:
        page = int(page) if page is not None else 1
        limit = int(limit) if limit is not None else cfg.get("DEFAULT_PAGE_SIZE", 10)
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers", details={"field": "page"})
    if page < 1:
        raise ValidationError("page must be >= 1", details={"field": "page"})
    if limit < 1:
        raise ValidationError("limit must be >= 1", details={"field": "limit"})
    return page, min(limit, cfg.get("MAX_PAGE_SIZE", 100))


def list_clients(user, *, page=None, limit=None, status="ALL", search=None) -> dict:
    """Scoped, filtered, paginated client list.

    The derived status is computed per client, so filtering and paging
    happen in memory after the scoped query.
    """
    access_scope.require_staff(user)
    page, limit = _page_args(page, limit)
    status = (status or "ALL").upper()
    if status not in STATUS_FILTERS:
        raise ValidationError(
            f"status must be one of: {', '.join(sorted(STATUS_FILTERS))}",
            details={"field": "status"},
        )

    q = Client.query
    owner_id = access_scope.client_scope_owner_id(user)
    if owner_id is not None:
        if user.client_id is not None:
            q = q.filter(or_(Client.created_by_id == owner_id, Client.id == user.client_id))
        else:
            q = q.filter(Client.created_by_id == owner_id)
    clients = q.order_by(Client.created_at.desc(), Client.id.desc()).all()

    rows = []
    needle = (search or "").strip().lower()
    for client in clients:
        if needle and not any(
            needle in (value or "").lower()
            for value in (client.legal_name, client.email, client.pan_number)
        ):
            continue
        if status != "ALL" and derived_bucket(derive_client_state(client)) != status:
            continue
        rows.append(client)

    total = len(rows)
    start = (page - 1) * limit
    return {
        "data": [client_summary(c) for c in rows[start:start + limit]],
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if total else 0,
        },
    }


# ═════════════════════════════════════════════════════════════════════════════
# Step mutation handlers
# ═════════════════════════════════════════════════════════════════════════════

_CLIENT_INFO_FIELDS = ("legal_name", "pan_number", "company_type", "email", "phone")
_DOMAIN_FIELDS = ("website_url", "website_verified")
_PLAY_CONSOLE_FIELDS = (
    "account_created", "account_paid", "identity_verification_status",
    "company_verification_status", "payment_profile_status", "developer_invited",
    "developer_invite_email", "console_email", "console_ready",
)
_SALE_FIELDS = (
    "console_email", "payment_profile_status", "account_sale_complete", "account_sale_amount",
)
_COST_FIELDS = ("domain_cost", "play_console_fee", "other_costs", "cost_notes")


def _save_client_info(client, fields):
    _check_unique(fields["pan_number"], fields["email"], exclude_id=client.id)
    old = _snapshot(client, _CLIENT_INFO_FIELDS)
    _apply(client, fields)
    return "clients", client.id, old, _snapshot(client, _CLIENT_INFO_FIELDS)


def _save_compliance(client, fields, prefix):
    compliance = client.compliance
    if compliance is None:
        compliance = ComplianceDocument(client=client)
        db.session.add(compliance)
    keys = (f"{prefix}_status", f"{prefix}_document_url", f"{prefix}_number")
    old = _snapshot(compliance, keys)
    setattr(compliance, f"{prefix}_status", fields["status"])
    setattr(compliance, f"{prefix}_document_url", fields["document_url"])
    setattr(compliance, f"{prefix}_number", fields["number"])
    compliance.last_verified_at = _utcnow()
    db.session.flush()
    return "compliance_documents", compliance.id, old, _snapshot(compliance, keys)


def _save_review(client, fields):
    old = {"onboarding_status": client.onboarding_status}
    client.onboarding_status = fields["onboarding_status"]
    return "clients", client.id, old, {"onboarding_status": client.onboarding_status}


def _save_play_console(client, fields):
    pc = client.play_console
    if pc is None:
        pc = PlayConsoleStatus(client=client)
        db.session.add(pc)
    old = _snapshot(pc, _PLAY_CONSOLE_FIELDS)
    _apply(pc, fields)
    pc.console_ready = console_ready(pc)
    db.session.flush()
    return "play_console_statuses", pc.id, old, _snapshot(pc, _PLAY_CONSOLE_FIELDS)


def _save_domain(client, fields):
    old = _snapshot(client, _DOMAIN_FIELDS)
    _apply(client, fields)
    return "clients", client.id, old, _snapshot(client, _DOMAIN_FIELDS)


def _mirror_submission(client) -> None:
    """Copy published / liveUrl from the client flags into SubmissionReview."""
    review = client.submission_review
    if review is None:
        if not client.published:
            return
        review = SubmissionReview(client=client)
        db.session.add(review)
    if client.published and not review.published:
        review.published_at = _utcnow()
        review.review_status = STATUS_COMPLETED
    review.published = bool(client.published)
    review.live_url = client.live_url


def _save_parallel_work(client, fields):
    client_fields = fields["client"]
    old = {"client": _snapshot(client, client_fields.keys())}
    new = {}

    if fields["play_console"] is not None:
        pc = client.play_console
        if pc is None:
            pc = PlayConsoleStatus(client=client)
            db.session.add(pc)
        old["play_console"] = _snapshot(pc, _SALE_FIELDS)
        _apply(pc, fields["play_console"])
        new["play_console"] = _snapshot(pc, _SALE_FIELDS)

    _apply(client, client_fields)
    new["client"] = _snapshot(client, client_fields.keys())

    if fields["org_costs"] is not None:
        cost = client.organization_cost
        if cost is None:
            cost = OrganizationCost(client=client)
            db.session.add(cost)
        old["org_costs"] = _snapshot(cost, _COST_FIELDS)
        _apply(cost, fields["org_costs"])
        new["org_costs"] = _snapshot(cost, _COST_FIELDS)

    _mirror_submission(client)
    return "clients", client.id, old, new


def update_step(client_id: int, step, payload, user) -> dict:
    """Validate and persist one workflow step, then return the refreshed view."""
    client = get_accessible_client(client_id, user, write=True)
    try:
        step = int(step)
    except (TypeError, ValueError):
        raise ValidationError("Invalid step", details={"field": "step"})
    if not 1 <= step <= TOTAL_STEPS:
        raise ValidationError("Invalid step", details={"field": "step"})

    fee = current_app.config.get("PLAY_CONSOLE_FEE", DEFAULT_PLAY_CONSOLE_FEE)
    fields = validate_step(step, payload, default_fee=fee)

    if step == 1:
        table, record_id, old, new = _save_client_info(client, fields)
    elif step == 2:
        table, record_id, old, new = _save_compliance(client, fields, "msme")
    elif step == 3:
        table, record_id, old, new = _save_compliance(client, fields, "duns")
    elif step == 4:
        table, record_id, old, new = _save_review(client, fields)
    elif step == 5:
        table, record_id, old, new = _save_play_console(client, fields)
    elif step == 6:
        table, record_id, old, new = _save_domain(client, fields)
    else:
        table, record_id, old, new = _save_parallel_work(client, fields)

    write_audit(
        client_id=client.id,
        table_name=table,
        record_id=record_id,
        action=step_saved_action(step),
        changed_by=user.id,
        old_value=old,
        new_value=new,
    )
    commit_or_raise()

    state = derive_client_state(client)
    logger.info(
        "Step %d saved client=%s by user=%s → step=%d status=%s blocked=%s",
        step, client.id, user.id, state.current_step, state.status, state.blocked,
    )
    return client_view(client)


def submit_application(client_id: int, user) -> dict:
    client = get_accessible_client(client_id, user, write=True)
    old = client.onboarding_status
    client.onboarding_status = "SUBMITTED"
    write_audit(
        client_id=client.id,
        table_name="clients",
        record_id=client.id,
        action=ACTION_APPLICATION_SUBMITTED,
        changed_by=user.id,
        old_value={"onboarding_status": old},
        new_value={"onboarding_status": "SUBMITTED"},
    )
    commit_or_raise()
    logger.info("Application submitted client=%s by user=%s", client.id, user.id)
    return client_view(client)


# ═════════════════════════════════════════════════════════════════════════════
# Admin operations
# ═════════════════════════════════════════════════════════════════════════════


def delete_client(client_id: int, user) -> None:
    """Hard delete (SUPER_ADMIN only). Sub-entities cascade; audit rows survive."""
    access_scope.require_super_admin(user)
    client = load_client(client_id)

    AuditLog.query.filter_by(client_id=client.id).update(
        {"client_id": None}, synchronize_session=False,
    )
    User.query.filter_by(client_id=client.id).update(
        {"client_id": None}, synchronize_session=False,
    )
    write_audit(
        client_id=None,
        table_name="clients",
        record_id=client.id,
        action=ACTION_CLIENT_DELETED,
        changed_by=user.id,
        old_value={"legalName": client.legal_name, "panNumber": client.pan_number,
                   "email": client.email, "createdById": client.created_by_id},
    )
    db.session.delete(client)
    commit_or_raise()
    logger.info("Client deleted id=%s by user=%s", client_id, user.id)


def assign_client(client_id: int, assigned_to_id, user) -> dict:
    """Rewrite the owner of a client (SUPER_ADMIN only). ``None`` unassigns."""
    access_scope.require_super_admin(user)
    client = load_client(client_id)

    assignee = None
    if assigned_to_id is not None:
        assignee = db.session.get(User, assigned_to_id)
        if assignee is None:
            raise NotFoundError(resource="User", resource_id=assigned_to_id)
        if not assignee.is_active:
            raise ValidationError(
                "Cannot assign to inactive team member", details={"field": "assignedToId"},
            )
        if assignee.role not in STAFF_ROLES:
            raise ValidationError(
                "Clients can only be assigned to team members",
                details={"field": "assignedToId"},
            )

    old = client.created_by_id
    client.created_by = assignee
    client.created_by_id = assignee.id if assignee else None
    write_audit(
        client_id=client.id,
        table_name="clients",
        record_id=client.id,
        action=ACTION_CLIENT_REASSIGNED,
        changed_by=user.id,
        old_value={"created_by_id": old},
        new_value={"created_by_id": client.created_by_id},
    )
    commit_or_raise()
    logger.info("Client %s reassigned %s → %s by user=%s",
                client.id, old, client.created_by_id, user.id)
    return {
        "id": client.id,
        "createdById": client.created_by_id,
        "createdByName": assignee.name if assignee else None,
    }


def get_dependency_report(client_id: int, user) -> dict:
    return stage_report(get_accessible_client(client_id, user))


def get_audit_trail(client_id: int, user) -> list[dict]:
    """Chronological audit entries for one client (dispute view)."""
    client = get_accessible_client(client_id, user)
    logs = (
        AuditLog.query.filter_by(client_id=client.id)
        .order_by(AuditLog.changed_at.asc(), AuditLog.id.asc())
        .all()
    )
    return [log.to_dict() for log in logs]
