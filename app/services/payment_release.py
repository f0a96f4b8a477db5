"""
Payment Release Engine.

Payment is released ONLY when one of these holds (first match wins):

    1. SubmissionReview published AND live URL present
    2. Every WebsiteTask COMPLETED (a BLOCKED / PENDING_CLIENT task
       short-circuits to "not eligible", naming the blocked tasks)
    3. An explicit PaymentMilestone marked eligible and not yet released

If the delay is caused by the client the timeline extends instead:
no refund, no penalty to the company.

release_payment() flips ``released`` and appends the PAYMENT_RELEASED
audit row in ONE commit; a failure rolls back both.
"""

import logging
from datetime import datetime, timezone

from app.core.exceptions import (
    AlreadyReleasedError,
    NotEligibleError,
    NotFoundError,
    ValidationError,
)
from app.models import db
from app.models.audit import (
    ACTION_MILESTONE_CREATED,
    ACTION_MILESTONE_ELIGIBILITY_CHANGED,
    ACTION_PAYMENT_RELEASED,
    CLIENT_DELAY_ACTIONS,
    AuditLog,
    write_audit,
)
from app.models.workflow import (
    STATUS_BLOCKED,
    STATUS_COMPLETED,
    STATUS_PENDING_CLIENT,
    PaymentMilestone,
    SubmissionReview,
    WebsiteTask,
)
from app.services import access_scope
from app.services.client_service import get_accessible_client
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

REASON_PUBLISHED = "App successfully published"
REASON_WEBSITE_DONE = "Website live and all tasks verified"
REASON_WEBSITE_BLOCKED = "Website tasks blocked due to pending client action"
REASON_NONE = "No payment release conditions met. App not published or milestones incomplete."


# ═════════════════════════════════════════════════════════════════════════════
# Eligibility
# ═════════════════════════════════════════════════════════════════════════════


def evaluate_eligibility(review, website_tasks, open_milestones) -> dict:
    """Pure evaluation over already-loaded rows.

    Args:
        review: SubmissionReview or None.
        website_tasks: list of WebsiteTask.
        open_milestones: eligible, unreleased milestones in creation order.
    """
    if review is not None and review.published and review.live_url:
        return {"eligible": True, "reason": REASON_PUBLISHED,
                "milestoneName": "App Publication", "blockedBy": []}

    if website_tasks:
        if all(t.status == STATUS_COMPLETED for t in website_tasks):
            return {"eligible": True, "reason": REASON_WEBSITE_DONE,
                    "milestoneName": "Website Completion", "blockedBy": []}
        blocked = [t.task_name for t in website_tasks
                   if t.status in (STATUS_BLOCKED, STATUS_PENDING_CLIENT)]
        if blocked:
            return {"eligible": False, "reason": REASON_WEBSITE_BLOCKED, "blockedBy": blocked}

    if open_milestones:
        milestone = open_milestones[0]
        return {
            "eligible": True,
            "reason": f"Milestone completed: {milestone.milestone_name}",
            "milestoneId": milestone.id,
            "milestoneName": milestone.milestone_name,
            "amount": milestone.amount,
            "blockedBy": [],
        }

    blocked_by = []
    if review is None or not review.published:
        blocked_by.append("App not yet published")
        if review is not None and review.review_status == STATUS_PENDING_CLIENT:
            blocked_by.append("App review waiting on client action")
    incomplete = [t for t in website_tasks if t.status != STATUS_COMPLETED]
    if incomplete:
        blocked_by.append(f"{len(incomplete)} website task(s) incomplete")

    return {"eligible": False, "reason": REASON_NONE, "blockedBy": blocked_by}


def check_payment_eligibility(client_id: int) -> dict:
    review = SubmissionReview.query.filter_by(client_id=client_id).first()
    tasks = WebsiteTask.query.filter_by(client_id=client_id).order_by(WebsiteTask.id).all()
    milestones = (
        PaymentMilestone.query
        .filter_by(client_id=client_id, eligible_for_payment=True, released=False)
        .order_by(PaymentMilestone.created_at.asc(), PaymentMilestone.id.asc())
        .all()
    )
    return evaluate_eligibility(review, tasks, milestones)


def get_payment_overview(client_id: int, user) -> dict:
    client = get_accessible_client(client_id, user)
    return {
        "eligibility": check_payment_eligibility(client.id),
        "milestones": [m.to_dict() for m in client.payment_milestones],
    }


# ═════════════════════════════════════════════════════════════════════════════
# Milestones
# ═════════════════════════════════════════════════════════════════════════════


def create_milestone(client_id: int, data: dict, user) -> dict:
    client = get_accessible_client(client_id, user, write=True)
    data = data or {}

    name = (data.get("name") or "").strip()
    if len(name) < 2:
        raise ValidationError("Milestone name must be at least 2 characters",
                              details={"field": "name"})
    amount = data.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount < 0:
        raise ValidationError("Amount must be a non-negative number", details={"field": "amount"})

    milestone = PaymentMilestone(
        client_id=client.id,
        milestone_name=name[:200],
        amount=float(amount),
        eligible_for_payment=bool(data.get("eligible", False)),
    )
    db.session.add(milestone)
    db.session.flush()
    write_audit(
        client_id=client.id,
        table_name="payment_milestones",
        record_id=milestone.id,
        action=ACTION_MILESTONE_CREATED,
        changed_by=user.id,
        new_value={"name": milestone.milestone_name, "amount": milestone.amount,
                   "eligible_for_payment": milestone.eligible_for_payment},
    )
    commit_or_raise()
    logger.info("Milestone %s created client=%s amount=%.2f",
                milestone.id, client.id, milestone.amount)
    return milestone.to_dict()


def _load_milestone(milestone_id: int) -> PaymentMilestone:
    milestone = db.session.get(PaymentMilestone, milestone_id)
    if milestone is None:
        raise NotFoundError(resource="PaymentMilestone", resource_id=milestone_id)
    return milestone


def mark_milestone_eligible(milestone_id: int, eligible, user) -> dict:
    milestone = _load_milestone(milestone_id)
    get_accessible_client(milestone.client_id, user, write=True)
    if not isinstance(eligible, bool):
        raise ValidationError("eligible must be true or false", details={"field": "eligible"})
    if milestone.released:
        raise AlreadyReleasedError(milestone.id)

    old = milestone.eligible_for_payment
    if old == eligible:
        return milestone.to_dict()

    milestone.eligible_for_payment = eligible
    write_audit(
        client_id=milestone.client_id,
        table_name="payment_milestones",
        record_id=milestone.id,
        action=ACTION_MILESTONE_ELIGIBILITY_CHANGED,
        changed_by=user.id,
        old_value={"eligible_for_payment": old},
        new_value={"eligible_for_payment": eligible},
    )
    commit_or_raise()
    return milestone.to_dict()


def release_payment(milestone_id: int, user) -> dict:
    """Release one milestone (SUPER_ADMIN only)."""
    access_scope.require_super_admin(user)
    milestone = _load_milestone(milestone_id)

    if not milestone.eligible_for_payment:
        raise NotEligibleError(milestone.id)
    if milestone.released:
        raise AlreadyReleasedError(milestone.id)

    released_at = datetime.now(timezone.utc)
    milestone.released = True
    milestone.released_at = released_at
    milestone.released_by_id = user.id
    write_audit(
        client_id=milestone.client_id,
        table_name="payment_milestones",
        record_id=milestone.id,
        action=ACTION_PAYMENT_RELEASED,
        changed_by=user.id,
        old_value={"released": False},
        new_value={"released": True, "releasedAt": released_at.isoformat()},
    )
    commit_or_raise()
    logger.info("Payment released milestone=%s client=%s amount=%.2f by user=%s",
                milestone.id, milestone.client_id, milestone.amount, user.id)
    return milestone.to_dict()


# ═════════════════════════════════════════════════════════════════════════════
# Timeline extension
# ═════════════════════════════════════════════════════════════════════════════


def calculate_timeline_extension(client_id: int) -> dict:
    """One day per client-caused blocking event, in chronological order."""
    logs = (
        AuditLog.query
        .filter(AuditLog.client_id == client_id, AuditLog.action.in_(CLIENT_DELAY_ACTIONS))
        .order_by(AuditLog.changed_at.asc(), AuditLog.id.asc())
        .all()
    )
    reasons = [f"{log.table_name} blocked on {log.changed_at.date().isoformat()}" for log in logs]
    return {"daysExtended": len(logs), "reasons": reasons}


def get_timeline_extension(client_id: int, user) -> dict:
    client = get_accessible_client(client_id, user)
    return calculate_timeline_extension(client.id)
