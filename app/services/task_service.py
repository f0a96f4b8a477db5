"""
Task Service: formal task rows, status transitions and rejection attribution.

Task kinds:
    website          → WebsiteTask
    app_development  → AppDevelopmentTask
    store_asset      → PlayStoreAsset (name is the asset type)

The submission review has its own status, moved through the same table by
update_review_status.
Every status change is validated against TASK_TRANSITIONS and appended to
the audit log as STATUS_CHANGED_TO_<STATUS>; those entries feed the
timeline extension calculation.
"""

import logging

from app.core.exceptions import NotFoundError, ValidationError
from app.models import db
from app.models.audit import (
    ACTION_REJECTION_ATTRIBUTED,
    ACTION_TASK_CREATED,
    STATUS_CHANGE_PREFIX,
    write_audit,
)
from app.models.workflow import (
    ASSET_TYPES,
    STATUS_FAILED,
    STATUS_NOT_STARTED,
    TASK_STATUSES,
    AppDevelopmentTask,
    PlayStoreAsset,
    SubmissionReview,
    WebsiteTask,
)
from app.services import status_transition
from app.services.client_service import get_accessible_client
from app.services.fault_attribution import attribute_fault, fault_description
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)

TASK_KINDS = {
    "website": WebsiteTask,
    "app_development": AppDevelopmentTask,
    "store_asset": PlayStoreAsset,
}


def _model_for(kind: str):
    model = TASK_KINDS.get(kind)
    if model is None:
        raise ValidationError(
            f"kind must be one of: {', '.join(sorted(TASK_KINDS))}", details={"field": "kind"},
        )
    return model


def create_task(client_id: int, data: dict, user) -> dict:
    """Add a task row in NOT_STARTED."""
    client = get_accessible_client(client_id, user, write=True)
    data = data or {}
    model = _model_for(data.get("kind"))

    name = (data.get("name") or "").strip()
    if model is PlayStoreAsset:
        name = name.upper()
        if name not in ASSET_TYPES:
            raise ValidationError(
                f"Asset type must be one of: {', '.join(sorted(ASSET_TYPES))}",
                details={"field": "name"},
            )
        task = PlayStoreAsset(client_id=client.id, asset_type=name,
                              asset_url=(data.get("assetUrl") or None))
    else:
        if len(name) < 2:
            raise ValidationError("Task name must be at least 2 characters",
                                  details={"field": "name"})
        task = model(client_id=client.id, task_name=name[:200])

    db.session.add(task)
    db.session.flush()
    write_audit(
        client_id=client.id,
        table_name=model.__tablename__,
        record_id=task.id,
        action=ACTION_TASK_CREATED,
        changed_by=user.id,
        new_value={"name": name, "status": task.status},
    )
    commit_or_raise()
    logger.info("Task created %s/%s client=%s", model.__tablename__, task.id, client.id)
    return task.to_dict()


def update_task_status(client_id: int, kind: str, task_id: int, data: dict, user) -> dict:
    """Move a task to a new status; same-status updates are a no-op."""
    client = get_accessible_client(client_id, user, write=True)
    model = _model_for(kind)
    task = db.session.get(model, task_id)
    if task is None or task.client_id != client.id:
        raise NotFoundError(resource=model.__name__, resource_id=task_id)

    data = data or {}
    new_status = data.get("status")
    if new_status not in TASK_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(sorted(TASK_STATUSES))}",
            details={"field": "status"},
        )

    if new_status == task.status:
        return task.to_dict()

    check = status_transition.validate_transition(task.status, new_status)
    if not check["valid"]:
        raise ValidationError(check["error"], details={"field": "status"})

    old = {"status": task.status, "responsibility": task.responsibility,
           "blocked_reason": task.blocked_reason}
    task.status = new_status
    task.responsibility = status_transition.status_responsibility(new_status)
    if status_transition.is_blocked_status(new_status) or new_status == STATUS_FAILED:
        task.blocked_reason = (data.get("reason") or "").strip() or None
    else:
        task.blocked_reason = None

    write_audit(
        client_id=client.id,
        table_name=model.__tablename__,
        record_id=task.id,
        action=f"{STATUS_CHANGE_PREFIX}{new_status}",
        changed_by=user.id,
        old_value=old,
        new_value={"status": task.status, "responsibility": task.responsibility,
                   "blocked_reason": task.blocked_reason},
    )
    commit_or_raise()
    logger.info("Task %s/%s %s → %s client=%s",
                model.__tablename__, task.id, old["status"], new_status, client.id)
    return task.to_dict()


def update_review_status(client_id: int, data: dict, user) -> dict:
    """Move the store review through the same transition table as tasks."""
    client = get_accessible_client(client_id, user, write=True)
    data = data or {}
    new_status = data.get("status")
    if new_status not in TASK_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(sorted(TASK_STATUSES))}",
            details={"field": "status"},
        )

    review = client.submission_review
    current = review.review_status if review is not None else STATUS_NOT_STARTED
    if new_status == current and review is not None:
        return review.to_dict()
    if new_status != current:
        check = status_transition.validate_transition(current, new_status)
        if not check["valid"]:
            raise ValidationError(check["error"], details={"field": "status"})

    if review is None:
        review = SubmissionReview(client=client, review_status=STATUS_NOT_STARTED)
        db.session.add(review)
        db.session.flush()
    if new_status == current:
        commit_or_raise()
        return review.to_dict()

    old = {"review_status": review.review_status, "responsibility": review.responsibility}
    review.review_status = new_status
    review.responsibility = status_transition.status_responsibility(new_status)

    write_audit(
        client_id=client.id,
        table_name=SubmissionReview.__tablename__,
        record_id=review.id,
        action=f"{STATUS_CHANGE_PREFIX}{new_status}",
        changed_by=user.id,
        old_value=old,
        new_value={"review_status": new_status, "responsibility": review.responsibility,
                   "reason": (data.get("reason") or "").strip() or None},
    )
    commit_or_raise()
    logger.info("Submission review %s → %s client=%s",
                old["review_status"], new_status, client.id)
    return review.to_dict()


def task_progress(client_id: int, user) -> dict:
    """Progress summary per task kind."""
    client = get_accessible_client(client_id, user)
    return {
        "website": status_transition.calculate_progress(t.status for t in client.website_tasks),
        "appDevelopment": status_transition.calculate_progress(
            t.status for t in client.app_development_tasks
        ),
        "storeAssets": status_transition.calculate_progress(
            a.status for a in client.play_store_assets
        ),
    }


def record_submission_rejection(client_id: int, reason: str, user) -> dict:
    """Mark the store review FAILED and permanently record who is at fault."""
    client = get_accessible_client(client_id, user, write=True)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Rejection reason is required", details={"field": "reason"})

    fault = attribute_fault(reason)

    review = client.submission_review
    if review is None:
        review = SubmissionReview(client=client)
        db.session.add(review)
        db.session.flush()

    old = {"review_status": review.review_status, "rejection_reason": review.rejection_reason,
           "responsibility": review.responsibility}
    review.review_status = STATUS_FAILED
    review.rejection_reason = reason
    review.responsibility = fault.responsibility
    review.published = False

    write_audit(
        client_id=client.id,
        table_name="submission_reviews",
        record_id=review.id,
        action=ACTION_REJECTION_ATTRIBUTED,
        changed_by=user.id,
        old_value=old,
        new_value={"review_status": STATUS_FAILED, "rejection_reason": reason,
                   **fault.to_dict()},
    )
    commit_or_raise()
    logger.info("Rejection attributed client=%s: %s", client.id, fault_description(fault))
    return {"submissionReview": review.to_dict(), "attribution": fault.to_dict()}
