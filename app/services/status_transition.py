"""
Task status transitions for the formal task model.

Validates a Status change against ``TASK_TRANSITIONS`` and derives the
responsibility a status implies. Pure functions.
"""

from __future__ import annotations

from app.models.workflow import (
    RESPONSIBILITY_CLIENT,
    RESPONSIBILITY_COMPANY,
    STATUS_BLOCKED,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING_CLIENT,
    STATUS_PENDING_VERIFICATION,
    TASK_TRANSITIONS,
)


def validate_transition(current: str, new: str) -> dict:
    """
    Returns:
        {"valid": bool, "error": str | None}
    """
    if current == new:
        return {"valid": True, "error": None}

    allowed = TASK_TRANSITIONS.get(current, [])
    if new not in allowed:
        return {
            "valid": False,
            "error": f"Invalid transition: {current} -> {new}. "
                     f"Allowed: {', '.join(allowed) or 'none'}",
        }
    return {"valid": True, "error": None}


def status_responsibility(status: str) -> str | None:
    if status in (STATUS_PENDING_CLIENT, STATUS_BLOCKED):
        return RESPONSIBILITY_CLIENT
    if status in (STATUS_IN_PROGRESS, STATUS_PENDING_VERIFICATION, STATUS_FAILED):
        return RESPONSIBILITY_COMPANY
    return None


def is_blocked_status(status: str) -> bool:
    return status in (STATUS_BLOCKED, STATUS_PENDING_CLIENT)


def is_terminal_status(status: str) -> bool:
    return status == STATUS_COMPLETED


def calculate_progress(statuses) -> dict:
    """Completion percentage over a list of statuses."""
    statuses = list(statuses)
    total = len(statuses)
    completed = sum(1 for s in statuses if s == STATUS_COMPLETED)
    blocked = sum(1 for s in statuses if is_blocked_status(s))
    return {
        "percentage": round(completed / total * 100) if total else 0,
        "completed": completed,
        "total": total,
        "blocked": blocked,
    }
