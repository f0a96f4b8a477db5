"""
Portal Service: read-only self-service view for a client's linked user.

Shows the derived workflow position, the coarse delivery milestones, the
items currently waiting on the client and the resulting timeline extension.
"""

from app.core.exceptions import ForbiddenError
from app.models.workflow import RESPONSIBILITY_CLIENT
from app.services.client_service import load_client
from app.services.dependency_checker import check_dependency
from app.services.payment_release import calculate_timeline_extension
from app.services.status_transition import is_blocked_status
from app.services.workflow_state import derive_client_state, progress_milestones


def _client_blocked_items(client) -> list[dict]:
    items = []
    groups = (
        ("website", client.website_tasks),
        ("app_development", client.app_development_tasks),
        ("store_asset", client.play_store_assets),
    )
    for kind, rows in groups:
        for row in rows:
            if is_blocked_status(row.status) and row.responsibility == RESPONSIBILITY_CLIENT:
                items.append({
                    "kind": kind,
                    "id": row.id,
                    "name": row.display_name,
                    "status": row.status,
                    "reason": row.blocked_reason,
                })
    return items


def get_portal_overview(user) -> dict:
    if user.client_id is None:
        raise ForbiddenError(f"user {user.id} has no linked client")
    client = load_client(user.client_id)

    state = derive_client_state(client)
    dependency = check_dependency(client.compliance, client.play_console)
    return {
        "client": {
            "id": client.id,
            "name": client.legal_name,
            "type": client.company_type,
            "email": client.email,
            "onboardingStatus": client.onboarding_status,
            "publishingStatus": client.publishing_status,
            "liveUrl": client.live_url,
        },
        "state": state.to_dict(),
        "progress": progress_milestones(client, client.play_console, client.organization_cost),
        "compliance": client.compliance.to_dict() if client.compliance else None,
        "dependency": dependency.to_dict(),
        "pendingOnYou": _client_blocked_items(client),
        "timelineExtension": calculate_timeline_extension(client.id),
    }
