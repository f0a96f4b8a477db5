"""
Dependency Checker: decides whether the next piece of work may proceed,
why it is blocked, and whose responsibility the block is.

Rule table for ``check_dependency`` (first match wins):

    msme or duns PENDING                          → blocked, CLIENT
    console account created, identity or company
      verification still outstanding               → blocked, CLIENT
    failure category / reason is technical         → blocked, COMPANY
    failure category / reason is client-caused     → blocked, CLIENT
    otherwise                                      → can proceed

The per-stage checks below (Play Console, app development, build,
submission, SEO, upload) answer the narrower question "can this stage
start" and always attribute a block to the CLIENT.

All functions are pure.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.models.workflow import (
    MANDATORY_ASSET_TYPES,
    MIN_SCREENSHOTS,
    RESPONSIBILITY_CLIENT,
    RESPONSIBILITY_COMPANY,
    STATUS_COMPLETED,
)
from app.services.fault_attribution import attribute_category, attribute_fault
from app.services.workflow_state import console_ready


@dataclass
class DependencyResult:
    can_proceed: bool
    blocked_reason: str | None = None
    responsibility: str | None = None
    missing_dependencies: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "canProceed": self.can_proceed,
            "blockedReason": self.blocked_reason,
            "responsibility": self.responsibility,
            "missingDependencies": list(self.missing_dependencies),
        }


def _ok() -> DependencyResult:
    return DependencyResult(can_proceed=True)


def _blocked(reason: str, missing: list[str], responsibility: str = RESPONSIBILITY_CLIENT):
    return DependencyResult(
        can_proceed=False,
        blocked_reason=reason,
        responsibility=responsibility,
        missing_dependencies=missing,
    )


def _pending_verifications(play_console) -> list[str]:
    missing = []
    if not play_console.identity_verification_status:
        missing.append("Identity Verification")
    if not play_console.company_verification_status:
        missing.append("Company Verification")
    return missing


# ── Composite check ──────────────────────────────────────────────────────────


def check_dependency(
    compliance,
    play_console,
    *,
    failure_category: str | None = None,
    failure_reason: str | None = None,
) -> DependencyResult:
    """Decide whether work is blocked and who is responsible."""
    if compliance is not None:
        pending = []
        if compliance.msme_status == "PENDING":
            pending.append("MSME Approval")
        if compliance.duns_status == "PENDING":
            pending.append("D-U-N-S Approval")
        if pending:
            return _blocked(
                "Awaiting client-submitted compliance certificate or number",
                pending,
            )

    if play_console is not None and play_console.account_created:
        missing = _pending_verifications(play_console)
        if missing:
            return _blocked("Play Console verification pending on client", missing)

    if failure_category or failure_reason:
        responsibility = attribute_category(failure_category) if failure_category else None
        if responsibility is None and failure_reason:
            responsibility = attribute_fault(failure_reason).responsibility
        if responsibility == RESPONSIBILITY_COMPANY:
            return _blocked(
                "Technical failure under company investigation",
                [failure_category or failure_reason],
                RESPONSIBILITY_COMPANY,
            )
        if responsibility == RESPONSIBILITY_CLIENT:
            return _blocked(
                "Failure requires client action",
                [failure_category or failure_reason],
            )

    return _ok()


# ── Per-stage checks ─────────────────────────────────────────────────────────


def check_play_console_dependencies(compliance) -> DependencyResult:
    """Play Console work needs MSME or D-U-N-S approved."""
    if compliance is None:
        return _blocked("Compliance documents not initialized", ["compliance_documents"])

    if compliance.msme_status == "APPROVED" or compliance.duns_status == "APPROVED":
        return _ok()

    return _blocked(
        "MSME or D-U-N-S verification required before Play Console work",
        ["MSME Approval", "D-U-N-S Approval"],
    )


def check_app_development_dependencies(play_console) -> DependencyResult:
    """App development needs a ready Play Console."""
    if play_console is None:
        return _blocked("Play Console status not initialized", ["play_console_status"])

    if console_ready(play_console):
        return _ok()

    missing = []
    if not play_console.account_created:
        missing.append("Play Console Account Creation")
    if not play_console.account_paid:
        missing.append("Play Console Registration Fee")
    missing.extend(_pending_verifications(play_console))
    return _blocked("Play Console verification incomplete. App development blocked.", missing)


def check_build_dependencies(compliance, play_console) -> DependencyResult:
    """Release builds need both compliance and a ready console."""
    compliance_check = check_play_console_dependencies(compliance)
    console_check = check_app_development_dependencies(play_console)
    if compliance_check.can_proceed and console_check.can_proceed:
        return _ok()
    return _blocked(
        "Cannot generate release build without verified console and compliance documents",
        compliance_check.missing_dependencies + console_check.missing_dependencies,
    )


def check_submission_dependencies(assets, client_approval: bool) -> DependencyResult:
    """Store submission needs every mandatory asset, six screenshots and client sign-off.

    Args:
        assets: iterable of objects with ``asset_type`` and ``status``.
        client_approval: the client's final approval of the listing.
    """
    assets = list(assets)
    missing = []
    for required in MANDATORY_ASSET_TYPES:
        done = any(a.asset_type == required and a.status == STATUS_COMPLETED for a in assets)
        if not done:
            missing.append(required.replace("_", " "))

    screenshots = sum(
        1 for a in assets if a.asset_type == "SCREENSHOT" and a.status == STATUS_COMPLETED
    )
    if screenshots < MIN_SCREENSHOTS:
        missing.append(f"Screenshots ({screenshots}/{MIN_SCREENSHOTS} minimum)")

    if not client_approval:
        missing.append("Client Final Approval")

    if missing:
        return _blocked("Missing mandatory assets or client approval", missing)
    return _ok()


def check_seo_dependencies(search_console_verified: bool) -> DependencyResult:
    if search_console_verified:
        return _ok()
    return _blocked(
        "Google Search Console verification pending",
        ["Search Console Verification"],
    )


def check_upload_dependencies(play_console) -> DependencyResult:
    """Uploading to the store is forbidden until identity and company are verified."""
    if play_console is None:
        return _blocked("Play Console status not initialized", ["play_console_status"])
    missing = _pending_verifications(play_console)
    if missing:
        return _blocked("Play Console verification pending. Upload is forbidden.", missing)
    return _ok()


def stage_report(client) -> dict:
    """Every per-stage check for one ORM client, keyed by stage."""
    compliance = client.compliance
    play_console = client.play_console
    review = client.submission_review
    return {
        "overall": check_dependency(compliance, play_console).to_dict(),
        "playConsole": check_play_console_dependencies(compliance).to_dict(),
        "appDevelopment": check_app_development_dependencies(play_console).to_dict(),
        "build": check_build_dependencies(compliance, play_console).to_dict(),
        "submission": check_submission_dependencies(
            client.play_store_assets, bool(review and review.client_approval),
        ).to_dict(),
        "seo": check_seo_dependencies(client.website_search_console_done).to_dict(),
        "upload": check_upload_dependencies(play_console).to_dict(),
    }
