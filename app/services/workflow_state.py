"""
Workflow State Deriver: step completion predicates + sequential evaluation.

The seven onboarding steps:

    1. Client Info        - satisfied once the client record exists
    2. MSME               - compliance.msme_status == APPROVED
    3. D-U-N-S            - compliance.duns_status == APPROVED
    4. Review & Submit    - client.onboarding_status != DRAFT
    5. Play Console       - created AND paid AND identity AND company verified
    6. Domain             - client.website_verified OR client.website_url
    7. Parallel Work      - terminal; client.published overrides everything

Evaluation is strictly sequential and stops at the first unsatisfied step.
``published`` is not a gate: it forces "Completed" / not blocked even when
an earlier step would otherwise hold the client back.

Nothing here touches the database. Inputs are ORM rows or any object with
the same attribute names (compliance / play_console may be None).

Usage:
    from app.services.workflow_state import derive_state

    state = derive_state(client, client.compliance, client.play_console)
    state.current_step, state.status, state.blocked
"""

from __future__ import annotations

from dataclasses import dataclass

TOTAL_STEPS = 7

STEP_NAMES = {
    1: "Client Info",
    2: "MSME",
    3: "D-U-N-S",
    4: "Review & Submit",
    5: "Play Console",
    6: "Domain",
    7: "Parallel Work",
}

STATUS_COMPLETED = "Completed"
STATUS_MSME_PENDING = "MSME Pending"
STATUS_DUNS_PENDING = "D-U-N-S Pending"
STATUS_REVIEW_SUBMIT = "Review & Submit"
STATUS_CONSOLE_SETUP = "Play Console Setup"
STATUS_CONSOLE_PAYMENT = "Play Console Payment"
STATUS_CONSOLE_VERIFICATION = "Play Console Verification"
STATUS_DOMAIN = "Domain Setup"
STATUS_PARALLEL_WORK = "Parallel Work"


@dataclass(frozen=True)
class WorkflowState:
    current_step: int
    status: str
    blocked: bool

    def to_dict(self) -> dict:
        return {
            "currentStep": self.current_step,
            "totalSteps": TOTAL_STEPS,
            "stepName": STEP_NAMES[self.current_step],
            "status": self.status,
            "blocked": self.blocked,
        }


@dataclass(frozen=True)
class StepResult:
    """Outcome of one step predicate: passed, or held with a status label."""

    passed: bool
    status: str | None = None
    blocked: bool = False


_PASS = StepResult(passed=True)


# ── Shared computation ───────────────────────────────────────────────────────


def console_ready(play_console) -> bool:
    """The four Play Console sub-verifications that make the console usable.

    The step-5 handler stores this value; the deriver recomputes it. Both go
    through this function so they cannot disagree.
    """
    if play_console is None:
        return False
    return bool(
        play_console.account_created
        and play_console.account_paid
        and play_console.identity_verification_status
        and play_console.company_verification_status
    )


# ── Step predicates ──────────────────────────────────────────────────────────


def check_client_info(client) -> StepResult:
    return _PASS


def _check_compliance(status: str | None, label: str) -> StepResult:
    if status == "APPROVED":
        return _PASS
    return StepResult(passed=False, status=label, blocked=status == "PENDING")


def check_msme(compliance) -> StepResult:
    return _check_compliance(getattr(compliance, "msme_status", None), STATUS_MSME_PENDING)


def check_duns(compliance) -> StepResult:
    return _check_compliance(getattr(compliance, "duns_status", None), STATUS_DUNS_PENDING)


def check_review_submit(client) -> StepResult:
    if client.onboarding_status != "DRAFT":
        return _PASS
    return StepResult(passed=False, status=STATUS_REVIEW_SUBMIT)


def check_play_console(play_console) -> StepResult:
    if console_ready(play_console):
        return _PASS

    flags = [
        bool(getattr(play_console, "account_created", False)),
        bool(getattr(play_console, "account_paid", False)),
        bool(getattr(play_console, "identity_verification_status", False)),
        bool(getattr(play_console, "company_verification_status", False)),
    ]
    if not any(flags):
        return StepResult(passed=False, status=STATUS_CONSOLE_SETUP)

    created, paid = flags[0], flags[1]
    if not (created and paid):
        return StepResult(passed=False, status=STATUS_CONSOLE_PAYMENT, blocked=True)
    return StepResult(passed=False, status=STATUS_CONSOLE_VERIFICATION, blocked=True)


def check_domain(client) -> StepResult:
    if client.website_verified or (client.website_url or "").strip():
        return _PASS
    return StepResult(passed=False, status=STATUS_DOMAIN)


# ── Deriver ──────────────────────────────────────────────────────────────────


def derive_state(client, compliance, play_console) -> WorkflowState:
    """Derive ``{current_step, status, blocked}`` from a client snapshot.

    Pure and deterministic: identical inputs always give identical output.
    """
    if client.published:
        return WorkflowState(current_step=TOTAL_STEPS, status=STATUS_COMPLETED, blocked=False)

    gates = (
        (1, lambda: check_client_info(client)),
        (2, lambda: check_msme(compliance)),
        (3, lambda: check_duns(compliance)),
        (4, lambda: check_review_submit(client)),
        (5, lambda: check_play_console(play_console)),
        (6, lambda: check_domain(client)),
    )
    for step, predicate in gates:
        result = predicate()
        if not result.passed:
            return WorkflowState(current_step=step, status=result.status, blocked=result.blocked)

    return WorkflowState(current_step=TOTAL_STEPS, status=STATUS_PARALLEL_WORK, blocked=False)


def derive_client_state(client) -> WorkflowState:
    """Shortcut for an ORM Client with its 1:1 rows loaded."""
    return derive_state(client, client.compliance, client.play_console)


def derived_bucket(state: WorkflowState) -> str:
    """List-filter bucket: COMPLETED, BLOCKED or ONGOING."""
    if state.status == STATUS_COMPLETED:
        return "COMPLETED"
    if state.blocked:
        return "BLOCKED"
    return "ONGOING"


# ── Portal progress ──────────────────────────────────────────────────────────


def progress_milestones(client, play_console, organization_cost) -> list[dict]:
    """Coarse delivery milestones shown to clients in the portal."""
    domain_cost = getattr(organization_cost, "domain_cost", 0) or 0
    milestones = [
        ("play_console", "Play Console", bool(getattr(play_console, "account_created", False))),
        ("domain", "Domain", domain_cost > 0 or bool(client.website_url)),
        ("website", "Website", bool(client.website_dev_done)),
        ("app_dev", "App Dev", bool(client.app_dev_done and client.apk_url)),
        ("published", "Published",
         client.publishing_status == "PRODUCTION" or bool(client.live_url)),
    ]
    return [{"id": mid, "label": label, "done": done} for mid, label, done in milestones]
