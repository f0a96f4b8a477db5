"""
Workflow state deriver tests.

Covers the sequential gate evaluation in ``app/services/workflow_state.py``:
    - earliest unsatisfied gate dominates
    - published overrides every gate
    - Play Console partial-completion sub-reasons
    - consoleReady shared computation
    - list bucket and portal progress milestones
"""

from types import SimpleNamespace

import pytest

from app.services.workflow_state import (
    STATUS_COMPLETED,
    STATUS_CONSOLE_PAYMENT,
    STATUS_CONSOLE_SETUP,
    STATUS_CONSOLE_VERIFICATION,
    STATUS_DOMAIN,
    STATUS_DUNS_PENDING,
    STATUS_MSME_PENDING,
    STATUS_PARALLEL_WORK,
    STATUS_REVIEW_SUBMIT,
    WorkflowState,
    console_ready,
    derive_state,
    derived_bucket,
    progress_milestones,
)


# ═════════════════════════════════════════════════════════════════════════════
# Snapshot builders
# ═════════════════════════════════════════════════════════════════════════════


def _client(**overrides):
    fields = dict(
        published=False,
        onboarding_status="SUBMITTED",
        website_verified=False,
        website_url="example.com",
        website_dev_done=False,
        app_dev_done=False,
        apk_url=None,
        publishing_status="NOT_SUBMITTED",
        live_url=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _compliance(msme="APPROVED", duns="APPROVED"):
    return SimpleNamespace(msme_status=msme, duns_status=duns)


def _console(created=True, paid=True, identity=True, company=True):
    return SimpleNamespace(
        account_created=created,
        account_paid=paid,
        identity_verification_status=identity,
        company_verification_status=company,
    )


# ═════════════════════════════════════════════════════════════════════════════
# Sequential gates
# ═════════════════════════════════════════════════════════════════════════════


class TestDeriveState:
    def test_all_gates_passed_reaches_parallel_work(self):
        state = derive_state(_client(), _compliance(), _console())
        assert state == WorkflowState(current_step=7, status=STATUS_PARALLEL_WORK, blocked=False)

    def test_pure_and_idempotent(self):
        args = (_client(), _compliance(msme="PENDING"), _console(paid=False))
        assert derive_state(*args) == derive_state(*args)

    def test_msme_pending_blocks_at_step_2(self):
        state = derive_state(_client(), _compliance(msme="PENDING"), _console())
        assert state.current_step == 2
        assert state.status == STATUS_MSME_PENDING
        assert state.blocked is True

    @pytest.mark.parametrize("duns", ["NOT_CREATED", "PENDING", "APPROVED"])
    @pytest.mark.parametrize("onboarding", ["DRAFT", "SUBMITTED"])
    def test_msme_pending_dominates_later_fields(self, duns, onboarding):
        client = _client(onboarding_status=onboarding, website_url=None)
        state = derive_state(client, _compliance(msme="PENDING", duns=duns), None)
        assert (state.current_step, state.blocked) == (2, True)

    def test_msme_not_created_holds_without_blocking(self):
        state = derive_state(_client(), _compliance(msme="NOT_CREATED"), _console())
        assert state.current_step == 2
        assert state.blocked is False

    def test_duns_pending_blocks_at_step_3(self):
        state = derive_state(_client(), _compliance(duns="PENDING"), _console())
        assert state == WorkflowState(current_step=3, status=STATUS_DUNS_PENDING, blocked=True)

    def test_missing_compliance_row_holds_at_step_2(self):
        state = derive_state(_client(), None, _console())
        assert state.current_step == 2
        assert state.blocked is False

    def test_draft_holds_at_review(self):
        state = derive_state(_client(onboarding_status="DRAFT"), _compliance(), _console())
        assert state == WorkflowState(current_step=4, status=STATUS_REVIEW_SUBMIT, blocked=False)

    @pytest.mark.parametrize("status", ["SUBMITTED", "VERIFIED", "REJECTED"])
    def test_any_non_draft_passes_review(self, status):
        state = derive_state(_client(onboarding_status=status), _compliance(), _console())
        assert state.current_step == 7


class TestPlayConsoleGate:
    def test_nothing_started(self):
        state = derive_state(_client(), _compliance(), _console(False, False, False, False))
        assert state == WorkflowState(current_step=5, status=STATUS_CONSOLE_SETUP, blocked=False)

    def test_no_console_row(self):
        state = derive_state(_client(), _compliance(), None)
        assert state.current_step == 5
        assert state.status == STATUS_CONSOLE_SETUP

    def test_created_but_unpaid(self):
        state = derive_state(_client(), _compliance(), _console(paid=False, identity=False,
                                                                company=False))
        assert state == WorkflowState(current_step=5, status=STATUS_CONSOLE_PAYMENT, blocked=True)

    def test_paid_but_unverified(self):
        state = derive_state(_client(), _compliance(), _console(company=False))
        assert state == WorkflowState(
            current_step=5, status=STATUS_CONSOLE_VERIFICATION, blocked=True,
        )


class TestDomainGate:
    def test_no_url_not_verified(self):
        state = derive_state(_client(website_url=""), _compliance(), _console())
        assert state == WorkflowState(current_step=6, status=STATUS_DOMAIN, blocked=False)

    def test_whitespace_url_does_not_count(self):
        state = derive_state(_client(website_url="   "), _compliance(), _console())
        assert state.current_step == 6

    def test_verified_without_url_passes(self):
        state = derive_state(_client(website_url=None, website_verified=True),
                             _compliance(), _console())
        assert state.current_step == 7


class TestPublishedOverride:
    def test_published_overrides_pending_msme(self):
        state = derive_state(_client(published=True), _compliance(msme="PENDING"), _console())
        assert state == WorkflowState(current_step=7, status=STATUS_COMPLETED, blocked=False)

    def test_published_with_no_sub_rows(self):
        state = derive_state(_client(published=True, onboarding_status="DRAFT"), None, None)
        assert state.status == STATUS_COMPLETED
        assert state.blocked is False

    def test_to_dict_shape(self):
        data = derive_state(_client(published=True), None, None).to_dict()
        assert data == {
            "currentStep": 7,
            "totalSteps": 7,
            "stepName": "Parallel Work",
            "status": STATUS_COMPLETED,
            "blocked": False,
        }


# ═════════════════════════════════════════════════════════════════════════════
# Shared helpers
# ═════════════════════════════════════════════════════════════════════════════


class TestConsoleReady:
    @pytest.mark.parametrize("flags", [
        (False, True, True, True),
        (True, False, True, True),
        (True, True, False, True),
        (True, True, True, False),
    ])
    def test_any_missing_flag_is_not_ready(self, flags):
        assert console_ready(_console(*flags)) is False

    def test_all_flags_ready(self):
        assert console_ready(_console()) is True

    def test_none_is_not_ready(self):
        assert console_ready(None) is False


class TestBuckets:
    def test_completed(self):
        assert derived_bucket(WorkflowState(7, STATUS_COMPLETED, False)) == "COMPLETED"

    def test_blocked(self):
        assert derived_bucket(WorkflowState(2, STATUS_MSME_PENDING, True)) == "BLOCKED"

    def test_ongoing(self):
        assert derived_bucket(WorkflowState(7, STATUS_PARALLEL_WORK, False)) == "ONGOING"


class TestProgressMilestones:
    def test_fresh_client_has_nothing_done(self):
        milestones = progress_milestones(_client(website_url=None), None, None)
        assert [m["id"] for m in milestones] == [
            "play_console", "domain", "website", "app_dev", "published",
        ]
        assert not any(m["done"] for m in milestones)

    def test_domain_done_by_cost_or_url(self):
        cost = SimpleNamespace(domain_cost=12.0)
        by_cost = progress_milestones(_client(website_url=None), None, cost)
        by_url = progress_milestones(_client(website_url="shop.example"), None, None)
        assert by_cost[1]["done"] is True
        assert by_url[1]["done"] is True

    def test_app_dev_requires_apk(self):
        without_apk = progress_milestones(_client(app_dev_done=True), None, None)
        with_apk = progress_milestones(_client(app_dev_done=True, apk_url="https://x/app.apk"),
                                       None, None)
        assert without_apk[3]["done"] is False
        assert with_apk[3]["done"] is True

    def test_published_by_production_status(self):
        milestones = progress_milestones(_client(publishing_status="PRODUCTION"), None, None)
        assert milestones[4]["done"] is True
