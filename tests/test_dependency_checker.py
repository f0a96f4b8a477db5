"""
Dependency checker and fault attribution tests.

Tests cover:
  - check_dependency rule table (compliance, console verification, failure category)
  - per-stage checks (Play Console, app development, build, submission, SEO, upload)
  - rejection-reason classification and its confidence levels
"""

from types import SimpleNamespace

import pytest

from app.models.workflow import MIN_SCREENSHOTS
from app.services.dependency_checker import (
    check_app_development_dependencies,
    check_build_dependencies,
    check_dependency,
    check_play_console_dependencies,
    check_seo_dependencies,
    check_submission_dependencies,
    check_upload_dependencies,
)
from app.services.fault_attribution import (
    CONFIDENCE_HIGH,
    CONFIDENCE_LOW,
    CONFIDENCE_MEDIUM,
    attribute_category,
    attribute_fault,
    fault_description,
    is_refund_applicable,
    should_extend_timeline,
)


def _compliance(msme="APPROVED", duns="APPROVED"):
    return SimpleNamespace(msme_status=msme, duns_status=duns)


def _console(created=True, paid=True, identity=True, company=True):
    return SimpleNamespace(
        account_created=created,
        account_paid=paid,
        identity_verification_status=identity,
        company_verification_status=company,
    )


def _asset(asset_type, status="COMPLETED"):
    return SimpleNamespace(asset_type=asset_type, status=status)


def _complete_assets():
    assets = [_asset(t) for t in ("ICON", "SHORT_DESCRIPTION", "LONG_DESCRIPTION",
                                  "FEATURE_GRAPHIC")]
    assets += [_asset("SCREENSHOT") for _ in range(MIN_SCREENSHOTS)]
    return assets


# ═════════════════════════════════════════════════════════════════════════════
# check_dependency
# ═════════════════════════════════════════════════════════════════════════════


class TestCheckDependency:
    def test_everything_clear(self):
        result = check_dependency(_compliance(), _console())
        assert result.to_dict() == {
            "canProceed": True,
            "blockedReason": None,
            "responsibility": None,
            "missingDependencies": [],
        }

    def test_pending_msme_is_client_fault(self):
        result = check_dependency(_compliance(msme="PENDING"), _console())
        assert result.can_proceed is False
        assert result.responsibility == "CLIENT"
        assert result.missing_dependencies == ["MSME Approval"]

    def test_both_pending(self):
        result = check_dependency(_compliance(msme="PENDING", duns="PENDING"), None)
        assert result.missing_dependencies == ["MSME Approval", "D-U-N-S Approval"]

    def test_console_verification_pending_is_client_fault(self):
        result = check_dependency(_compliance(), _console(identity=False))
        assert result.can_proceed is False
        assert result.responsibility == "CLIENT"
        assert result.missing_dependencies == ["Identity Verification"]

    def test_console_not_created_is_not_blocked(self):
        result = check_dependency(_compliance(), _console(False, False, False, False))
        assert result.can_proceed is True

    @pytest.mark.parametrize("category", ["TECHNICAL", "CRASH", "ANR", "BUILD"])
    def test_technical_failure_is_company_fault(self, category):
        result = check_dependency(_compliance(), _console(), failure_category=category)
        assert result.can_proceed is False
        assert result.responsibility == "COMPANY"

    def test_failure_reason_text_classified(self):
        result = check_dependency(_compliance(), _console(),
                                  failure_reason="Rejected: missing screenshots")
        assert result.responsibility == "CLIENT"

    def test_compliance_dominates_technical_failure(self):
        result = check_dependency(_compliance(duns="PENDING"), _console(),
                                  failure_category="CRASH")
        assert result.responsibility == "CLIENT"


# ═════════════════════════════════════════════════════════════════════════════
# Per-stage checks
# ═════════════════════════════════════════════════════════════════════════════


class TestStageChecks:
    def test_play_console_needs_one_approval(self):
        assert check_play_console_dependencies(_compliance(duns="NOT_CREATED")).can_proceed
        blocked = check_play_console_dependencies(_compliance("PENDING", "NOT_CREATED"))
        assert blocked.can_proceed is False

    def test_play_console_without_compliance_row(self):
        assert check_play_console_dependencies(None).can_proceed is False

    def test_app_development_lists_every_missing_step(self):
        result = check_app_development_dependencies(_console(False, False, False, False))
        assert result.missing_dependencies == [
            "Play Console Account Creation",
            "Play Console Registration Fee",
            "Identity Verification",
            "Company Verification",
        ]

    def test_build_combines_both_checks(self):
        result = check_build_dependencies(_compliance("PENDING", "PENDING"),
                                          _console(company=False))
        assert result.can_proceed is False
        assert "MSME Approval" in result.missing_dependencies
        assert "Company Verification" in result.missing_dependencies

    def test_build_clear(self):
        assert check_build_dependencies(_compliance(), _console()).can_proceed is True

    def test_submission_complete(self):
        assert check_submission_dependencies(_complete_assets(), True).can_proceed is True

    def test_submission_needs_client_approval(self):
        result = check_submission_dependencies(_complete_assets(), False)
        assert result.missing_dependencies == ["Client Final Approval"]

    def test_submission_counts_only_completed_screenshots(self):
        assets = _complete_assets()
        assets[-1] = _asset("SCREENSHOT", status="IN_PROGRESS")
        result = check_submission_dependencies(assets, True)
        assert result.missing_dependencies == [
            f"Screenshots ({MIN_SCREENSHOTS - 1}/{MIN_SCREENSHOTS} minimum)",
        ]

    def test_submission_missing_icon(self):
        assets = [a for a in _complete_assets() if a.asset_type != "ICON"]
        result = check_submission_dependencies(assets, True)
        assert result.missing_dependencies == ["ICON"]

    def test_seo(self):
        assert check_seo_dependencies(True).can_proceed is True
        assert check_seo_dependencies(False).missing_dependencies == [
            "Search Console Verification",
        ]

    def test_upload_forbidden_until_verified(self):
        result = check_upload_dependencies(_console(identity=False, company=False))
        assert result.can_proceed is False
        assert result.missing_dependencies == ["Identity Verification", "Company Verification"]
        assert check_upload_dependencies(_console()).can_proceed is True


# ═════════════════════════════════════════════════════════════════════════════
# Fault attribution
# ═════════════════════════════════════════════════════════════════════════════


class TestFaultAttribution:
    @pytest.mark.parametrize("reason, pattern", [
        ("Your app violates our privacy policy requirements", "privacy policy"),
        ("Feature graphic does not meet guidelines", "feature graphic"),
        ("Incorrect content rating questionnaire", "content rating"),
    ])
    def test_client_patterns(self, reason, pattern):
        fault = attribute_fault(reason)
        assert fault.responsibility == "CLIENT"
        assert fault.matched_pattern == pattern
        assert fault.confidence == CONFIDENCE_HIGH

    @pytest.mark.parametrize("reason", [
        "App crashes on launch",
        "ANR detected during review",
        "Performance is unacceptable on low-end devices",
    ])
    def test_company_patterns(self, reason):
        fault = attribute_fault(reason)
        assert fault.responsibility == "COMPANY"
        assert fault.confidence == CONFIDENCE_HIGH

    def test_client_patterns_checked_first(self):
        fault = attribute_fault("Privacy policy page shows an error")
        assert fault.responsibility == "CLIENT"

    def test_keyword_scoring(self):
        fault = attribute_fault("Please provide the documents we asked for")
        assert fault.responsibility == "CLIENT"
        assert fault.confidence == CONFIDENCE_MEDIUM

        fault = attribute_fault("Please fix and resolve the reported problem")
        assert fault.responsibility == "COMPANY"
        assert fault.confidence == CONFIDENCE_MEDIUM

    def test_low_confidence_default(self):
        fault = attribute_fault("Rejected")
        assert fault.responsibility == "CLIENT"
        assert fault.confidence == CONFIDENCE_LOW
        assert fault_description(fault).startswith("[CLIENT FAULT] ?")

    def test_categories(self):
        assert attribute_category("crash") == "COMPANY"
        assert attribute_category("DOCUMENT") == "CLIENT"
        assert attribute_category("UNKNOWN") is None

    def test_consequences(self):
        assert should_extend_timeline("CLIENT") is True
        assert should_extend_timeline("COMPANY") is False
        assert is_refund_applicable("COMPANY") is True
        assert is_refund_applicable("CLIENT") is False
