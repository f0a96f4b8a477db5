"""
Step payload validation for the seven workflow step handlers.

Each ``validate_step_<n>`` takes the raw JSON dict and returns a normalized
dict of snake_case fields, or raises ``ValidationError`` for the FIRST
failing field (fail-fast, never an aggregate).

Payload shapes (camelCase on the wire):

    1  {name, pan, type, email, phone?}
    2  {status, documentUrl?, number?}                 (MSME)
    3  {status, documentUrl?, number?}                 (D-U-N-S)
    4  {status?}                                       (Review & Submit)
    5  {accountCreated, accountPaid, identityVerified, companyVerified,
        paymentProfile?, developerInvited?, developerEmail?, consoleEmail?}
    6  {url?, verified?}                               (Domain)
    7  {website{}, appDev{}, upload{}, playConsole{}, accountSale{},
        orgCosts{}, consoleEmail?, publishingStatus?, liveUrl?, ...}
"""

import re

from email_validator import EmailNotValidError, validate_email

from app.core.exceptions import ValidationError
from app.models.client import (
    COMPANY_TYPES,
    COMPLIANCE_STATUSES,
    ONBOARDING_STATUSES,
    PUBLISHING_STATUSES,
)

PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")

# Domain URLs are relaxed: "example.com" is accepted without a scheme
_RELAXED_URL = re.compile(r"^(https?://)?[^\s/$.?#][^\s]*$", re.IGNORECASE)

_MAX_URL = 500
_MAX_TEXT = 200


def _fail(field: str, message: str):
    raise ValidationError(message, details={"field": field})


def _require_dict(data, field: str = "data") -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        _fail(field, f"{field} must be an object")
    return data


def _optional_str(data: dict, key: str, *, max_len: int = _MAX_TEXT) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        _fail(key, f"{key} must be a string")
    value = value.strip()
    if len(value) > max_len:
        _fail(key, f"{key} must be at most {max_len} characters")
    return value or None


def _bool(data: dict, key: str, *, field: str | None = None) -> bool:
    value = data.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        _fail(field or key, f"{field or key} must be true or false")
    return value


def _amount(data: dict, key: str, *, field: str, default: float | None) -> float | None:
    value = data.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _fail(field, f"{field} must be a number")
    if value < 0:
        _fail(field, f"{field} cannot be negative")
    return float(value)


def _email(value, field: str = "email", *, required: bool = True) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            _fail(field, "Email is required")
        return None
    if not isinstance(value, str):
        _fail(field, "Invalid email address")
    try:
        return validate_email(value.strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        _fail(field, "Invalid email address")


def is_valid_pan(value) -> bool:
    return isinstance(value, str) and bool(PAN_PATTERN.match(value))


# ── Step 1: Client Info ──────────────────────────────────────────────────────


def validate_client_info(data) -> dict:
    data = _require_dict(data)

    name = data.get("name")
    if not isinstance(name, str) or len(name.strip()) < 2:
        _fail("name", "Name must be at least 2 characters")

    pan = data.get("pan")
    if not is_valid_pan(pan):
        _fail("pan", "Invalid PAN format (e.g. ABCDE1234F)")

    company_type = data.get("type")
    if company_type not in COMPANY_TYPES:
        _fail("type", f"Company type must be one of: {', '.join(sorted(COMPANY_TYPES))}")

    email = _email(data.get("email"))
    phone = _optional_str(data, "phone", max_len=30)

    return {
        "legal_name": name.strip(),
        "pan_number": pan,
        "company_type": company_type,
        "email": email,
        "phone": phone,
    }


# ── Steps 2 / 3: compliance documents ────────────────────────────────────────


def validate_compliance(data) -> dict:
    data = _require_dict(data)
    status = data.get("status")
    if status not in COMPLIANCE_STATUSES:
        _fail("status", f"Status must be one of: {', '.join(sorted(COMPLIANCE_STATUSES))}")
    return {
        "status": status,
        "document_url": _optional_str(data, "documentUrl", max_len=_MAX_URL),
        "number": _optional_str(data, "number", max_len=50),
    }


# ── Step 4: Review & Submit ──────────────────────────────────────────────────


def validate_review(data) -> dict:
    data = _require_dict(data)
    status = data.get("status") or "SUBMITTED"
    if status not in ONBOARDING_STATUSES:
        _fail("status", f"Status must be one of: {', '.join(sorted(ONBOARDING_STATUSES))}")
    return {"onboarding_status": status}


# ── Step 5: Play Console ─────────────────────────────────────────────────────


def validate_play_console(data) -> dict:
    data = _require_dict(data)
    result = {
        "account_created": _bool(data, "accountCreated"),
        "account_paid": _bool(data, "accountPaid"),
        "identity_verification_status": _bool(data, "identityVerified"),
        "company_verification_status": _bool(data, "companyVerified"),
        "payment_profile_status": _bool(data, "paymentProfile"),
        "developer_invited": _bool(data, "developerInvited"),
    }
    result["developer_invite_email"] = _email(
        data.get("developerEmail"), "developerEmail", required=False,
    )
    result["console_email"] = _email(data.get("consoleEmail"), "consoleEmail", required=False)
    return result


# ── Step 6: Domain ───────────────────────────────────────────────────────────


def validate_domain(data) -> dict:
    data = _require_dict(data)
    url = _optional_str(data, "url", max_len=_MAX_URL)
    if url and not _RELAXED_URL.match(url):
        _fail("url", "Invalid URL")
    return {"website_url": url, "website_verified": _bool(data, "verified")}


# ── Step 7: Parallel Work ────────────────────────────────────────────────────


def validate_parallel_work(data, *, default_fee: float = 25.0) -> dict:
    """Normalize the step-7 payload.

    Sections ``playConsole`` / ``accountSale`` / ``orgCosts`` are optional;
    when absent the corresponding row is left untouched (``None`` here).
    """
    data = _require_dict(data)
    website = _require_dict(data.get("website"), "website")
    app_dev = _require_dict(data.get("appDev"), "appDev")
    upload = _require_dict(data.get("upload"), "upload")

    publishing_status = data.get("publishingStatus") or "NOT_SUBMITTED"
    if publishing_status not in PUBLISHING_STATUSES:
        _fail(
            "publishingStatus",
            f"Publishing status must be one of: {', '.join(sorted(PUBLISHING_STATUSES))}",
        )

    client_fields = {
        "website_design_done": _bool(website, "design", field="website.design"),
        "website_dev_done": _bool(website, "dev", field="website.dev"),
        "website_search_console_done": _bool(website, "searchConsole", field="website.searchConsole"),
        "app_ui_done": _bool(app_dev, "ui", field="appDev.ui"),
        "app_dev_done": _bool(app_dev, "dev", field="appDev.dev"),
        "app_testing_done": _bool(app_dev, "testing", field="appDev.testing"),
        "upload_assets_done": _bool(upload, "assets", field="upload.assets"),
        "upload_screenshots_done": _bool(upload, "screenshots", field="upload.screenshots"),
        "upload_apk_done": _bool(upload, "uploaded", field="upload.uploaded"),
        "published": _bool(upload, "published", field="upload.published"),
        "privacy_policy_done": _bool(upload, "privacyPolicy", field="upload.privacyPolicy"),
        "publishing_status": publishing_status,
    }
    # Search Console done means the site is verified; testing done means approved
    client_fields["website_verified"] = client_fields["website_search_console_done"]
    client_fields["app_approved"] = client_fields["app_testing_done"]

    for key, column in (
        ("liveUrl", "live_url"),
        ("assetsUrl", "assets_url"),
        ("apkUrl", "apk_url"),
        ("privacyPolicyPageUrl", "privacy_policy_page_url"),
    ):
        if key in data:
            client_fields[column] = _optional_str(data, key, max_len=_MAX_URL)

    play_console = None
    if data.get("playConsole") is not None or data.get("accountSale") is not None:
        pc = _require_dict(data.get("playConsole"), "playConsole")
        sale = _require_dict(data.get("accountSale"), "accountSale")
        play_console = {
            "console_email": _email(data.get("consoleEmail"), "consoleEmail", required=False),
            "payment_profile_status": _bool(pc, "payment", field="playConsole.payment"),
            "account_sale_complete": _bool(sale, "complete", field="accountSale.complete"),
            "account_sale_amount": _amount(
                sale, "amount", field="accountSale.amount", default=None,
            ),
        }

    org_costs = None
    if data.get("orgCosts") is not None:
        costs = _require_dict(data.get("orgCosts"), "orgCosts")
        org_costs = {
            "domain_cost": _amount(costs, "domainCost", field="orgCosts.domainCost", default=0.0),
            "play_console_fee": _amount(
                costs, "playConsoleFee", field="orgCosts.playConsoleFee", default=default_fee,
            ) or default_fee,
            "other_costs": _amount(costs, "otherCosts", field="orgCosts.otherCosts", default=0.0),
            "cost_notes": _optional_str(costs, "costNotes", max_len=2000),
        }

    return {"client": client_fields, "play_console": play_console, "org_costs": org_costs}


STEP_VALIDATORS = {
    1: validate_client_info,
    2: validate_compliance,
    3: validate_compliance,
    4: validate_review,
    5: validate_play_console,
    6: validate_domain,
}


def validate_step(step, data, *, default_fee: float = 25.0) -> dict:
    if step == 7:
        return validate_parallel_work(data, default_fee=default_fee)
    validator = STEP_VALIDATORS.get(step)
    if validator is None:
        _fail("step", "Invalid step")
    return validator(data)
