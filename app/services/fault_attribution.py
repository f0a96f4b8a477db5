"""
Fault Attribution: assigns CLIENT or COMPANY responsibility to a failure.

Classification is fixed:
    policy / asset / metadata / content rating / legal  → CLIENT
    crash / ANR / technical / build / performance      → COMPANY

Pattern lists are checked first (CLIENT list before COMPANY list), then a
keyword score, then a low-confidence CLIENT default. The result is written
to the audit log by the caller and never re-derived later.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.models.workflow import RESPONSIBILITY_CLIENT, RESPONSIBILITY_COMPANY

CONFIDENCE_HIGH = "HIGH"
CONFIDENCE_MEDIUM = "MEDIUM"
CONFIDENCE_LOW = "LOW"

CLIENT_FAULT_PATTERNS = (
    # Policy
    "policy violation", "privacy policy", "data safety", "terms of service",
    "inappropriate content", "intellectual property", "copyright", "trademark",
    # Assets
    "asset quality", "missing screenshots", "screenshot quality", "icon quality",
    "feature graphic", "incorrect description", "description mismatch",
    # Metadata
    "metadata issue", "metadata violation", "app name", "title violation",
    "keyword stuffing",
    # Content rating
    "content rating", "age rating", "target audience", "children", "families",
    # Legal / compliance
    "legal issue", "compliance", "government id", "identity verification",
    "developer verification", "account verification",
)

COMPANY_FAULT_PATTERNS = (
    # Crashes
    "crash", "crashes", "anr", "not responding", "force close", "force stop",
    # Technical
    "technical issue", "functionality", "app not working", "doesn't work",
    "broken", "bug", "error",
    # Build
    "build error", "compilation", "apk issue", "aab issue", "signing",
    # Performance
    "performance", "slow", "unresponsive", "memory", "battery drain",
)

# Failure categories used by the formal task model
CLIENT_FAILURE_CATEGORIES = {"DOCUMENT", "ASSET", "POLICY", "METADATA", "VERIFICATION"}
COMPANY_FAILURE_CATEGORIES = {"TECHNICAL", "BUILD", "CRASH", "ANR", "PERFORMANCE"}

_CLIENT_HINTS = ("provide", "submit", "upload", "missing", "incomplete", "required")
_COMPANY_HINTS = ("fix", "resolve", "update code", "debug", "implement")


@dataclass(frozen=True)
class FaultAttribution:
    responsibility: str
    matched_pattern: str | None
    confidence: str
    explanation: str

    def to_dict(self) -> dict:
        return {
            "responsibility": self.responsibility,
            "matchedPattern": self.matched_pattern,
            "confidence": self.confidence,
            "explanation": self.explanation,
        }


def attribute_fault(rejection_reason: str) -> FaultAttribution:
    """Classify a store rejection / failure reason."""
    reason = (rejection_reason or "").lower()

    for pattern in CLIENT_FAULT_PATTERNS:
        if pattern in reason:
            return FaultAttribution(
                RESPONSIBILITY_CLIENT, pattern, CONFIDENCE_HIGH,
                f"Rejection reason contains '{pattern}' which indicates a client-side "
                "issue (policy, assets, or documentation).",
            )

    for pattern in COMPANY_FAULT_PATTERNS:
        if pattern in reason:
            return FaultAttribution(
                RESPONSIBILITY_COMPANY, pattern, CONFIDENCE_HIGH,
                f"Rejection reason contains '{pattern}' which indicates a "
                "technical/development issue.",
            )

    client_score = sum(1 for hint in _CLIENT_HINTS if hint in reason)
    company_score = sum(1 for hint in _COMPANY_HINTS if hint in reason)

    if client_score > company_score:
        return FaultAttribution(
            RESPONSIBILITY_CLIENT, None, CONFIDENCE_MEDIUM,
            "Analysis suggests client-related issue based on action keywords.",
        )
    if company_score > client_score:
        return FaultAttribution(
            RESPONSIBILITY_COMPANY, None, CONFIDENCE_MEDIUM,
            "Analysis suggests technical issue based on action keywords.",
        )

    return FaultAttribution(
        RESPONSIBILITY_CLIENT, None, CONFIDENCE_LOW,
        "Unable to determine clear responsibility. Defaulting to CLIENT. "
        "Manual review recommended.",
    )


def attribute_category(category: str) -> str | None:
    """Responsibility for a named failure category, None when unknown."""
    category = (category or "").upper()
    if category in COMPANY_FAILURE_CATEGORIES:
        return RESPONSIBILITY_COMPANY
    if category in CLIENT_FAILURE_CATEGORIES:
        return RESPONSIBILITY_CLIENT
    return None


def fault_description(fault: FaultAttribution) -> str:
    tag = "[CLIENT FAULT]" if fault.responsibility == RESPONSIBILITY_CLIENT else "[COMPANY FAULT]"
    marker = {CONFIDENCE_HIGH: "+", CONFIDENCE_MEDIUM: "~"}.get(fault.confidence, "?")
    return f"{tag} {marker} {fault.explanation}"


def should_extend_timeline(responsibility: str) -> bool:
    """Client-caused delays extend the delivery timeline."""
    return responsibility == RESPONSIBILITY_CLIENT


def is_refund_applicable(responsibility: str) -> bool:
    return responsibility == RESPONSIBILITY_COMPANY
