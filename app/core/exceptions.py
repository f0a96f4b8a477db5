"""
Platform-wide exception hierarchy.

Services raise these types; the application registers one handler per type
in ``app/__init__.py`` and every blueprint gets consistent HTTP status codes.

Usage:
    from app.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Client", resource_id=42)
    raise ValidationError("Invalid PAN format", details={"field": "pan"})
"""


class AuthenticationError(Exception):
    """Raised when no valid caller identity is present.

    Maps to HTTP 401. The message is generic on purpose; the reason is logged.
    """

    def __init__(self, reason: str = "Not authenticated") -> None:
        self.reason = reason
        super().__init__(reason)


class ForbiddenError(Exception):
    """Raised when the caller is authenticated but lacks role or ownership.

    Maps to HTTP 403. The HTTP body is always "Access denied"; ``reason`` is
    for logs only.
    """

    def __init__(self, reason: str = "Access denied") -> None:
        self.reason = reason
        super().__init__(reason)


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "Client", "PaymentMilestone").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails validation or a business rule.

    Validation is fail-fast: the message describes the first failing field
    only. Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional structured payload, usually ``{"field": name}``.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class WrongPasswordError(ValidationError):
    """Raised when the current password supplied for a change does not match."""

    def __init__(self) -> None:
        super().__init__("Current password is incorrect", details={"field": "currentPassword"})


class ConflictError(Exception):
    """Raised when an operation would violate a uniqueness or state rule.

    Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The field in conflict.
        value: The conflicting value (logged, not echoed in the HTTP response).
        message: Optional override for the human-readable message.
    """

    def __init__(
        self,
        resource: str,
        field: str,
        value: str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(message or f"{resource} with {field}={value!r} already exists")


class DuplicatePanError(ConflictError):
    def __init__(self, value: str | None = None) -> None:
        super().__init__("Client", "pan_number", value,
                         message="A client with this PAN number already exists")


class DuplicateEmailError(ConflictError):
    def __init__(self, resource: str = "Client", value: str | None = None) -> None:
        super().__init__(resource, "email", value,
                         message=f"A {resource.lower()} with this email already exists")


class AlreadyReleasedError(ConflictError):
    def __init__(self, milestone_id: int) -> None:
        super().__init__("PaymentMilestone", "released", str(milestone_id),
                         message="Payment already released")


class NotEligibleError(Exception):
    """Raised when a payment milestone is released before it is eligible. HTTP 409."""

    def __init__(self, milestone_id: int) -> None:
        self.milestone_id = milestone_id
        super().__init__("Milestone is not eligible for payment")
