"""
Refund-specific exceptions.

Each error a refund operation can report has its own class and a stable
error code. Services convert them into failed ServiceResults; views map
the error code to an HTTP status.

Exception Hierarchy:
    RefundNotEligibleError (ValidationError) - NOT_ELIGIBLE
    OrderNotCompletedError (ValidationError) - ORDER_NOT_COMPLETED
    RefundValidationError (ValidationError) - VALIDATION_ERROR
    RefundAlreadyActiveError (ConflictError) - ALREADY_ACTIVE
    InvalidTransitionError (ConflictError) - INVALID_TRANSITION
    ResponseWindowExpiredError (ConflictError) - WINDOW_EXPIRED
    ConcurrentModificationError (ConflictError) - CONCURRENT_MODIFICATION
    RefundRequestNotFoundError (NotFoundError) - NOT_FOUND
    RefundForbiddenError (PermissionDeniedError) - FORBIDDEN
    LedgerFailureError (ExternalServiceError) - LEDGER_FAILURE
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

if TYPE_CHECKING:
    import uuid
    from typing import Any


class RefundNotEligibleError(ValidationError):
    """Raised when a refund can no longer be requested for an order."""

    default_error_code: str = "NOT_ELIGIBLE"


class OrderNotCompletedError(ValidationError):
    """Raised when a refund is requested for an order that is not completed."""

    default_error_code: str = "ORDER_NOT_COMPLETED"


class RefundValidationError(ValidationError):
    """Raised when a command is missing mandatory input (e.g., a comment)."""

    default_error_code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, **kwargs: Any):
        self.field = field
        super().__init__(message, **kwargs)

    @property
    def field_errors(self) -> dict[str, list[str]] | None:
        if self.field is None:
            return None
        return {self.field: [self.message]}


class RefundAlreadyActiveError(ConflictError):
    """Raised when the order already has an open refund request."""

    default_error_code: str = "ALREADY_ACTIVE"


class InvalidTransitionError(ConflictError):
    """
    Raised when the current status does not accept the requested event.

    Includes every attempt on a terminal request.

    Attributes:
        current_status: Status the request was in
        event: The rejected RefundEvent
    """

    default_error_code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        current_status: str | None,
        event: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.current_status = current_status
        self.event = event
        full_details = {
            "current_status": current_status,
            "event": str(event),
        }
        if details:
            full_details.update(details)
        super().__init__(
            message or f"Cannot apply {event} to a refund request in status {current_status}",
            details=full_details,
        )


class ResponseWindowExpiredError(ConflictError):
    """
    Raised when a seller decides after the response deadline.

    The decision is only available through an administrator from then on;
    details carry ``route_to: "admin_override"`` for the caller.
    """

    default_error_code: str = "WINDOW_EXPIRED"

    def __init__(self, refund_request_id: uuid.UUID, response_deadline):
        super().__init__(
            "The seller response window has expired; the request awaits admin review",
            details={
                "refund_request_id": str(refund_request_id),
                "response_deadline": response_deadline.isoformat(),
                "route_to": "admin_override",
            },
        )


class ConcurrentModificationError(ConflictError):
    """Raised when another writer changed the request since it was read."""

    default_error_code: str = "CONCURRENT_MODIFICATION"


class RefundRequestNotFoundError(NotFoundError):
    """Raised when a refund request id does not resolve."""

    default_error_code: str = "NOT_FOUND"


class RefundForbiddenError(PermissionDeniedError):
    """Raised when the actor does not own the step they are attempting."""

    default_error_code: str = "FORBIDDEN"


class LedgerFailureError(ExternalServiceError):
    """
    Raised when the seller debit could not be confirmed.

    The transition is rolled back and the caller may retry.
    """

    default_error_code: str = "LEDGER_FAILURE"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details={**(details or {}), "retryable": True})
