"""
Application error hierarchy.

Every domain error carries a message, a stable ``error_code`` that API
clients switch on, and optional structured ``details``. Domain apps
subclass the category that matches the HTTP semantics:

    BaseApplicationError
    ├── ValidationError        400
    ├── NotFoundError          404
    ├── PermissionDeniedError  403
    ├── ConflictError          409
    └── ExternalServiceError   503

Example:
    raise ConflictError(
        "Refund request is already closed",
        error_code="INVALID_TRANSITION",
        details={"current_status": "approved_by_seller"},
    )
"""

from __future__ import annotations

from typing import Any


class BaseApplicationError(Exception):
    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """``{"error", "error_code", "details"?}`` for API bodies."""
        body: dict[str, Any] = {"error": self.message, "error_code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ValidationError(BaseApplicationError):
    """
    A rule that needs domain context failed (a mandatory comment, a closed window).

    Request-shape validation stays in DRF serializers.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Authenticated, but not the owner of the resource.

    Missing or invalid credentials are handled by DRF before services run.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """The resource's current state does not allow the operation."""

    default_error_code: str = "CONFLICT"


class ExternalServiceError(BaseApplicationError):
    """A collaborator outside this process failed; retrying may succeed."""

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
