"""
Service layer building blocks.

Services hold the business rules; views only translate HTTP to service
calls and ServiceResult back to HTTP.

Expected outcomes of a command (not eligible, wrong actor, already closed,
ledger down) come back as a failed ServiceResult carrying a stable
``error_code``. Only programming errors and infrastructure failures the
service cannot classify are raised.

Usage:
    result = SellerDecisionService.decide(request_id, seller.pk, "approve")
    if not result:
        return Response(result.to_response(), status=ERROR_STATUS_CODES[result.error_code])
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from django.db import transaction

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service command.

    Attributes:
        success: Whether the command took effect
        data: The resulting object on success
        error: Human-readable failure message
        error_code: Machine-readable code clients switch on
        errors: Field-level messages for validation failures
        details: Structured context (current status, ids, ``route_to`` hints)
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = None
    details: dict[str, Any] | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
        details: dict[str, Any] | None = None,
    ) -> ServiceResult[T]:
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
            details=details,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Failed result for ``exc``.

        Application errors keep their message, code and details; anything
        else is reported under its class name.
        """
        if isinstance(exc, BaseApplicationError):
            return cls.failure(
                exc.message,
                error_code=error_code or exc.error_code,
                details=exc.details or None,
            )
        return cls.failure(str(exc), error_code=error_code or type(exc).__name__.upper())

    def to_response(self) -> dict[str, Any]:
        """API body: ``{"success", "data"}`` or ``{"success", "error", ...}``."""
        if self.success:
            return {"success": True, "data": self.data}

        body: dict[str, Any] = {"success": False, "error": self.error}
        for key in ("error_code", "errors", "details"):
            value = getattr(self, key)
            if value:
                body[key] = value
        return body

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base for stateless service classes (classmethods/staticmethods only).
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named ``<module>.<ServiceClass>``."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Iterator[None]:
        """
        Run the block in one database transaction.

        A status change and its ledger debit are written in the same block,
        so a failed debit also rolls back the status change.
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str,
        log_level: int = logging.INFO,
        extra: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """
        Log ``exc`` under ``context`` and return it as a failed result.

        Rejections a caller can act on are logged at INFO; pass ERROR for
        failures that need attention, which also records the traceback.
        """
        log_extra = {**(extra or {}), "error_code": getattr(exc, "error_code", None)}
        cls.get_logger().log(
            log_level,
            context,
            extra=log_extra,
            exc_info=log_level >= logging.ERROR,
        )
        return ServiceResult.from_exception(exc)
