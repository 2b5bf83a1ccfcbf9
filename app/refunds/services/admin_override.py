"""
Final administrative decisions on refund disputes.

Administrators may decide any open request (PENDING or
REJECTED_BY_SELLER), with or without a lapsed seller window. The decision
is final and always carries a justification.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError
from core.services import ServiceResult
from refunds.exceptions import RefundValidationError
from refunds.services.base import RefundTransitionService
from refunds.state_machines import DecisionAction, RefundEvent, event_for_decision

if TYPE_CHECKING:
    import uuid

    from refunds.models import RefundRequest


class AdminOverrideService(RefundTransitionService):
    """Applies an administrator's final approve or reject decision."""

    @classmethod
    def override(
        cls,
        request_id: uuid.UUID | str,
        actor_admin_id,
        action: str,
        comment: str,
    ) -> ServiceResult[RefundRequest]:
        """
        Record the administrator's decision.

        Args:
            request_id: Refund request being decided
            actor_admin_id: Id of the acting staff user (stored as decided_by_admin)
            action: "approve" or "reject"
            comment: Mandatory justification

        Returns:
            ServiceResult with the updated request, or a failure with
            NOT_FOUND, VALIDATION_ERROR, INVALID_TRANSITION,
            CONCURRENT_MODIFICATION or LEDGER_FAILURE
        """
        comment = (comment or "").strip()

        try:
            event = event_for_decision(action, admin=True)
        except ValueError:
            return ServiceResult.failure(
                f"Unknown action {action!r}",
                error_code="VALIDATION_ERROR",
                errors={"action": [f"Must be one of: {', '.join(DecisionAction.values)}"]},
            )

        def validate(snapshot: RefundRequest) -> None:
            if not comment:
                raise RefundValidationError(
                    "A comment is required for an administrative decision",
                    field="comment",
                )

        def apply(locked: RefundRequest) -> None:
            if event == RefundEvent.ADMIN_APPROVE:
                locked.admin_approve(comment=comment, admin_id=actor_admin_id)
            else:
                locked.admin_reject(comment=comment, admin_id=actor_admin_id)

        try:
            refund_request = cls._run_transition(request_id, event, validate, apply)
        except RefundValidationError as e:
            result = ServiceResult.from_exception(e)
            result.errors = e.field_errors
            return result
        except BaseApplicationError as e:
            return cls.handle_exception(
                e,
                "Admin decision rejected",
                extra={
                    "refund_request_id": str(request_id),
                    "admin_id": str(actor_admin_id),
                    "action": action,
                },
            )

        cls.get_logger().info(
            "Admin decided refund request",
            extra={
                "refund_request_id": str(refund_request.id),
                "admin_id": str(actor_admin_id),
                "action": action,
                "status": refund_request.status,
            },
        )
        return ServiceResult.success(refund_request)
