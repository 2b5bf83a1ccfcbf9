"""
Seller decisions on pending refund requests.

A seller decides once, within the response window:
- approve: APPROVED_BY_SELLER, and the seller balance is debited in the
  same transaction
- reject: REJECTED_BY_SELLER with a mandatory comment; the dispute then
  waits for an administrator

Usage:
    from refunds.services import SellerDecisionService

    result = SellerDecisionService.decide(
        request_id=refund_request.id,
        actor_seller_id=request.user.id,
        action="reject",
        comment="Item was used",
    )
    if result.error_code == "WINDOW_EXPIRED":
        ...  # only an administrator can decide now
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.utils import timezone

from core.exceptions import BaseApplicationError
from core.services import ServiceResult
from refunds.eligibility import EligibilityCalculator
from refunds.exceptions import (
    InvalidTransitionError,
    RefundForbiddenError,
    RefundValidationError,
    ResponseWindowExpiredError,
)
from refunds.services.base import RefundTransitionService
from refunds.state_machines import (
    DecisionAction,
    RefundEvent,
    RefundRequestStatus,
    event_for_decision,
)

if TYPE_CHECKING:
    import uuid
    from datetime import datetime

    from refunds.models import RefundRequest


class SellerDecisionService(RefundTransitionService):
    """
    Applies a seller's approve or reject decision.

    Checks run in this order: the request exists, the comment is present
    for a rejection, the actor is the order's seller, the request is
    PENDING, and the response deadline has not passed.
    """

    @classmethod
    def decide(
        cls,
        request_id: uuid.UUID | str,
        actor_seller_id,
        action: str,
        comment: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult[RefundRequest]:
        """
        Record the seller's decision.

        Args:
            request_id: Refund request being decided
            actor_seller_id: Id of the acting seller
            action: "approve" or "reject"
            comment: Optional for approve, required for reject
            now: Evaluation instant for the response window

        Returns:
            ServiceResult with the updated request, or a failure with
            NOT_FOUND, VALIDATION_ERROR, FORBIDDEN, INVALID_TRANSITION,
            WINDOW_EXPIRED, CONCURRENT_MODIFICATION or LEDGER_FAILURE
        """
        comment = (comment or "").strip() or None

        try:
            event = event_for_decision(action, admin=False)
        except ValueError:
            return ServiceResult.failure(
                f"Unknown action {action!r}",
                error_code="VALIDATION_ERROR",
                errors={"action": [f"Must be one of: {', '.join(DecisionAction.values)}"]},
            )

        def validate(snapshot: RefundRequest) -> None:
            if event == RefundEvent.SELLER_REJECT and not comment:
                raise RefundValidationError(
                    "A comment is required to reject a refund request",
                    field="comment",
                )
            if str(snapshot.seller_id) != str(actor_seller_id):
                raise RefundForbiddenError(
                    "Only the seller of this order may decide the refund request",
                    details={"refund_request_id": str(snapshot.id)},
                )
            if snapshot.status != RefundRequestStatus.PENDING:
                raise InvalidTransitionError(snapshot.status, event)
            if not EligibilityCalculator.can_seller_decide(snapshot, now or timezone.now()):
                raise ResponseWindowExpiredError(snapshot.id, snapshot.response_deadline)

        def apply(locked: RefundRequest) -> None:
            if event == RefundEvent.SELLER_APPROVE:
                locked.seller_approve(comment=comment)
            else:
                locked.seller_reject(comment=comment)

        try:
            refund_request = cls._run_transition(request_id, event, validate, apply)
        except RefundValidationError as e:
            result = ServiceResult.from_exception(e)
            result.errors = e.field_errors
            return result
        except BaseApplicationError as e:
            return cls.handle_exception(
                e,
                "Seller decision rejected",
                extra={
                    "refund_request_id": str(request_id),
                    "seller_id": str(actor_seller_id),
                    "action": action,
                },
            )

        cls.get_logger().info(
            "Seller decided refund request",
            extra={
                "refund_request_id": str(refund_request.id),
                "seller_id": str(actor_seller_id),
                "action": action,
                "status": refund_request.status,
            },
        )
        return ServiceResult.success(refund_request)
