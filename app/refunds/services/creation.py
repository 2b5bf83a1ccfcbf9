"""
Buyer-side refund operations: eligibility, creation and cancellation.

Usage:
    from refunds.services import RefundRequestService

    result = RefundRequestService.create(
        order_id=order.id,
        reason="Item arrived broken",
        buyer_email=request.user.email,
    )
    if result.success:
        refund_request = result.data
    else:
        # NOT_ELIGIBLE, ORDER_NOT_COMPLETED, ALREADY_ACTIVE, ...
        print(result.error_code)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import BaseApplicationError
from core.services import ServiceResult
from orders.exceptions import OrderNotFoundError
from orders.lookup import DjangoOrderLookup
from refunds.deadlines import response_deadline_for
from refunds.eligibility import EligibilityCalculator, RefundEligibility
from refunds.exceptions import (
    OrderNotCompletedError,
    RefundAlreadyActiveError,
    RefundForbiddenError,
    RefundNotEligibleError,
    RefundValidationError,
)
from refunds.models import CancelledBy, RefundRequest
from refunds.services.base import RefundTransitionService
from refunds.state_machines import RefundEvent, next_status

if TYPE_CHECKING:
    import uuid
    from datetime import datetime

    from orders.lookup import OrderLookup
    from orders.models import Order


ELIGIBILITY_ERRORS = {
    "ORDER_NOT_COMPLETED": OrderNotCompletedError,
    "ALREADY_ACTIVE": RefundAlreadyActiveError,
    "NOT_ELIGIBLE": RefundNotEligibleError,
}


def _same_email(left: str | None, right: str | None) -> bool:
    return bool(left) and bool(right) and left.strip().lower() == right.strip().lower()


class RefundRequestService(RefundTransitionService):
    """
    Opens and withdraws refund requests on behalf of buyers.

    A request snapshots the order (seller, product, full amount) at
    creation and starts PENDING with its response deadline fixed. At most
    one open request exists per order; the database enforces this with a
    partial unique constraint in addition to the eligibility check.
    """

    # Order lookup - can be injected for testing
    _order_lookup: OrderLookup | None = None

    @classmethod
    def get_order_lookup(cls) -> OrderLookup:
        return cls._order_lookup or DjangoOrderLookup()

    @classmethod
    def set_order_lookup(cls, lookup: OrderLookup | None) -> None:
        """Set the order lookup (for testing)."""
        cls._order_lookup = lookup

    @classmethod
    def _get_order(cls, order_id: uuid.UUID | str, buyer_email: str | None) -> Order:
        order = cls.get_order_lookup().get(order_id)
        # Another buyer's order is reported as missing
        if buyer_email is not None and not _same_email(order.buyer_email, buyer_email):
            raise OrderNotFoundError(
                f"Order {order_id} not found",
                details={"order_id": str(order_id)},
            )
        return order

    @classmethod
    def check_eligibility(
        cls,
        order_id: uuid.UUID | str,
        buyer_email: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult[RefundEligibility]:
        """
        Report whether a refund may be requested for an order right now.

        An ineligible order is still a successful result; the reasons are
        in the returned RefundEligibility.
        """
        try:
            order = cls._get_order(order_id, buyer_email)
        except OrderNotFoundError as e:
            return ServiceResult.from_exception(e)
        return ServiceResult.success(EligibilityCalculator.check_create(order, now))

    @classmethod
    def create(
        cls,
        order_id: uuid.UUID | str,
        reason: str,
        buyer_email: str | None = None,
        now: datetime | None = None,
    ) -> ServiceResult[RefundRequest]:
        """
        Open a refund request for the full amount of a completed order.

        Args:
            order_id: Order being disputed
            reason: Buyer's reason (required)
            buyer_email: Acting buyer; must match the order when given
            now: Evaluation instant (defaults to the current time)

        Returns:
            ServiceResult with the new PENDING RefundRequest, or a failure with
            VALIDATION_ERROR, ORDER_NOT_FOUND, ORDER_NOT_COMPLETED,
            ALREADY_ACTIVE or NOT_ELIGIBLE
        """
        now = now or timezone.now()
        try:
            refund_request = cls._create(order_id, reason, buyer_email, now)
        except RefundValidationError as e:
            result = ServiceResult.from_exception(e)
            result.errors = e.field_errors
            return result
        except BaseApplicationError as e:
            return cls.handle_exception(
                e, "Refund request rejected", extra={"order_id": str(order_id)}
            )

        cls.get_logger().info(
            "Refund request created",
            extra={
                "refund_request_id": str(refund_request.id),
                "order_id": str(refund_request.order_id),
                "seller_id": str(refund_request.seller_id),
                "amount_cents": refund_request.amount_cents,
                "response_deadline": refund_request.response_deadline.isoformat(),
            },
        )
        return ServiceResult.success(refund_request)

    @classmethod
    def _create(
        cls,
        order_id: uuid.UUID | str,
        reason: str,
        buyer_email: str | None,
        now: datetime,
    ) -> RefundRequest:
        reason = (reason or "").strip()
        if not reason:
            raise RefundValidationError("A reason is required to request a refund", field="reason")

        order = cls._get_order(order_id, buyer_email)
        eligibility = EligibilityCalculator.check_create(order, now)
        if not eligibility.eligible:
            error_class = ELIGIBILITY_ERRORS.get(eligibility.error_code, RefundNotEligibleError)
            details = {"order_id": str(order.id)}
            if eligibility.active_request is not None:
                details["active_request_id"] = str(eligibility.active_request.id)
            if eligibility.refund_deadline is not None:
                details["refund_deadline"] = eligibility.refund_deadline.isoformat()
            raise error_class(eligibility.block_reason, details=details)

        status = next_status(None, RefundEvent.CREATE)
        previous = eligibility.previous_request

        with cls.atomic():
            try:
                with transaction.atomic():
                    refund_request = RefundRequest.objects.create(
                        order_id=order.id,
                        buyer_email=order.buyer_email,
                        seller=order.seller,
                        product_id=order.product_id,
                        amount_cents=order.amount_cents,
                        currency=order.currency,
                        reason=reason,
                        status=status,
                        response_deadline=response_deadline_for(now),
                        refund_request_deadline=eligibility.refund_deadline,
                        previous_request=previous,
                    )
            except IntegrityError:
                # Lost a race against another create for the same order
                raise RefundAlreadyActiveError(
                    "A refund request for this order is already open",
                    details={"order_id": str(order.id)},
                )
            cls._notify(refund_request, RefundEvent.CREATE)

        return refund_request

    @classmethod
    def cancel(
        cls,
        request_id: uuid.UUID | str,
        buyer_email: str | None = None,
        reason: str = "",
        system: bool = False,
    ) -> ServiceResult[RefundRequest]:
        """
        Withdraw an open refund request.

        Buyers may cancel their own PENDING or REJECTED_BY_SELLER requests.
        ``system=True`` cancels on behalf of the platform and skips the
        ownership check.
        """
        by = CancelledBy.SYSTEM if system else CancelledBy.BUYER

        def validate(snapshot: RefundRequest) -> None:
            if by == CancelledBy.BUYER and not _same_email(snapshot.buyer_email, buyer_email):
                raise RefundForbiddenError(
                    "Only the buyer who opened this request may cancel it",
                    details={"refund_request_id": str(snapshot.id)},
                )

        try:
            refund_request = cls._run_transition(
                request_id,
                RefundEvent.CANCEL,
                validate,
                lambda locked: locked.cancel(reason=(reason or "").strip(), by=by),
            )
        except BaseApplicationError as e:
            return cls.handle_exception(
                e,
                "Refund cancellation rejected",
                extra={"refund_request_id": str(request_id)},
            )

        cls.get_logger().info(
            "Refund request cancelled",
            extra={
                "refund_request_id": str(refund_request.id),
                "cancelled_by": by,
            },
        )
        return ServiceResult.success(refund_request)
