"""
Eligibility rules for creating and deciding refund requests.

EligibilityCalculator answers the three questions the engine asks before
any state change:
- can_create: may the buyer still open a dispute for this order?
- can_seller_decide: is the seller still inside the response window?
- is_escalated: does the dispute need an administrator?

All checks take an optional ``now`` so that callers (and tests) evaluate
every rule against a single instant.

Usage:
    from refunds.eligibility import EligibilityCalculator

    eligibility = EligibilityCalculator.check_create(order)
    if not eligibility.eligible:
        print(eligibility.block_reason, eligibility.error_code)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from django.utils import timezone

from orders.models import OrderStatus
from refunds.deadlines import days_until, refund_request_deadline_for
from refunds.state_machines import (
    ACTIVE_STATUSES,
    APPROVED_STATUSES,
    RefundRequestStatus,
)

if TYPE_CHECKING:
    from orders.models import Order
    from refunds.models import RefundRequest


@dataclass
class RefundEligibility:
    """
    Result of a creation eligibility check.

    Attributes:
        eligible: Whether a refund request may be created now
        refund_deadline: Last instant a request may be created (None if the
            order never completed)
        days_remaining: Whole days left until refund_deadline
        has_active_refund: Whether an open request already exists
        active_request: The open request, if any
        previous_request: Most recent closed request, if any
        block_reason: Human-readable reason if not eligible
        error_code: Machine-readable reason if not eligible
    """

    eligible: bool
    refund_deadline: datetime | None = None
    days_remaining: int = 0
    has_active_refund: bool = False
    active_request: RefundRequest | None = None
    previous_request: RefundRequest | None = None
    block_reason: str | None = None
    error_code: str | None = None


class EligibilityCalculator:
    """Deadline and status rules for refund requests."""

    @staticmethod
    def refund_deadline(order: Order) -> datetime | None:
        if order.completed_at is None:
            return None
        return refund_request_deadline_for(order.completed_at)

    @classmethod
    def check_create(cls, order: Order, now: datetime | None = None) -> RefundEligibility:
        """
        Evaluate whether a refund request may be created for ``order``.

        Checks, in order:
        1. The order is completed
        2. No open request exists for the order
        3. No earlier request for the order was approved
        4. ``now`` is not after completed_at + the request window
           (the boundary instant itself is eligible)
        """
        from refunds.models import RefundRequest

        now = now or timezone.now()

        if order.status != OrderStatus.COMPLETED or order.completed_at is None:
            return RefundEligibility(
                eligible=False,
                block_reason=f"Order is {order.status}, not completed",
                error_code="ORDER_NOT_COMPLETED",
            )

        deadline = cls.refund_deadline(order)
        latest = RefundRequest.objects.filter(order_id=order.id).order_by("-created_at").first()
        active = (
            RefundRequest.objects.filter(order_id=order.id, status__in=ACTIVE_STATUSES)
            .order_by("-created_at")
            .first()
        )
        result = RefundEligibility(
            eligible=False,
            refund_deadline=deadline,
            days_remaining=days_until(deadline, now),
            has_active_refund=active is not None,
            active_request=active,
            previous_request=latest if active is None else None,
        )

        if active is not None:
            result.block_reason = "A refund request for this order is already open"
            result.error_code = "ALREADY_ACTIVE"
            return result

        if RefundRequest.objects.filter(
            order_id=order.id, status__in=APPROVED_STATUSES
        ).exists():
            result.block_reason = "This order has already been refunded"
            result.error_code = "NOT_ELIGIBLE"
            return result

        if now > deadline:
            result.block_reason = "The refund request window for this order has closed"
            result.error_code = "NOT_ELIGIBLE"
            return result

        result.eligible = True
        return result

    @classmethod
    def can_create(cls, order: Order, now: datetime | None = None) -> bool:
        return cls.check_create(order, now).eligible

    @staticmethod
    def can_seller_decide(request: RefundRequest, now: datetime | None = None) -> bool:
        """True iff the request is pending and the response window is open."""
        now = now or timezone.now()
        return request.status == RefundRequestStatus.PENDING and now <= request.response_deadline

    @staticmethod
    def is_escalated(request: RefundRequest, now: datetime | None = None) -> bool:
        """
        True iff the dispute requires administrator intervention.

        Either the seller rejected it, or it is still pending after the
        response deadline.
        """
        if request.status == RefundRequestStatus.REJECTED_BY_SELLER:
            return True
        now = now or timezone.now()
        return request.status == RefundRequestStatus.PENDING and now > request.response_deadline

    @staticmethod
    def days_remaining(request: RefundRequest, now: datetime | None = None) -> int | None:
        """Whole days left in the seller window; None unless pending."""
        if request.status != RefundRequestStatus.PENDING:
            return None
        return days_until(request.response_deadline, now)
