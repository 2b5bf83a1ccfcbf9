"""
Read-side queries over refund requests.

Escalation is derived at read time: a request is escalated when the seller
rejected it, or when it is still PENDING after its response deadline. No
background job has to run for a request to show up in list_escalated().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from django.utils import timezone

from core.services import BaseService
from refunds.exceptions import RefundForbiddenError, RefundRequestNotFoundError
from refunds.models import RefundRequest
from refunds.state_machines import RefundRequestStatus

if TYPE_CHECKING:
    import uuid
    from datetime import datetime

    from django.db.models import QuerySet


def escalated_filter(now: datetime) -> Q:
    """Q object matching escalated requests at ``now``."""
    return Q(status=RefundRequestStatus.REJECTED_BY_SELLER) | Q(
        status=RefundRequestStatus.PENDING,
        response_deadline__lt=now,
    )


class RefundQueryService(BaseService):
    """Role-scoped listings of refund requests."""

    @staticmethod
    def _base() -> QuerySet[RefundRequest]:
        return RefundRequest.objects.select_related("seller", "decided_by_admin")

    @classmethod
    def list_for_buyer(cls, buyer_email: str) -> QuerySet[RefundRequest]:
        return cls._base().filter(buyer_email__iexact=buyer_email)

    @classmethod
    def list_for_seller(cls, seller_id, status: str | None = None) -> QuerySet[RefundRequest]:
        queryset = cls._base().filter(seller_id=seller_id)
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    @classmethod
    def list_escalated(cls, now: datetime | None = None) -> QuerySet[RefundRequest]:
        """Requests awaiting an administrator, oldest deadline first."""
        now = now or timezone.now()
        return cls._base().filter(escalated_filter(now)).order_by("response_deadline", "created_at")

    @classmethod
    def list_all(cls, status: str | None = None) -> QuerySet[RefundRequest]:
        queryset = cls._base()
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    @classmethod
    def list_for_order(cls, order_id: uuid.UUID | str) -> QuerySet[RefundRequest]:
        """Full dispute history of an order, newest first."""
        return cls._base().filter(order_id=order_id)

    @classmethod
    def get_for_actor(
        cls,
        request_id: uuid.UUID | str,
        *,
        buyer_email: str | None = None,
        seller_id=None,
        is_admin: bool = False,
    ) -> RefundRequest:
        """
        Fetch one request the actor is allowed to see.

        Raises:
            RefundRequestNotFoundError: If the id does not resolve
            RefundForbiddenError: If the actor is neither admin, seller nor buyer
        """
        try:
            refund_request = cls._base().get(pk=request_id)
        except (RefundRequest.DoesNotExist, DjangoValidationError, ValueError):
            raise RefundRequestNotFoundError(
                "Refund request not found",
                details={"refund_request_id": str(request_id)},
            )
        if is_admin:
            return refund_request
        if seller_id is not None and str(refund_request.seller_id) == str(seller_id):
            return refund_request
        if buyer_email and refund_request.buyer_email.lower() == buyer_email.strip().lower():
            return refund_request
        raise RefundForbiddenError(
            "You do not have access to this refund request",
            details={"refund_request_id": str(request_id)},
        )
