"""
Refund notifications.

The engine informs buyers, sellers and administrators of state changes
through a NotificationDispatcher. Delivery is best-effort: it happens after
the decision has committed, and a failure to deliver never undoes one.

CeleryEmailDispatcher queues refunds.tasks.send_refund_notification with
transaction.on_commit, so nothing is sent for a rolled-back transition.

Usage:
    from refunds.notifications import get_dispatcher, NotificationEvent

    get_dispatcher().notify(
        NotificationEvent.REFUND_REQUESTED,
        [refund_request.seller.email],
        build_context(refund_request),
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import models, transaction
from django.utils.module_loading import import_string

from refunds.state_machines import RefundEvent

if TYPE_CHECKING:
    from typing import Any

    from refunds.models import RefundRequest

logger = logging.getLogger(__name__)


class NotificationEvent(models.TextChoices):
    """Notification kinds; each has a subject and an e-mail template."""

    REFUND_REQUESTED = "refund_requested", "New refund request"
    REFUND_APPROVED = "refund_approved", "Your refund was approved"
    REFUND_REJECTED_BY_SELLER = "refund_rejected_by_seller", "Response to your refund request"
    REFUND_REJECTED_FINAL = "refund_rejected_final", "Refund rejected - final decision"
    REFUND_CANCELLED = "refund_cancelled", "Refund request withdrawn"
    REFUND_ESCALATED = "refund_escalated", "Refund dispute awaiting review"


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Fire-and-forget delivery of refund notifications."""

    def notify(
        self,
        event: str,
        recipients: list[str],
        context: dict[str, Any] | None = None,
    ) -> None:
        ...


class CeleryEmailDispatcher:
    """Queue an e-mail per notification once the current transaction commits."""

    def notify(
        self,
        event: str,
        recipients: list[str],
        context: dict[str, Any] | None = None,
    ) -> None:
        recipients = sorted({r for r in recipients if r})
        if not recipients:
            logger.warning("Refund notification has no recipients", extra={"event": str(event)})
            return

        payload = dict(context or {})

        def enqueue() -> None:
            from refunds.tasks import send_refund_notification

            try:
                send_refund_notification.delay(str(event), recipients, payload)
            except Exception:
                logger.exception(
                    "Failed to queue refund notification",
                    extra={
                        "event": str(event),
                        "refund_request_id": payload.get("refund_request_id"),
                    },
                )

        transaction.on_commit(enqueue)


def get_dispatcher() -> NotificationDispatcher:
    """Instantiate the dispatcher named by REFUND_NOTIFICATION_DISPATCHER."""
    return import_string(settings.REFUND_NOTIFICATION_DISPATCHER)()


def admin_recipients() -> list[str]:
    """Configured admin e-mails, falling back to active staff users."""
    configured = list(settings.REFUND_ADMIN_NOTIFICATION_EMAILS)
    if configured:
        return configured
    User = get_user_model()
    return list(
        User.objects.filter(is_staff=True, is_active=True)
        .exclude(email="")
        .values_list("email", flat=True)
    )


def build_context(refund_request: RefundRequest) -> dict[str, Any]:
    """JSON-serializable template context describing a refund request."""
    return {
        "refund_request_id": str(refund_request.id),
        "order_id": str(refund_request.order_id),
        "product_id": str(refund_request.product_id),
        "amount": f"{refund_request.amount_cents / 100:.2f}",
        "currency": refund_request.currency.upper(),
        "reason": refund_request.reason,
        "status": str(refund_request.status),
        "seller_comment": refund_request.seller_comment or "",
        "admin_comment": refund_request.admin_comment or "",
        "buyer_email": refund_request.buyer_email,
        "response_deadline": refund_request.response_deadline.isoformat(),
    }


def notification_for(refund_request: RefundRequest, event: str) -> tuple[str, list[str]] | None:
    """Map a transition to its notification event and recipients."""
    seller_email = getattr(refund_request.seller, "email", "")
    if event == RefundEvent.CREATE:
        return NotificationEvent.REFUND_REQUESTED, [seller_email]
    if event in (RefundEvent.SELLER_APPROVE, RefundEvent.ADMIN_APPROVE):
        return NotificationEvent.REFUND_APPROVED, [refund_request.buyer_email]
    if event == RefundEvent.SELLER_REJECT:
        return NotificationEvent.REFUND_REJECTED_BY_SELLER, [refund_request.buyer_email]
    if event == RefundEvent.ADMIN_REJECT:
        return NotificationEvent.REFUND_REJECTED_FINAL, [refund_request.buyer_email]
    if event == RefundEvent.CANCEL:
        return NotificationEvent.REFUND_CANCELLED, [seller_email]
    return None
