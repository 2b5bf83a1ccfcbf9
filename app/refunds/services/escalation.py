"""
Administrator notifications for escalated disputes.

Escalation itself is never written to the request status. The sweep only
stamps escalation_notified_at so each escalated request is announced to
administrators once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from core.services import BaseService, ServiceResult
from refunds.models import RefundRequest
from refunds.notifications import (
    NotificationEvent,
    admin_recipients,
    build_context,
    get_dispatcher,
)
from refunds.services.queries import escalated_filter

if TYPE_CHECKING:
    from datetime import datetime


class EscalationService(BaseService):
    """Announces newly escalated refund requests to administrators."""

    @classmethod
    def notify_escalated(
        cls,
        now: datetime | None = None,
        batch_size: int | None = None,
    ) -> ServiceResult[int]:
        """
        Notify administrators of escalated requests not yet announced.

        Returns:
            ServiceResult with the number of requests announced
        """
        now = now or timezone.now()
        batch_size = batch_size or settings.REFUND_ESCALATION_SWEEP_BATCH_SIZE

        candidates = list(
            RefundRequest.objects.select_related("seller")
            .filter(escalated_filter(now), escalation_notified_at__isnull=True)
            .order_by("response_deadline")[:batch_size]
        )
        if not candidates:
            return ServiceResult.success(0)

        recipients = admin_recipients()
        if not recipients:
            cls.get_logger().warning(
                "Escalated refund requests found but no admin recipients configured",
                extra={"count": len(candidates)},
            )
            return ServiceResult.success(0)

        dispatcher = get_dispatcher()
        announced = 0
        for refund_request in candidates:
            # Status guard: a decision may have landed since the read
            marked = RefundRequest.objects.filter(
                pk=refund_request.pk,
                status=refund_request.status,
                escalation_notified_at__isnull=True,
            ).update(escalation_notified_at=now)
            if not marked:
                continue
            try:
                dispatcher.notify(
                    NotificationEvent.REFUND_ESCALATED,
                    recipients,
                    build_context(refund_request),
                )
            except Exception:
                cls.get_logger().exception(
                    "Failed to dispatch escalation notification",
                    extra={"refund_request_id": str(refund_request.id)},
                )
                continue
            announced += 1

        cls.get_logger().info(
            "Escalated refund requests announced",
            extra={"count": announced, "candidates": len(candidates)},
        )
        return ServiceResult.success(announced)
