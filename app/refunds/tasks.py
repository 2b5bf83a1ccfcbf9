"""
Celery tasks for refund notifications and escalation.

This module provides async tasks for:
- Delivering refund notification e-mails
- Announcing escalated disputes to administrators (via celery-beat)

Usage:
    from refunds.tasks import send_refund_notification

    send_refund_notification.delay(
        "refund_approved", ["buyer@example.com"], {"refund_request_id": "..."}
    )
"""

from __future__ import annotations

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_NOTIFICATION_RETRIES = 5
EMAIL_TEMPLATE_PREFIX = "refunds/email"


# =============================================================================
# Notification Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(OSError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_NOTIFICATION_RETRIES},
    acks_late=True,
)
def send_refund_notification(self, event: str, recipients: list[str], context: dict) -> dict:
    """
    Render and send the e-mail for a refund notification.

    SMTP and connection errors (OSError) are retried with backoff.

    Args:
        event: NotificationEvent value
        recipients: E-mail addresses
        context: Template context built by refunds.notifications.build_context

    Returns:
        Dict with the delivery status
    """
    from refunds.notifications import NotificationEvent
    from toolkit.services.email import EmailService

    try:
        notification = NotificationEvent(event)
    except ValueError:
        logger.error("Unknown refund notification event", extra={"event": event})
        return {"status": "unknown_event", "event": event}

    sent = EmailService.send(
        to=recipients,
        subject=str(notification.label),
        template_name=f"{EMAIL_TEMPLATE_PREFIX}/{notification.value}",
        context=context,
    )
    logger.info(
        "Refund notification delivered",
        extra={
            "event": event,
            "refund_request_id": context.get("refund_request_id"),
            "recipient_count": len(recipients),
            "attempt": self.request.retries + 1,
        },
    )
    return {"status": "sent" if sent else "not_sent", "event": event}


# =============================================================================
# Periodic Tasks
# =============================================================================


@shared_task
def sweep_escalated_refunds() -> dict:
    """
    Announce newly escalated refund requests to administrators.

    Runs every 30 minutes via celery-beat. Escalation is computed from the
    current time, so a missed run only delays the e-mail.
    """
    from refunds.services import EscalationService

    result = EscalationService.notify_escalated()
    if not result.success:
        logger.error("Escalation sweep failed", extra={"error": result.error})
        return {"status": "failed", "error": result.error}
    return {"status": "ok", "announced": result.data}
