"""
Shared constants and helpers for refund tests.

Time reference:
    ORDER_COMPLETED_AT is Monday 2026-03-02 09:00 UTC. A request created
    at that instant must be answered by Wednesday 2026-03-04 09:00 UTC
    (48 business hours: 15h Monday, 24h Tuesday, 9h Wednesday).
"""

from datetime import datetime, timedelta, timezone

from payments.ledger.models import LedgerEntry

ORDER_COMPLETED_AT = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
RESPONSE_DEADLINE = datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc)
REQUEST_DEADLINE = ORDER_COMPLETED_AT + timedelta(days=7)


class RecordingDispatcher:
    """NotificationDispatcher that keeps every call for assertions."""

    def __init__(self):
        self.calls = []

    def notify(self, event, recipients, context=None):
        self.calls.append(
            {"event": str(event), "recipients": list(recipients), "context": context or {}}
        )

    def events(self) -> list[str]:
        return [call["event"] for call in self.calls]


def refund_debits(refund_request) -> list[LedgerEntry]:
    """Ledger entries posted under a request's idempotency key."""
    return list(
        LedgerEntry.objects.refund_debits().filter(idempotency_key=str(refund_request.id))
    )
