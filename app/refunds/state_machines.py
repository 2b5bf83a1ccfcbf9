"""
Refund request statuses, transition events and the transition table.

Every status change of a RefundRequest is expressed as a RefundEvent and
validated by next_status(). The django-fsm transitions on the model derive
their source statuses from TRANSITIONS, so the table below is the only
place the lifecycle is defined.

State Flow:
    (none) --create--> PENDING
    PENDING --seller_approve--> APPROVED_BY_SELLER        (debits seller)
    PENDING --seller_reject--> REJECTED_BY_SELLER
    PENDING | REJECTED_BY_SELLER --admin_approve--> APPROVED_BY_ADMIN (debits seller)
    PENDING | REJECTED_BY_SELLER --admin_reject--> REJECTED_BY_ADMIN
    PENDING | REJECTED_BY_SELLER --cancel--> CANCELLED

Terminal statuses: APPROVED_BY_SELLER, APPROVED_BY_ADMIN, REJECTED_BY_ADMIN,
CANCELLED. A PENDING request whose response window has lapsed is still
PENDING; escalation is a read-side classification (see refunds.eligibility).
"""

from __future__ import annotations

from django.db import models

from refunds.exceptions import InvalidTransitionError


class RefundRequestStatus(models.TextChoices):
    """States for the RefundRequest lifecycle."""

    PENDING = "pending", "Pending"
    APPROVED_BY_SELLER = "approved_by_seller", "Approved by Seller"
    REJECTED_BY_SELLER = "rejected_by_seller", "Rejected by Seller"
    APPROVED_BY_ADMIN = "approved_by_admin", "Approved by Admin"
    REJECTED_BY_ADMIN = "rejected_by_admin", "Rejected by Admin"
    CANCELLED = "cancelled", "Cancelled"


class RefundEvent(models.TextChoices):
    """Events that move a RefundRequest between statuses."""

    CREATE = "create", "Create"
    SELLER_APPROVE = "seller_approve", "Seller Approve"
    SELLER_REJECT = "seller_reject", "Seller Reject"
    ADMIN_APPROVE = "admin_approve", "Admin Approve"
    ADMIN_REJECT = "admin_reject", "Admin Reject"
    CANCEL = "cancel", "Cancel"


class DecisionAction(models.TextChoices):
    """Actions a seller or admin may take on a refund request."""

    APPROVE = "approve", "Approve"
    REJECT = "reject", "Reject"


TERMINAL_STATUSES = frozenset(
    [
        RefundRequestStatus.APPROVED_BY_SELLER,
        RefundRequestStatus.APPROVED_BY_ADMIN,
        RefundRequestStatus.REJECTED_BY_ADMIN,
        RefundRequestStatus.CANCELLED,
    ]
)

ACTIVE_STATUSES = frozenset(
    [
        RefundRequestStatus.PENDING,
        RefundRequestStatus.REJECTED_BY_SELLER,
    ]
)

APPROVED_STATUSES = frozenset(
    [
        RefundRequestStatus.APPROVED_BY_SELLER,
        RefundRequestStatus.APPROVED_BY_ADMIN,
    ]
)

# Closed requests after which the buyer may file a new request
REREQUESTABLE_STATUSES = frozenset(
    [
        RefundRequestStatus.REJECTED_BY_ADMIN,
        RefundRequestStatus.CANCELLED,
    ]
)

# Events whose transition debits the seller balance
DEBITING_EVENTS = frozenset(
    [
        RefundEvent.SELLER_APPROVE,
        RefundEvent.ADMIN_APPROVE,
    ]
)

# (source status or None for creation, event) -> target status
TRANSITIONS: dict[tuple[str | None, str], str] = {
    (None, RefundEvent.CREATE): RefundRequestStatus.PENDING,
    (RefundRequestStatus.PENDING, RefundEvent.SELLER_APPROVE): RefundRequestStatus.APPROVED_BY_SELLER,
    (RefundRequestStatus.PENDING, RefundEvent.SELLER_REJECT): RefundRequestStatus.REJECTED_BY_SELLER,
    (RefundRequestStatus.PENDING, RefundEvent.ADMIN_APPROVE): RefundRequestStatus.APPROVED_BY_ADMIN,
    (RefundRequestStatus.REJECTED_BY_SELLER, RefundEvent.ADMIN_APPROVE): RefundRequestStatus.APPROVED_BY_ADMIN,
    (RefundRequestStatus.PENDING, RefundEvent.ADMIN_REJECT): RefundRequestStatus.REJECTED_BY_ADMIN,
    (RefundRequestStatus.REJECTED_BY_SELLER, RefundEvent.ADMIN_REJECT): RefundRequestStatus.REJECTED_BY_ADMIN,
    (RefundRequestStatus.PENDING, RefundEvent.CANCEL): RefundRequestStatus.CANCELLED,
    (RefundRequestStatus.REJECTED_BY_SELLER, RefundEvent.CANCEL): RefundRequestStatus.CANCELLED,
}


def sources_for(event: str) -> list[str]:
    """Return the statuses from which ``event`` is accepted."""
    return [
        source
        for (source, candidate), _ in TRANSITIONS.items()
        if candidate == event and source is not None
    ]


def target_for(event: str) -> str:
    """Return the single status ``event`` leads to."""
    targets = {target for (_, candidate), target in TRANSITIONS.items() if candidate == event}
    if len(targets) != 1:
        raise ValueError(f"Event {event!r} has no single target status")
    return targets.pop()


def next_status(current: str | None, event: str) -> str:
    """
    Validate ``event`` against ``current`` and return the resulting status.

    Args:
        current: Current status, or None for a request that does not exist yet
        event: A RefundEvent value

    Raises:
        InvalidTransitionError: If the table has no such transition
    """
    try:
        return TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransitionError(current, event)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def event_for_decision(action: str, *, admin: bool) -> str:
    """Map a seller or admin decision action to its RefundEvent."""
    if action == DecisionAction.APPROVE:
        return RefundEvent.ADMIN_APPROVE if admin else RefundEvent.SELLER_APPROVE
    if action == DecisionAction.REJECT:
        return RefundEvent.ADMIN_REJECT if admin else RefundEvent.SELLER_REJECT
    raise ValueError(f"Unknown decision action: {action!r}")
