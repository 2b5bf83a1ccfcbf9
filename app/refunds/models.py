"""
RefundRequest model: a buyer's dispute against a completed order.

A RefundRequest is created by the buyer, decided at most once by the seller
inside a 48 business-hour window, and decided at most once more by an
administrator when the dispute escalates. Terminal requests are never
deleted; they are the audit trail.

Usage:
    from refunds.models import RefundRequest
    from refunds.state_machines import RefundRequestStatus

    # State transitions using django-fsm
    refund_request.seller_reject(comment="Product delivered as described")
    refund_request.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from refunds.state_machines import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    RefundEvent,
    RefundRequestStatus,
    sources_for,
    target_for,
)


class CancelledBy(models.TextChoices):
    BUYER = "buyer", "Buyer"
    SYSTEM = "system", "System"


class RefundRequest(UUIDPrimaryKeyMixin, BaseModel):
    """
    A refund dispute for one order.

    State Flow:
        PENDING -> APPROVED_BY_SELLER
        PENDING -> REJECTED_BY_SELLER -> APPROVED_BY_ADMIN | REJECTED_BY_ADMIN
        PENDING -> APPROVED_BY_ADMIN | REJECTED_BY_ADMIN
        PENDING | REJECTED_BY_SELLER -> CANCELLED

    Fields:
        order_id: Order being disputed (immutable)
        buyer_email, seller, product_id: Copied from the order at creation
        amount_cents, currency: Full order amount, copied at creation
        reason: Buyer's reason
        seller_comment: Set only by the seller decision
        admin_comment: Set only by the admin decision
        status: Current FSM status
        response_deadline: End of the seller's business-hour window
        refund_request_deadline: Last instant the order accepted requests
        version: Optimistic locking version
        previous_request: Closed request this one follows, if any
        escalation_notified_at: When administrators were told the window
            lapsed (read-side marker, never affects status)

    Note:
        The request id doubles as the ledger idempotency key, so an
        approved request debits the seller at most once.
    """

    # ==========================================================================
    # Order Snapshot
    # ==========================================================================

    order_id = models.UUIDField(
        db_index=True,
        help_text="Order being disputed",
    )
    buyer_email = models.EmailField(
        db_index=True,
        help_text="Buyer e-mail copied from the order",
    )
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="refund_requests_received",
        help_text="Seller of the order",
    )
    product_id = models.UUIDField(
        help_text="Product copied from the order",
    )
    amount_cents = models.PositiveBigIntegerField(
        help_text="Refund amount in smallest currency unit (full order amount)",
    )
    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    # ==========================================================================
    # Dispute Content
    # ==========================================================================

    reason = models.TextField(
        help_text="Buyer-supplied reason for the refund",
    )
    seller_comment = models.TextField(
        null=True,
        blank=True,
        help_text="Seller's comment on their decision",
    )
    admin_comment = models.TextField(
        null=True,
        blank=True,
        help_text="Administrator's justification for the final decision",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=RefundRequestStatus.PENDING,
        choices=RefundRequestStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current status of the refund request (managed by FSM)",
    )

    # ==========================================================================
    # Deadlines
    # ==========================================================================

    response_deadline = models.DateTimeField(
        db_index=True,
        help_text="Seller decisions after this instant are rejected",
    )
    refund_request_deadline = models.DateTimeField(
        help_text="Order completion + request window; last instant to file",
    )

    # ==========================================================================
    # Decision Audit
    # ==========================================================================

    seller_decided_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the seller decided",
    )
    admin_decided_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When an administrator decided",
    )
    decided_by_admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="refund_requests_decided",
        help_text="Administrator who made the final decision",
    )
    cancelled_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the request was withdrawn",
    )
    cancelled_by = models.CharField(
        max_length=10,
        choices=CancelledBy.choices,
        blank=True,
        default="",
        help_text="Who withdrew the request",
    )
    cancellation_reason = models.TextField(
        blank=True,
        default="",
        help_text="Why the request was withdrawn",
    )
    previous_request = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="follow_up_requests",
        help_text="Closed request for the same order this one follows",
    )
    escalation_notified_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When administrators were notified of the lapsed window",
    )

    # ==========================================================================
    # Concurrency Control
    # ==========================================================================

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary JSON metadata for extensibility",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Refund Request"
        verbose_name_plural = "Refund Requests"
        indexes = [
            models.Index(fields=["seller", "status"], name="refund_seller_status_idx"),
            models.Index(fields=["status", "response_deadline"], name="refund_status_deadline_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_cents__gt=0),
                name="refund_request_amount_positive",
            ),
            models.UniqueConstraint(
                fields=["order_id"],
                condition=Q(status__in=sorted(ACTIVE_STATUSES)),
                name="refund_request_one_active_per_order",
            ),
        ]

    def __str__(self) -> str:
        amount_display = f"{self.amount_cents / 100:.2f} {self.currency.upper()}"
        return f"RefundRequest({self.id}, {self.status}, {amount_display})"

    def save(self, *args, **kwargs):
        """
        Save with version auto-increment for optimistic locking.
        """
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version", "updated_at"])

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=sources_for(RefundEvent.SELLER_APPROVE),
        target=target_for(RefundEvent.SELLER_APPROVE),
    )
    def seller_approve(self, comment: str | None = None):
        """
        Seller accepts the refund.

        Transition: PENDING -> APPROVED_BY_SELLER
        """
        self.seller_comment = comment or None
        self.seller_decided_at = timezone.now()

    @transition(
        field=status,
        source=sources_for(RefundEvent.SELLER_REJECT),
        target=target_for(RefundEvent.SELLER_REJECT),
    )
    def seller_reject(self, comment: str):
        """
        Seller contests the refund; the dispute goes to admin review.

        Transition: PENDING -> REJECTED_BY_SELLER
        """
        self.seller_comment = comment
        self.seller_decided_at = timezone.now()

    @transition(
        field=status,
        source=sources_for(RefundEvent.ADMIN_APPROVE),
        target=target_for(RefundEvent.ADMIN_APPROVE),
    )
    def admin_approve(self, comment: str, admin_id=None):
        """
        Final administrative approval.

        Transition: PENDING | REJECTED_BY_SELLER -> APPROVED_BY_ADMIN
        """
        self.admin_comment = comment
        self.admin_decided_at = timezone.now()
        self.decided_by_admin_id = admin_id

    @transition(
        field=status,
        source=sources_for(RefundEvent.ADMIN_REJECT),
        target=target_for(RefundEvent.ADMIN_REJECT),
    )
    def admin_reject(self, comment: str, admin_id=None):
        """
        Final administrative rejection. Not appealable.

        Transition: PENDING | REJECTED_BY_SELLER -> REJECTED_BY_ADMIN
        """
        self.admin_comment = comment
        self.admin_decided_at = timezone.now()
        self.decided_by_admin_id = admin_id

    @transition(
        field=status,
        source=sources_for(RefundEvent.CANCEL),
        target=target_for(RefundEvent.CANCEL),
    )
    def cancel(self, reason: str = "", by: str = CancelledBy.BUYER):
        """
        Withdraw the request.

        Transition: PENDING | REJECTED_BY_SELLER -> CANCELLED
        """
        self.cancelled_at = timezone.now()
        self.cancelled_by = by
        self.cancellation_reason = reason

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_escalated(self) -> bool:
        """True when the dispute needs an administrator (see EligibilityCalculator)."""
        from refunds.eligibility import EligibilityCalculator

        return EligibilityCalculator.is_escalated(self)

    @property
    def ledger_idempotency_key(self) -> str:
        """Key every debit for this request is posted under."""
        return str(self.id)
