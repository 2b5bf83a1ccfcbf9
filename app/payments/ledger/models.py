"""
Seller balance ledger.

Every movement of money is one LedgerEntry that debits one LedgerAccount
and credits another, so the sum over all accounts is always zero.

Money flows relevant to refunds:

    sale:    platform_escrow  -> seller_balance    (SALE_CREDIT)
    refund:  seller_balance   -> platform_refunds  (REFUND_DEBIT)

Only REFUND_DEBIT is posted from this codebase, by the refunds app through
payments.adapters. Escrow accounts and SALE_CREDIT entries are posted by the
checkout side of the storefront, and ADJUSTMENT entries by support tooling;
they are declared here so the shared ledger tables accept them.

Balances are never stored; they are derived from the entries. Entries are
never updated or deleted.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q, Sum

from core.model_mixins import UUIDPrimaryKeyMixin


class AccountType(models.TextChoices):
    SELLER_BALANCE = "seller_balance", "Seller Balance"
    PLATFORM_REFUNDS = "platform_refunds", "Platform Refunds"
    # Funded by checkout, not by this service
    PLATFORM_ESCROW = "platform_escrow", "Platform Escrow"


class EntryType(models.TextChoices):
    # Posted by checkout when an order completes
    SALE_CREDIT = "sale_credit", "Sale Credit"
    REFUND_DEBIT = "refund_debit", "Refund Debit"
    # Manual corrections; entries are never edited in place
    ADJUSTMENT = "adjustment", "Adjustment"


class LedgerEntryQuerySet(models.QuerySet):
    def for_reference(self, reference_type: str, reference_id) -> LedgerEntryQuerySet:
        return self.filter(reference_type=reference_type, reference_id=reference_id)

    def refund_debits(self) -> LedgerEntryQuerySet:
        return self.filter(entry_type=EntryType.REFUND_DEBIT)


class LedgerAccount(UUIDPrimaryKeyMixin, models.Model):
    """
    One balance per (type, owner, currency).

    Seller balances use the seller's user id as ``owner_id``; platform
    accounts leave it empty. Refund debits may push a seller balance below
    zero, so those accounts are created with ``allow_negative=True``.
    """

    type = models.CharField(
        max_length=50,
        choices=AccountType.choices,
        help_text="Category of this account",
    )
    owner_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        db_index=True,
        help_text="Identifier of the entity that owns this account (e.g., seller id)",
    )
    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code",
    )
    allow_negative = models.BooleanField(
        default=False,
        help_text="Whether this account can have a negative balance",
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether this account is active",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this account was created",
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["type", "owner_id", "currency"],
                name="unique_account_per_owner",
            )
        ]
        indexes = [
            models.Index(fields=["type", "currency"], name="ledger_acct_type_currency_idx"),
        ]

    def __str__(self) -> str:
        if self.owner_id:
            return f"{self.get_type_display()} ({self.owner_id}, {self.currency})"
        return f"{self.get_type_display()} ({self.currency})"

    def get_balance(self) -> int:
        """Credits minus debits, in cents."""
        credits = self.credit_entries.aggregate(total=Sum("amount_cents"))["total"] or 0
        debits = self.debit_entries.aggregate(total=Sum("amount_cents"))["total"] or 0
        return credits - debits


class LedgerEntry(UUIDPrimaryKeyMixin, models.Model):
    """
    An immutable transfer between two accounts.

    ``idempotency_key`` is unique: a refund debit is keyed by the refund
    request id, so a retried or concurrent approval posts nothing twice.
    ``reference_type``/``reference_id`` point back at the business record
    (``"refund_request"`` and its id for refund debits).
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this entry was recorded",
    )

    debit_account = models.ForeignKey(
        LedgerAccount,
        on_delete=models.PROTECT,
        related_name="debit_entries",
        help_text="Account money is taken from",
    )
    credit_account = models.ForeignKey(
        LedgerAccount,
        on_delete=models.PROTECT,
        related_name="credit_entries",
        help_text="Account money is added to",
    )
    amount_cents = models.PositiveBigIntegerField(
        help_text="Amount in cents (always positive)",
    )
    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code",
    )

    entry_type = models.CharField(
        max_length=50,
        choices=EntryType.choices,
        help_text="Category of this entry",
    )
    reference_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="UUID of related business entity (e.g., refund request ID)",
    )
    reference_type = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="Type of related entity (e.g., 'refund_request')",
    )

    description = models.TextField(
        null=True,
        blank=True,
        help_text="Human-readable description of this entry",
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary JSON data for extensibility",
    )

    created_by = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Identifier of service/user that created this entry",
    )
    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique key to prevent duplicate entries",
    )

    objects = LedgerEntryQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["reference_type", "reference_id"],
                name="ledger_entry_reference_idx",
            ),
            models.Index(fields=["entry_type"], name="ledger_entry_type_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_cents__gt=0),
                name="ledger_entry_amount_cents_positive",
            )
        ]

    def __str__(self) -> str:
        return f"{self.get_entry_type_display()}: {self.amount_cents} cents"
