"""
Value types passed in and out of LedgerService.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from payments.ledger.models import LedgerEntry


@dataclass(frozen=True)
class Money:
    """An amount in minor units. ``str(Money(10000, "eur"))`` is ``"100.00 EUR"``."""

    cents: int
    currency: str = "usd"

    def __str__(self) -> str:
        return f"{self.cents / 100:.2f} {self.currency.upper()}"


@dataclass
class RecordEntryParams:
    """
    One posting: ``amount_cents`` moves from the debit to the credit account.

    The idempotency key identifies the posting. Refund debits use the
    refund request id.
    """

    debit_account_id: uuid.UUID
    credit_account_id: uuid.UUID
    amount_cents: int
    entry_type: str
    idempotency_key: str

    reference_id: uuid.UUID | None = None
    reference_type: str | None = None
    description: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_by: str | None = None

    def __post_init__(self) -> None:
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if self.debit_account_id == self.credit_account_id:
            raise ValueError("debit_account_id and credit_account_id must be different")


@dataclass(frozen=True)
class RecordedEntry:
    """
    Result of a keyed posting.

    ``created`` is False when the key had been used before; ``entry`` is
    then the original entry and nothing new was written.
    """

    entry: LedgerEntry
    created: bool
