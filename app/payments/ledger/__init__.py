"""
Seller balance ledger (double-entry).

The refund engine only ever posts REFUND_DEBIT entries through
payments.adapters.balance_ledger; sale credits and adjustments are posted
by other parts of the platform.

Usage:
    from payments.ledger import AccountType, LedgerService

    balance = LedgerService.get_seller_balance(seller.pk, "eur")
"""

from .exceptions import (
    AccountNotFound,
    CurrencyMismatch,
    IdempotencyConflict,
    InactiveAccount,
    InsufficientBalance,
    LedgerError,
)
from .models import AccountType, EntryType, LedgerAccount, LedgerEntry
from .services import LedgerService
from .types import Money, RecordedEntry, RecordEntryParams

__all__ = [
    "AccountNotFound",
    "AccountType",
    "CurrencyMismatch",
    "EntryType",
    "IdempotencyConflict",
    "InactiveAccount",
    "InsufficientBalance",
    "LedgerAccount",
    "LedgerEntry",
    "LedgerError",
    "LedgerService",
    "Money",
    "RecordEntryParams",
    "RecordedEntry",
]
