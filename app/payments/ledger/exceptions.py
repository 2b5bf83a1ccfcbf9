"""
Errors raised by the seller balance ledger.

All derive from LedgerError so that callers debiting a seller (the refund
settlement step) can catch one type and report LEDGER_FAILURE.
"""

from __future__ import annotations

from core.exceptions import BaseApplicationError


class LedgerError(BaseApplicationError):
    default_error_code: str = "LEDGER_ERROR"


class AccountNotFound(LedgerError):
    default_error_code: str = "ACCOUNT_NOT_FOUND"


class InactiveAccount(LedgerError):
    """The account is frozen; nothing may be posted to or from it."""

    default_error_code: str = "INACTIVE_ACCOUNT"


class CurrencyMismatch(LedgerError):
    """Both sides of an entry must be in the same currency."""

    default_error_code: str = "CURRENCY_MISMATCH"


class InsufficientBalance(LedgerError):
    """
    Debit would take an account below zero and it does not allow that.

    Attributes:
        account_id: Debited account
        required: Amount of the debit in cents
        available: Balance before the debit in cents
    """

    default_error_code: str = "INSUFFICIENT_BALANCE"

    def __init__(self, account_id, required: int, available: int):
        self.account_id = account_id
        self.required = required
        self.available = available
        super().__init__(
            f"Balance of account {account_id} is {available} cents, "
            f"cannot debit {required} cents",
            details={
                "account_id": str(account_id),
                "required_cents": required,
                "available_cents": available,
            },
        )


class IdempotencyConflict(LedgerError):
    """
    An idempotency key was reused for a different posting.

    Replaying the same posting is fine and returns the original entry. A
    reuse with another amount or other accounts is a caller bug.
    """

    default_error_code: str = "IDEMPOTENCY_CONFLICT"
