"""
Payment adapters for balance-affecting collaborators.

All debits the refund engine makes against seller balances go through a
BalanceLedgerAdapter so that idempotency, validation and logging are
handled in one place.

Usage:
    from payments.adapters import LedgerBalanceAdapter

    ack = LedgerBalanceAdapter().debit(
        account_id=str(seller.pk),
        amount_cents=10000,
        currency="eur",
        idempotency_key=str(refund_request.id),
    )
"""

from payments.adapters.balance_ledger import (
    AlreadyAppliedError,
    BalanceLedgerAdapter,
    DebitAck,
    InsufficientContextError,
    LedgerBalanceAdapter,
)

__all__ = [
    "AlreadyAppliedError",
    "BalanceLedgerAdapter",
    "DebitAck",
    "InsufficientContextError",
    "LedgerBalanceAdapter",
]
