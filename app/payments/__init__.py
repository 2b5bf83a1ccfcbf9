"""
Payments app for seller balances.

This app handles:
- The double-entry ledger holding seller balances
- The balance adapter used to debit sellers when refunds are approved

Related apps:
    - refunds: debits seller balances through BalanceLedgerAdapter

Usage:
    from payments.adapters.balance_ledger import LedgerBalanceAdapter

    ack = LedgerBalanceAdapter().debit(
        account_id=str(seller.pk),
        amount_cents=10000,
        currency="eur",
        idempotency_key=str(refund_request.id),
    )
"""
