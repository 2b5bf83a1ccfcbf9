"""
Payments app configuration.

This app owns the seller balance ledger:
- Double-entry bookkeeping (payments.ledger)
- The BalanceLedgerAdapter the refund engine debits through
  (payments.adapters.balance_ledger)
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
