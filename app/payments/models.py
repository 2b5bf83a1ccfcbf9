"""
Model registry for the payments app.

The ledger models live in payments.ledger.models; importing them here puts
them under the ``payments`` app label.
"""

from payments.ledger.models import LedgerAccount, LedgerEntry

__all__ = ["LedgerAccount", "LedgerEntry"]
