"""
Pytest fixtures for ledger tests.

Sections:
    - Account Fixtures: Pre-configured ledger accounts
    - Entry Fixtures: Accounts with money already on them
"""

import pytest

from payments.ledger.models import AccountType, EntryType
from payments.ledger.tests.factories import LedgerAccountFactory, LedgerEntryFactory


# ==========================================================================
# Account Fixtures
# ==========================================================================


@pytest.fixture
def escrow_account(db):
    """Platform escrow account. Allowed to go negative as the source of sale credits."""
    return LedgerAccountFactory(
        type=AccountType.PLATFORM_ESCROW,
        owner_id="",
        allow_negative=True,
    )


@pytest.fixture
def refunds_account(db):
    """Platform refunds clearing account."""
    return LedgerAccountFactory(
        type=AccountType.PLATFORM_REFUNDS,
        owner_id="",
        allow_negative=False,
    )


@pytest.fixture
def seller_account(db):
    """Seller balance account that cannot go negative."""
    return LedgerAccountFactory(
        type=AccountType.SELLER_BALANCE,
        owner_id="42",
        allow_negative=False,
    )


@pytest.fixture
def inactive_account(db):
    """Deactivated seller balance account."""
    return LedgerAccountFactory(
        type=AccountType.SELLER_BALANCE,
        owner_id="99",
        is_active=False,
    )


# ==========================================================================
# Entry Fixtures
# ==========================================================================


@pytest.fixture
def funded_seller_account(db, escrow_account, seller_account):
    """Seller balance holding 10000 cents from one sale credit."""
    LedgerEntryFactory(
        debit_account=escrow_account,
        credit_account=seller_account,
        amount_cents=10000,
        entry_type=EntryType.SALE_CREDIT,
    )
    return seller_account
