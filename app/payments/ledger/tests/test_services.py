"""
Tests for LedgerService.

Covers account management, idempotent entry recording and balance queries.
"""

import uuid

import pytest

from payments.ledger.exceptions import (
    AccountNotFound,
    CurrencyMismatch,
    IdempotencyConflict,
    InactiveAccount,
    InsufficientBalance,
)
from payments.ledger.models import AccountType, EntryType, LedgerEntry
from payments.ledger.services import LedgerService
from payments.ledger.tests.factories import LedgerAccountFactory
from payments.ledger.types import Money, RecordEntryParams


def refund_debit(debit_account, credit_account, amount_cents=2500, key=None, **kwargs):
    return RecordEntryParams(
        debit_account_id=debit_account.id,
        credit_account_id=credit_account.id,
        amount_cents=amount_cents,
        entry_type=EntryType.REFUND_DEBIT,
        idempotency_key=key or f"test-{uuid.uuid4()}",
        **kwargs,
    )


# =============================================================================
# Accounts
# =============================================================================


class TestGetOrCreateAccount:
    """Tests for LedgerService.get_or_create_account()."""

    def test_creates_new_account_when_none_exists(self, db):
        account = LedgerService.get_or_create_account(AccountType.PLATFORM_REFUNDS)

        assert account.id is not None
        assert account.type == AccountType.PLATFORM_REFUNDS
        assert account.owner_id == ""
        assert account.currency == "usd"

    def test_returns_existing_account(self, db):
        first = LedgerService.get_or_create_account(
            AccountType.SELLER_BALANCE, owner_id="7", currency="eur"
        )
        second = LedgerService.get_or_create_account(
            AccountType.SELLER_BALANCE, owner_id="7", currency="eur"
        )

        assert first.id == second.id

    def test_different_currencies_create_different_accounts(self, db):
        usd = LedgerService.get_or_create_account(
            AccountType.SELLER_BALANCE, owner_id="7", currency="usd"
        )
        eur = LedgerService.get_or_create_account(
            AccountType.SELLER_BALANCE, owner_id="7", currency="eur"
        )

        assert usd.id != eur.id

    def test_allow_negative_only_applies_on_creation(self, db):
        created = LedgerService.get_or_create_account(
            AccountType.SELLER_BALANCE, owner_id="7", allow_negative=True
        )
        fetched = LedgerService.get_or_create_account(
            AccountType.SELLER_BALANCE, owner_id="7", allow_negative=False
        )

        assert created.allow_negative is True
        assert fetched.allow_negative is True


class TestGetAccount:
    """Tests for LedgerService.get_account() and get_account_by_owner()."""

    def test_returns_account_by_id(self, db):
        created = LedgerAccountFactory()

        assert LedgerService.get_account(created.id).id == created.id

    def test_raises_account_not_found(self, db):
        missing = uuid.uuid4()

        with pytest.raises(AccountNotFound) as exc_info:
            LedgerService.get_account(missing)

        assert exc_info.value.details["account_id"] == str(missing)

    def test_returns_account_by_owner(self, db):
        created = LedgerAccountFactory(owner_id="55", currency="eur")

        fetched = LedgerService.get_account_by_owner(
            AccountType.SELLER_BALANCE, owner_id="55", currency="eur"
        )

        assert fetched.id == created.id

    def test_returns_none_for_unknown_owner(self, db):
        assert (
            LedgerService.get_account_by_owner(AccountType.SELLER_BALANCE, owner_id="nobody")
            is None
        )


# =============================================================================
# Recording entries
# =============================================================================


class TestRecordEntry:
    """Tests for LedgerService.record_entry()."""

    def test_records_entry(self, funded_seller_account, refunds_account):
        recorded = LedgerService.record_entry(
            refund_debit(funded_seller_account, refunds_account, amount_cents=2500)
        )

        assert recorded.created is True
        assert recorded.entry.amount_cents == 2500
        assert recorded.entry.debit_account_id == funded_seller_account.id
        assert recorded.entry.credit_account_id == refunds_account.id
        assert funded_seller_account.get_balance() == 7500
        assert refunds_account.get_balance() == 2500

    def test_same_key_returns_existing_entry(self, funded_seller_account, refunds_account):
        first = LedgerService.record_entry(
            refund_debit(funded_seller_account, refunds_account, key="refund-1")
        )
        second = LedgerService.record_entry(
            refund_debit(funded_seller_account, refunds_account, key="refund-1")
        )

        assert second.created is False
        assert second.entry.id == first.entry.id
        assert LedgerEntry.objects.filter(idempotency_key="refund-1").count() == 1
        assert funded_seller_account.get_balance() == 7500

    def test_insufficient_balance_raises(self, seller_account, refunds_account):
        with pytest.raises(InsufficientBalance) as exc_info:
            LedgerService.record_entry(
                refund_debit(seller_account, refunds_account, amount_cents=100)
            )

        assert exc_info.value.required == 100
        assert exc_info.value.available == 0
        assert LedgerEntry.objects.count() == 0

    def test_negative_balance_allowed_when_flagged(self, db, refunds_account):
        seller = LedgerAccountFactory(owner_id="8", allow_negative=True)

        LedgerService.record_entry(refund_debit(seller, refunds_account, amount_cents=300))

        assert seller.get_balance() == -300

    def test_inactive_account_raises(self, inactive_account, refunds_account):
        inactive_account.allow_negative = True
        inactive_account.save()

        with pytest.raises(InactiveAccount):
            LedgerService.record_entry(refund_debit(inactive_account, refunds_account))

    def test_unknown_account_raises(self, seller_account):
        params = RecordEntryParams(
            debit_account_id=seller_account.id,
            credit_account_id=uuid.uuid4(),
            amount_cents=100,
            entry_type=EntryType.ADJUSTMENT,
            idempotency_key="adjust-1",
        )

        with pytest.raises(AccountNotFound):
            LedgerService.record_entry(params)

    def test_entry_takes_currency_from_debit_account(self, db):
        seller = LedgerAccountFactory(owner_id="9", currency="eur", allow_negative=True)
        refunds = LedgerAccountFactory(
            type=AccountType.PLATFORM_REFUNDS, owner_id="", currency="eur"
        )

        recorded = LedgerService.record_entry(refund_debit(seller, refunds))

        assert recorded.entry.currency == "eur"

    def test_currency_mismatch_raises(self, db, refunds_account):
        seller = LedgerAccountFactory(owner_id="10", currency="eur", allow_negative=True)

        with pytest.raises(CurrencyMismatch):
            LedgerService.record_entry(refund_debit(seller, refunds_account))

        assert LedgerEntry.objects.count() == 0

    def test_key_reused_for_different_amount_raises(
        self, funded_seller_account, refunds_account
    ):
        LedgerService.record_entry(
            refund_debit(funded_seller_account, refunds_account, amount_cents=2500, key="refund-2")
        )

        with pytest.raises(IdempotencyConflict) as exc_info:
            LedgerService.record_entry(
                refund_debit(
                    funded_seller_account, refunds_account, amount_cents=3000, key="refund-2"
                )
            )

        assert exc_info.value.details["idempotency_key"] == "refund-2"
        assert funded_seller_account.get_balance() == 7500


class TestRecordEntries:
    """Tests for LedgerService.record_entries()."""

    def test_empty_batch_returns_empty_list(self, db):
        assert LedgerService.record_entries([]) == []

    def test_batch_is_atomic(self, funded_seller_account, refunds_account):
        batch = [
            refund_debit(funded_seller_account, refunds_account, amount_cents=6000),
            refund_debit(funded_seller_account, refunds_account, amount_cents=6000),
        ]

        with pytest.raises(InsufficientBalance):
            LedgerService.record_entries(batch)

        assert LedgerEntry.objects.filter(entry_type=EntryType.REFUND_DEBIT).count() == 0
        assert funded_seller_account.get_balance() == 10000


class TestRecordEntryParams:
    """Validation performed when building RecordEntryParams."""

    @pytest.mark.parametrize("amount", [0, -5])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValueError, match="positive"):
            RecordEntryParams(
                debit_account_id=uuid.uuid4(),
                credit_account_id=uuid.uuid4(),
                amount_cents=amount,
                entry_type=EntryType.ADJUSTMENT,
                idempotency_key="k",
            )

    def test_key_is_required(self):
        with pytest.raises(ValueError, match="idempotency_key"):
            RecordEntryParams(
                debit_account_id=uuid.uuid4(),
                credit_account_id=uuid.uuid4(),
                amount_cents=1,
                entry_type=EntryType.ADJUSTMENT,
                idempotency_key="",
            )

    def test_accounts_must_differ(self):
        account_id = uuid.uuid4()
        with pytest.raises(ValueError, match="different"):
            RecordEntryParams(
                debit_account_id=account_id,
                credit_account_id=account_id,
                amount_cents=1,
                entry_type=EntryType.ADJUSTMENT,
                idempotency_key="k",
            )


# =============================================================================
# Queries
# =============================================================================


class TestBalanceAndReferences:
    """Tests for get_balance() and get_entries_by_reference()."""

    def test_get_balance_returns_money(self, funded_seller_account):
        assert LedgerService.get_balance(funded_seller_account.id) == Money(
            cents=10000, currency="usd"
        )

    def test_get_seller_balance(self, funded_seller_account):
        assert LedgerService.get_seller_balance(42, "usd") == Money(cents=10000, currency="usd")

    def test_get_seller_balance_without_account_is_zero(self, db):
        assert LedgerService.get_seller_balance(7, "eur") == Money(cents=0, currency="eur")

    def test_money_str(self):
        assert str(Money(cents=12345, currency="eur")) == "123.45 EUR"

    def test_get_entries_by_reference(self, funded_seller_account, refunds_account):
        reference_id = uuid.uuid4()
        LedgerService.record_entry(
            refund_debit(
                funded_seller_account,
                refunds_account,
                reference_type="refund_request",
                reference_id=reference_id,
            )
        )

        entries = LedgerService.get_entries_by_reference("refund_request", reference_id)

        assert len(entries) == 1
        assert entries[0].entry_type == EntryType.REFUND_DEBIT

    def test_find_entry(self, funded_seller_account, refunds_account):
        LedgerService.record_entry(
            refund_debit(funded_seller_account, refunds_account, key="lookup-key")
        )

        assert LedgerService.find_entry("lookup-key") is not None
        assert LedgerService.find_entry("missing-key") is None
