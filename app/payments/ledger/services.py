"""
Posting and reading the seller balance ledger.

Writes go through LedgerService.record_entry / record_entries. Each posting
is keyed: the first call with a key writes the entry, every later call with
the same key gets that entry back with ``created=False``. The refund engine
keys refund debits by refund request id, which is what makes an approval
debit the seller at most once.

Usage:
    from payments.ledger.services import LedgerService
    from payments.ledger.types import RecordEntryParams

    recorded = LedgerService.record_entry(RecordEntryParams(
        debit_account_id=seller_balance.id,
        credit_account_id=platform_refunds.id,
        amount_cents=10000,
        entry_type=EntryType.REFUND_DEBIT,
        idempotency_key=str(refund_request.id),
    ))
"""

from __future__ import annotations

import logging
import uuid

from django.db import IntegrityError, transaction

from .exceptions import (
    AccountNotFound,
    CurrencyMismatch,
    IdempotencyConflict,
    InactiveAccount,
    InsufficientBalance,
)
from .models import AccountType, LedgerAccount, LedgerEntry
from .types import Money, RecordedEntry, RecordEntryParams

logger = logging.getLogger(__name__)


class LedgerService:
    """Stateless ledger operations."""

    # =========================================================================
    # Accounts
    # =========================================================================

    @staticmethod
    def get_or_create_account(
        account_type: AccountType | str,
        owner_id: str = "",
        currency: str = "usd",
        allow_negative: bool = False,
    ) -> LedgerAccount:
        """
        Account for (type, owner, currency), created on first use.

        ``allow_negative`` is only applied when the account is created.
        """
        lookup = {"type": account_type, "owner_id": owner_id, "currency": currency}
        try:
            account, created = LedgerAccount.objects.get_or_create(
                **lookup, defaults={"allow_negative": allow_negative}
            )
        except IntegrityError:
            # Another process created it between our read and insert
            return LedgerAccount.objects.get(**lookup)
        if created:
            logger.info(
                "Ledger account opened",
                extra={"account_type": account_type, "owner_id": owner_id, "currency": currency},
            )
        return account

    @staticmethod
    def get_account(account_id: uuid.UUID) -> LedgerAccount:
        try:
            return LedgerAccount.objects.get(id=account_id)
        except LedgerAccount.DoesNotExist:
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={"account_id": str(account_id)},
            )

    @staticmethod
    def get_account_by_owner(
        account_type: AccountType | str,
        owner_id: str,
        currency: str = "usd",
    ) -> LedgerAccount | None:
        return LedgerAccount.objects.filter(
            type=account_type, owner_id=owner_id, currency=currency
        ).first()

    @staticmethod
    def get_balance(account_id: uuid.UUID) -> Money:
        account = LedgerService.get_account(account_id)
        return Money(cents=account.get_balance(), currency=account.currency)

    @staticmethod
    def get_seller_balance(seller_id, currency: str) -> Money:
        """Seller's balance in ``currency``; zero if no account exists yet."""
        account = LedgerService.get_account_by_owner(
            AccountType.SELLER_BALANCE, str(seller_id), currency
        )
        cents = account.get_balance() if account else 0
        return Money(cents=cents, currency=currency)

    # =========================================================================
    # Entries
    # =========================================================================

    @staticmethod
    def find_entry(idempotency_key: str) -> LedgerEntry | None:
        return LedgerEntry.objects.filter(idempotency_key=idempotency_key).first()

    @staticmethod
    def get_entries_by_reference(reference_type: str, reference_id: uuid.UUID) -> list[LedgerEntry]:
        """Entries posted for one business record, oldest first."""
        return list(
            LedgerEntry.objects.for_reference(reference_type, reference_id).order_by("created_at")
        )

    @staticmethod
    def record_entry(params: RecordEntryParams) -> RecordedEntry:
        """
        Post one entry, or return the entry already posted under its key.

        Raises:
            AccountNotFound, InactiveAccount, CurrencyMismatch,
            InsufficientBalance, IdempotencyConflict
        """
        return LedgerService.record_entries([params])[0]

    @staticmethod
    def record_entries(entries: list[RecordEntryParams]) -> list[RecordedEntry]:
        """
        Post several entries in one transaction; all or nothing.

        Entries are checked in order, so an earlier entry in the batch can
        fund a later one.
        """
        if not entries:
            return []

        with transaction.atomic():
            accounts = LedgerService._lock_accounts(entries)
            return [LedgerService._post(params, accounts) for params in entries]

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _lock_accounts(entries: list[RecordEntryParams]) -> dict[uuid.UUID, LedgerAccount]:
        """Row-lock every account the batch touches, in id order."""
        wanted = {p.debit_account_id for p in entries} | {p.credit_account_id for p in entries}
        accounts = {
            account.id: account
            for account in LedgerAccount.objects.filter(id__in=wanted)
            .select_for_update()
            .order_by("id")
        }
        missing = wanted - accounts.keys()
        if missing:
            account_id = sorted(missing, key=str)[0]
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={"account_id": str(account_id)},
            )
        return accounts

    @staticmethod
    def _post(params: RecordEntryParams, accounts: dict[uuid.UUID, LedgerAccount]) -> RecordedEntry:
        debit = accounts[params.debit_account_id]
        credit = accounts[params.credit_account_id]

        # Replays must be answered before the balance check, which would
        # otherwise count the original posting against the replay
        existing = LedgerService.find_entry(params.idempotency_key)
        if existing is not None:
            LedgerService._check_replay(existing, params)
            return RecordedEntry(entry=existing, created=False)

        LedgerService._check_postable(debit, credit, params.amount_cents)

        try:
            with transaction.atomic():
                entry = LedgerEntry.objects.create(
                    idempotency_key=params.idempotency_key,
                    debit_account=debit,
                    credit_account=credit,
                    amount_cents=params.amount_cents,
                    currency=debit.currency,
                    entry_type=params.entry_type,
                    reference_id=params.reference_id,
                    reference_type=params.reference_type,
                    description=params.description,
                    metadata=params.metadata or {},
                    created_by=params.created_by,
                )
        except IntegrityError:
            # Concurrent writer won the unique key
            existing = LedgerEntry.objects.get(idempotency_key=params.idempotency_key)
            LedgerService._check_replay(existing, params)
            return RecordedEntry(entry=existing, created=False)
        return RecordedEntry(entry=entry, created=True)

    @staticmethod
    def _check_postable(debit: LedgerAccount, credit: LedgerAccount, amount_cents: int) -> None:
        for account in (debit, credit):
            if not account.is_active:
                raise InactiveAccount(
                    f"Account {account.id} is inactive",
                    details={"account_id": str(account.id)},
                )
        if debit.currency != credit.currency:
            raise CurrencyMismatch(
                f"Cannot move {debit.currency} into a {credit.currency} account",
                details={
                    "debit_account_id": str(debit.id),
                    "credit_account_id": str(credit.id),
                },
            )
        if not debit.allow_negative:
            available = debit.get_balance()
            if available < amount_cents:
                raise InsufficientBalance(debit.id, required=amount_cents, available=available)

    @staticmethod
    def _check_replay(existing: LedgerEntry, params: RecordEntryParams) -> None:
        if (
            existing.amount_cents != params.amount_cents
            or existing.debit_account_id != params.debit_account_id
            or existing.credit_account_id != params.credit_account_id
        ):
            raise IdempotencyConflict(
                f"Key {params.idempotency_key!r} was already used for a different entry",
                details={
                    "idempotency_key": params.idempotency_key,
                    "entry_id": str(existing.id),
                },
            )
