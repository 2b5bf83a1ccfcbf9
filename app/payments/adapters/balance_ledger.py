"""
Balance ledger adapter used to debit seller balances.

The refund engine treats the seller balance as an external, transactional
dependency behind the BalanceLedgerAdapter protocol:

    debit(account_id, amount_cents, currency, idempotency_key) -> DebitAck

Errors:
    InsufficientContextError: the call is missing data needed to post a
        debit (account id, positive amount, currency or key)
    AlreadyAppliedError: a debit with the same idempotency key was already
        posted; callers treat this as success
    LedgerError: any other ledger failure (inactive account, etc.)

LedgerBalanceAdapter implements the protocol on top of payments.ledger:
each debit is a REFUND_DEBIT entry from the seller's SELLER_BALANCE account
to the PLATFORM_REFUNDS account, keyed by the idempotency key. Seller
balance accounts may go negative so that an approved refund is never
blocked by an empty balance.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from payments.ledger import (
    AccountType,
    EntryType,
    LedgerError,
    LedgerService,
    RecordEntryParams,
)

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

REFUND_REFERENCE_TYPE = "refund_request"


# =============================================================================
# Exceptions
# =============================================================================


class InsufficientContextError(LedgerError):
    """Raised when a debit request lacks the data needed to post it."""

    default_error_code: str = "INSUFFICIENT_CONTEXT"


class AlreadyAppliedError(LedgerError):
    """
    Raised when a debit with the same idempotency key was already posted.

    Attributes:
        entry_id: Id of the ledger entry posted by the first call
    """

    default_error_code: str = "ALREADY_APPLIED"

    def __init__(self, idempotency_key: str, entry_id: uuid.UUID):
        self.idempotency_key = idempotency_key
        self.entry_id = entry_id
        super().__init__(
            f"Debit {idempotency_key} was already applied",
            details={
                "idempotency_key": idempotency_key,
                "entry_id": str(entry_id),
            },
        )


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class DebitAck:
    """
    Acknowledgement of a posted debit.

    Attributes:
        entry_id: Ledger entry recording the debit
        account_id: Owner id of the debited balance
        amount_cents: Amount debited in cents
        currency: Currency code (lowercase)
        idempotency_key: Key the debit was posted under
        already_applied: True when the debit had been posted by an earlier call
    """

    entry_id: uuid.UUID
    account_id: str
    amount_cents: int
    currency: str
    idempotency_key: str
    already_applied: bool = False


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class BalanceLedgerAdapter(Protocol):
    """Debit access to seller balances."""

    def debit(
        self,
        account_id: str,
        amount_cents: int,
        currency: str,
        idempotency_key: str,
        reference_id: uuid.UUID | None = None,
    ) -> DebitAck:
        """
        Debit a seller balance at most once per idempotency key.

        Raises:
            InsufficientContextError: If required data is missing
            AlreadyAppliedError: If the key was already used
            LedgerError: If the debit could not be posted
        """
        ...


# =============================================================================
# Ledger Implementation
# =============================================================================


class LedgerBalanceAdapter:
    """BalanceLedgerAdapter backed by the local double-entry ledger."""

    def __init__(self, created_by: str = "refund_engine"):
        self.created_by = created_by

    def _validate(
        self,
        account_id: str,
        amount_cents: int,
        currency: str,
        idempotency_key: str,
    ) -> None:
        missing: dict[str, Any] = {}
        if not account_id:
            missing["account_id"] = account_id
        if not isinstance(amount_cents, int) or amount_cents <= 0:
            missing["amount_cents"] = amount_cents
        if not currency or len(currency) != 3:
            missing["currency"] = currency
        if not idempotency_key:
            missing["idempotency_key"] = idempotency_key
        if missing:
            raise InsufficientContextError(
                "Debit request is missing required data",
                details={"invalid_fields": sorted(missing)},
            )

    def debit(
        self,
        account_id: str,
        amount_cents: int,
        currency: str,
        idempotency_key: str,
        reference_id: uuid.UUID | None = None,
    ) -> DebitAck:
        account_id = str(account_id) if account_id is not None else ""
        self._validate(account_id, amount_cents, currency, idempotency_key)
        currency = currency.lower()

        log_context = {
            "account_id": account_id,
            "amount_cents": amount_cents,
            "currency": currency,
            "idempotency_key": idempotency_key,
        }

        existing = LedgerService.find_entry(idempotency_key)
        if existing is not None:
            logger.info("Debit already applied", extra=log_context)
            raise AlreadyAppliedError(idempotency_key, existing.id)

        seller_balance = LedgerService.get_or_create_account(
            AccountType.SELLER_BALANCE,
            owner_id=account_id,
            currency=currency,
            allow_negative=True,
        )
        platform_refunds = LedgerService.get_or_create_account(
            AccountType.PLATFORM_REFUNDS,
            currency=currency,
        )

        recorded = LedgerService.record_entry(
            RecordEntryParams(
                debit_account_id=seller_balance.id,
                credit_account_id=platform_refunds.id,
                amount_cents=amount_cents,
                entry_type=EntryType.REFUND_DEBIT,
                idempotency_key=idempotency_key,
                reference_type=REFUND_REFERENCE_TYPE if reference_id else None,
                reference_id=reference_id,
                description=f"Refund debit {idempotency_key}",
                created_by=self.created_by,
            )
        )
        if not recorded.created:
            # Lost a race with another caller using the same key
            logger.info("Debit already applied", extra=log_context)
            raise AlreadyAppliedError(idempotency_key, recorded.entry.id)

        logger.info(
            "Seller balance debited",
            extra={**log_context, "entry_id": str(recorded.entry.id)},
        )
        return DebitAck(
            entry_id=recorded.entry.id,
            account_id=account_id,
            amount_cents=amount_cents,
            currency=currency,
            idempotency_key=idempotency_key,
        )
