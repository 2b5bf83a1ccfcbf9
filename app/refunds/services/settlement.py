"""
Settlement glue between refund approvals and the seller balance.

Both approval paths (seller and admin) debit through
debit_seller_for_refund(), always with the request id as idempotency key.
The ledger therefore applies at most one debit per request even if both
paths reach it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils.module_loading import import_string

from payments.adapters import AlreadyAppliedError, DebitAck
from refunds.exceptions import LedgerFailureError

if TYPE_CHECKING:
    from payments.adapters import BalanceLedgerAdapter
    from refunds.models import RefundRequest

logger = logging.getLogger(__name__)


def get_balance_adapter() -> BalanceLedgerAdapter:
    """Instantiate the adapter named by REFUND_BALANCE_ADAPTER."""
    return import_string(settings.REFUND_BALANCE_ADAPTER)()


def debit_seller_for_refund(
    refund_request: RefundRequest,
    adapter: BalanceLedgerAdapter | None = None,
) -> DebitAck:
    """
    Debit the seller's balance by the refund amount.

    AlreadyApplied counts as success. Any other error from the adapter
    (ledger rules, database, network) is raised as LedgerFailureError so
    the surrounding transition rolls back and the caller can retry.

    Raises:
        LedgerFailureError: If the debit could not be confirmed
    """
    adapter = adapter or get_balance_adapter()
    log_context = {
        "refund_request_id": str(refund_request.id),
        "seller_id": str(refund_request.seller_id),
        "amount_cents": refund_request.amount_cents,
        "currency": refund_request.currency,
    }

    try:
        return adapter.debit(
            account_id=str(refund_request.seller_id),
            amount_cents=refund_request.amount_cents,
            currency=refund_request.currency,
            idempotency_key=refund_request.ledger_idempotency_key,
            reference_id=refund_request.id,
        )
    except AlreadyAppliedError as e:
        logger.info("Refund debit already applied", extra=log_context)
        return DebitAck(
            entry_id=e.entry_id,
            account_id=str(refund_request.seller_id),
            amount_cents=refund_request.amount_cents,
            currency=refund_request.currency,
            idempotency_key=e.idempotency_key,
            already_applied=True,
        )
    except Exception as e:
        logger.error(
            "Refund debit failed",
            extra={**log_context, "error": str(e)},
            exc_info=True,
        )
        raise LedgerFailureError(
            "The seller balance could not be debited; please retry",
            details={
                "refund_request_id": str(refund_request.id),
                "ledger_error_code": getattr(e, "error_code", e.__class__.__name__.upper()),
            },
        ) from e
