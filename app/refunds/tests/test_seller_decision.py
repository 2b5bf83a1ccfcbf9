"""
Tests for SellerDecisionService.

The seller decides once, inside the 48 business-hour window. Approval
debits the seller balance in the same transaction as the status change.
"""

import uuid
from datetime import timedelta

import pytest
from django.db import OperationalError
from freezegun import freeze_time

from orders.tests.factories import OrderFactory
from payments.adapters import AlreadyAppliedError
from payments.ledger import AccountType, EntryType, LedgerEntry, LedgerService
from payments.ledger.exceptions import InactiveAccount
from refunds.models import RefundRequest
from refunds.services import RefundRequestService, SellerDecisionService
from refunds.state_machines import RefundRequestStatus
from refunds.tests.support import ORDER_COMPLETED_AT, RESPONSE_DEADLINE, refund_debits

S = RefundRequestStatus

WITHIN_WINDOW = ORDER_COMPLETED_AT + timedelta(hours=10)


def decide(refund_request, seller_id, action, comment=None, at=WITHIN_WINDOW):
    with freeze_time(at):
        return SellerDecisionService.decide(
            refund_request.id,
            actor_seller_id=seller_id,
            action=action,
            comment=comment,
        )


class FailingAdapter:
    """Balance adapter whose ledger is unavailable."""

    def __init__(self, error):
        self.error = error
        self.calls = 0

    def debit(self, account_id, amount_cents, currency, idempotency_key, reference_id=None):
        self.calls += 1
        raise self.error


# =============================================================================
# Approve
# =============================================================================


@pytest.mark.django_db
class TestSellerApprove:
    """Approving a pending request."""

    def test_approve_debits_seller_once(self, pending_request, seller, dispatcher):
        result = decide(pending_request, seller.pk, "approve")

        assert result.success is True
        assert result.data.status == S.APPROVED_BY_SELLER
        assert result.data.seller_decided_at == WITHIN_WINDOW
        assert result.data.seller_comment is None
        assert result.data.version == 2

        debits = refund_debits(pending_request)
        assert len(debits) == 1
        assert debits[0].amount_cents == 10000
        assert debits[0].currency == "eur"
        assert result.data.metadata["ledger_entry_id"] == str(debits[0].id)
        assert result.data.metadata["ledger_already_applied"] is False

        seller_balance = LedgerService.get_account_by_owner(
            AccountType.SELLER_BALANCE, owner_id=str(seller.pk), currency="eur"
        )
        assert seller_balance.get_balance() == -10000
        assert dispatcher.events()[-1] == "refund_approved"
        assert dispatcher.calls[-1]["recipients"] == [pending_request.buyer_email]

    def test_approve_keeps_optional_comment(self, pending_request, seller):
        result = decide(pending_request, seller.pk, "approve", comment="Sorry about that")

        assert result.data.seller_comment == "Sorry about that"

    def test_second_approve_is_invalid_transition(self, pending_request, seller):
        decide(pending_request, seller.pk, "approve")

        result = decide(pending_request, seller.pk, "approve")

        assert result.error_code == "INVALID_TRANSITION"
        assert result.details["current_status"] == S.APPROVED_BY_SELLER
        assert len(refund_debits(pending_request)) == 1

    def test_already_applied_debit_counts_as_success(self, pending_request, seller):
        class AppliedAdapter:
            def debit(self, account_id, amount_cents, currency, idempotency_key, reference_id=None):
                raise AlreadyAppliedError(idempotency_key, uuid.uuid4())

        SellerDecisionService.set_balance_adapter(AppliedAdapter())

        result = decide(pending_request, seller.pk, "approve")

        assert result.success is True
        assert result.data.status == S.APPROVED_BY_SELLER
        assert result.data.metadata["ledger_already_applied"] is True

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionError("ledger unreachable"),
            TimeoutError("ledger timed out"),
            InactiveAccount("Account is inactive"),
            OperationalError("database is locked"),
            RuntimeError("adapter misconfigured"),
        ],
    )
    def test_ledger_failure_rolls_back(self, pending_request, seller, dispatcher, error):
        adapter = FailingAdapter(error)
        SellerDecisionService.set_balance_adapter(adapter)

        result = decide(pending_request, seller.pk, "approve")

        assert result.success is False
        assert result.error_code == "LEDGER_FAILURE"
        assert result.details["retryable"] is True
        assert adapter.calls == 1

        stored = RefundRequest.objects.get(pk=pending_request.pk)
        assert stored.status == S.PENDING
        assert stored.version == 1
        assert stored.seller_decided_at is None
        assert dispatcher.events() == ["refund_requested"]

    def test_approval_posts_only_refund_debits(self, pending_request, seller):
        decide(pending_request, seller.pk, "approve")

        entry_types = set(LedgerEntry.objects.values_list("entry_type", flat=True))
        assert entry_types == {EntryType.REFUND_DEBIT}

    def test_ledger_failure_reports_underlying_error(self, pending_request, seller):
        SellerDecisionService.set_balance_adapter(
            FailingAdapter(OperationalError("database is locked"))
        )

        result = decide(pending_request, seller.pk, "approve")

        assert result.details["ledger_error_code"] == "OPERATIONALERROR"
        assert result.details["refund_request_id"] == str(pending_request.id)

    def test_retry_after_ledger_failure_succeeds(self, pending_request, seller):
        SellerDecisionService.set_balance_adapter(FailingAdapter(ConnectionError("down")))
        decide(pending_request, seller.pk, "approve")
        SellerDecisionService.set_balance_adapter(None)

        result = decide(pending_request, seller.pk, "approve")

        assert result.data.status == S.APPROVED_BY_SELLER
        assert len(refund_debits(pending_request)) == 1


# =============================================================================
# Reject
# =============================================================================


@pytest.mark.django_db
class TestSellerReject:
    """Rejecting a pending request."""

    @pytest.mark.parametrize("comment", [None, "", "   "])
    def test_reject_requires_comment(self, pending_request, seller, comment):
        result = decide(pending_request, seller.pk, "reject", comment=comment)

        assert result.error_code == "VALIDATION_ERROR"
        assert "comment" in result.errors
        assert RefundRequest.objects.get(pk=pending_request.pk).status == S.PENDING

    def test_reject_with_comment(self, pending_request, seller, dispatcher):
        result = decide(
            pending_request, seller.pk, "reject", comment="produto entregue corretamente"
        )

        assert result.success is True
        assert result.data.status == S.REJECTED_BY_SELLER
        assert result.data.seller_comment == "produto entregue corretamente"
        assert refund_debits(pending_request) == []
        assert dispatcher.events()[-1] == "refund_rejected_by_seller"

    def test_rejected_request_cannot_be_decided_again(self, pending_request, seller):
        decide(pending_request, seller.pk, "reject", comment="Used item")

        result = decide(pending_request, seller.pk, "approve")

        assert result.error_code == "INVALID_TRANSITION"


# =============================================================================
# Guards
# =============================================================================


@pytest.mark.django_db
class TestSellerDecisionGuards:
    """NotFound, Forbidden, WindowExpired and bad input."""

    def test_unknown_request(self, seller):
        result = SellerDecisionService.decide(uuid.uuid4(), seller.pk, "approve")

        assert result.error_code == "NOT_FOUND"

    def test_other_seller_is_forbidden(self, pending_request, other_seller):
        result = decide(pending_request, other_seller.pk, "approve")

        assert result.error_code == "FORBIDDEN"
        assert refund_debits(pending_request) == []

    def test_deadline_instant_is_still_inside_window(self, pending_request, seller):
        result = decide(pending_request, seller.pk, "approve", at=RESPONSE_DEADLINE)

        assert result.success is True

    def test_late_decision_routes_to_admin(self, pending_request, seller):
        late = RESPONSE_DEADLINE + timedelta(seconds=1)

        result = decide(pending_request, seller.pk, "approve", at=late)

        assert result.error_code == "WINDOW_EXPIRED"
        assert result.details["route_to"] == "admin_override"
        assert result.details["response_deadline"] == RESPONSE_DEADLINE.isoformat()
        assert RefundRequest.objects.get(pk=pending_request.pk).status == S.PENDING
        assert refund_debits(pending_request) == []

    def test_late_rejection_is_also_refused(self, pending_request, seller):
        late = RESPONSE_DEADLINE + timedelta(days=1)

        result = decide(pending_request, seller.pk, "reject", comment="Used item", at=late)

        assert result.error_code == "WINDOW_EXPIRED"

    def test_weekend_does_not_consume_window(self, seller, buyer):
        friday = ORDER_COMPLETED_AT + timedelta(days=4, hours=1)  # Friday 10:00
        order = OrderFactory(seller=seller, buyer_email=buyer.email, completed_at=friday)
        with freeze_time(friday):
            refund_request = RefundRequestService.create(
                order_id=order.id, reason="Missing parts", buyer_email=buyer.email
            ).data

        # Monday 20:00 is 34 business hours later; 82 calendar hours have passed
        monday_evening = friday + timedelta(days=3, hours=10)
        result = decide(refund_request, seller.pk, "approve", at=monday_evening)

        assert result.success is True

    def test_unknown_action(self, pending_request, seller):
        result = decide(pending_request, seller.pk, "escalate")

        assert result.error_code == "VALIDATION_ERROR"
        assert "action" in result.errors
