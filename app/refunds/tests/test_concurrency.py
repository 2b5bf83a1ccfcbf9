"""
Tests for concurrent decisions on the same refund request.

A decision validates a snapshot and commits with a compare-and-swap on
(status, version). These tests hand the services a stale snapshot to
reproduce a writer that read the request just before a competing decision
committed.
"""

import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import transaction
from freezegun import freeze_time

from refunds.exceptions import ConcurrentModificationError, RefundRequestNotFoundError
from refunds.locks import lock_for_transition
from refunds.models import RefundRequest
from refunds.services import (
    AdminOverrideService,
    SellerDecisionService,
    debit_seller_for_refund,
)
from refunds.state_machines import RefundRequestStatus
from refunds.tests.support import ORDER_COMPLETED_AT, refund_debits

S = RefundRequestStatus

WITHIN_WINDOW = ORDER_COMPLETED_AT + timedelta(hours=2)


def reload(refund_request) -> RefundRequest:
    return RefundRequest.objects.select_related("seller").get(pk=refund_request.pk)


# =============================================================================
# Seller vs admin race
# =============================================================================


@pytest.mark.django_db
class TestSellerAdminRace:
    """Exactly one of two simultaneous approvals wins."""

    def test_admin_wins_seller_gets_invalid_transition(self, pending_request, seller, admin_user):
        stale = reload(pending_request)
        with freeze_time(WITHIN_WINDOW):
            admin_result = AdminOverrideService.override(
                pending_request.id, admin_user.pk, "approve", "Carrier confirmed loss"
            )
            fresh = reload(pending_request)

            with patch.object(SellerDecisionService, "_load", side_effect=[stale, fresh]):
                seller_result = SellerDecisionService.decide(
                    pending_request.id, seller.pk, "approve"
                )

        assert admin_result.success is True
        assert seller_result.success is False
        assert seller_result.error_code == "INVALID_TRANSITION"
        assert seller_result.details["concurrent_modification"] is True
        assert seller_result.details["current_status"] == S.APPROVED_BY_ADMIN

        assert reload(pending_request).status == S.APPROVED_BY_ADMIN
        debits = refund_debits(pending_request)
        assert len(debits) == 1
        assert debits[0].idempotency_key == str(pending_request.id)

    def test_seller_wins_admin_gets_invalid_transition(self, pending_request, seller, admin_user):
        stale = reload(pending_request)
        with freeze_time(WITHIN_WINDOW):
            seller_result = SellerDecisionService.decide(pending_request.id, seller.pk, "approve")
        fresh = reload(pending_request)

        with patch.object(AdminOverrideService, "_load", side_effect=[stale, fresh]):
            admin_result = AdminOverrideService.override(
                pending_request.id, admin_user.pk, "approve", "Force approve"
            )

        assert seller_result.success is True
        assert admin_result.error_code == "INVALID_TRANSITION"
        assert admin_result.details["concurrent_modification"] is True
        assert reload(pending_request).status == S.APPROVED_BY_SELLER
        assert len(refund_debits(pending_request)) == 1

    def test_seller_reject_loses_to_admin_reject(self, pending_request, seller, admin_user):
        stale = reload(pending_request)
        AdminOverrideService.override(pending_request.id, admin_user.pk, "reject", "No proof")
        fresh = reload(pending_request)

        with freeze_time(WITHIN_WINDOW):
            with patch.object(SellerDecisionService, "_load", side_effect=[stale, fresh]):
                result = SellerDecisionService.decide(
                    pending_request.id, seller.pk, "reject", comment="Used item"
                )

        assert result.error_code == "INVALID_TRANSITION"
        stored = reload(pending_request)
        assert stored.status == S.REJECTED_BY_ADMIN
        assert stored.seller_comment is None


# =============================================================================
# Retry behaviour
# =============================================================================


@pytest.mark.django_db
class TestTransitionRetry:
    """One internal retry against a fresh snapshot."""

    def test_retry_succeeds_when_transition_still_valid(self, pending_request, seller):
        stale = reload(pending_request)
        # A concurrent writer bumped the version without changing the status
        RefundRequest.objects.filter(pk=pending_request.pk).update(version=5)
        fresh = reload(pending_request)

        with freeze_time(WITHIN_WINDOW):
            with patch.object(SellerDecisionService, "_load", side_effect=[stale, fresh]):
                result = SellerDecisionService.decide(pending_request.id, seller.pk, "approve")

        assert result.success is True
        assert result.data.status == S.APPROVED_BY_SELLER
        assert result.data.version == 6
        assert len(refund_debits(pending_request)) == 1

    def test_second_lost_race_reports_concurrent_modification(self, pending_request, seller):
        stale = reload(pending_request)
        RefundRequest.objects.filter(pk=pending_request.pk).update(version=5)

        with freeze_time(WITHIN_WINDOW):
            with patch.object(SellerDecisionService, "_load", side_effect=[stale, stale]):
                result = SellerDecisionService.decide(pending_request.id, seller.pk, "approve")

        assert result.error_code == "CONCURRENT_MODIFICATION"
        assert result.details["expected_version"] == 1
        assert result.details["current_version"] == 5
        assert reload(pending_request).status == S.PENDING
        assert refund_debits(pending_request) == []


# =============================================================================
# Building blocks
# =============================================================================


@pytest.mark.django_db
class TestLockForTransition:
    """Tests for lock_for_transition()."""

    def test_returns_row_when_unchanged(self, pending_request):
        with transaction.atomic():
            locked = lock_for_transition(pending_request.pk, S.PENDING, 1)

        assert locked.pk == pending_request.pk

    def test_changed_version_raises(self, pending_request):
        with pytest.raises(ConcurrentModificationError) as exc_info:
            with transaction.atomic():
                lock_for_transition(pending_request.pk, S.PENDING, 7)

        assert exc_info.value.details["current_version"] == 1

    def test_changed_status_raises(self, pending_request):
        with pytest.raises(ConcurrentModificationError):
            with transaction.atomic():
                lock_for_transition(pending_request.pk, S.REJECTED_BY_SELLER, 1)

    def test_missing_row_raises_not_found(self, db):
        with pytest.raises(RefundRequestNotFoundError):
            with transaction.atomic():
                lock_for_transition(uuid.uuid4(), S.PENDING, 1)


@pytest.mark.django_db
class TestDebitIdempotency:
    """The ledger applies at most one debit per request id."""

    def test_repeated_debit_is_applied_once(self, pending_request):
        first = debit_seller_for_refund(pending_request)
        second = debit_seller_for_refund(pending_request)

        assert first.already_applied is False
        assert second.already_applied is True
        assert second.entry_id == first.entry_id
        assert len(refund_debits(pending_request)) == 1
