"""
Serializers for the refunds API.

Serializer Hierarchy:
    BuyerRefundRequestSerializer: What the buyer sees of their dispute
    SellerRefundRequestSerializer: Full record for the order's seller
    AdminRefundRequestSerializer: Full record plus audit fields

    RefundRequestCreateSerializer: Open a dispute
    RefundCancelSerializer: Withdraw a dispute
    SellerDecisionSerializer / AdminDecisionSerializer: Decide a dispute
    RefundEligibilitySerializer: Eligibility preview

Design Decisions:
    - Read and write serializers are separate
    - ``is_escalated`` and ``days_remaining`` are computed against one
      instant per response, taken from the serializer context ("now")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.utils import timezone
from rest_framework import serializers

from refunds.eligibility import EligibilityCalculator
from refunds.models import RefundRequest
from refunds.state_machines import DecisionAction

if TYPE_CHECKING:
    from datetime import datetime


# =============================================================================
# Read Serializers
# =============================================================================


class BuyerRefundRequestSerializer(serializers.ModelSerializer):
    """
    Buyer projection of a refund request.

    Omits the lock version and the admin audit fields.
    """

    seller_id = serializers.IntegerField(read_only=True)
    previous_request_id = serializers.UUIDField(read_only=True, allow_null=True)
    is_escalated = serializers.SerializerMethodField(
        help_text="True when the dispute awaits an administrator"
    )
    days_remaining = serializers.SerializerMethodField(
        help_text="Whole days left for the seller to respond (pending only)"
    )

    class Meta:
        model = RefundRequest
        fields = [
            "id",
            "order_id",
            "product_id",
            "seller_id",
            "buyer_email",
            "amount_cents",
            "currency",
            "reason",
            "status",
            "seller_comment",
            "admin_comment",
            "response_deadline",
            "refund_request_deadline",
            "seller_decided_at",
            "admin_decided_at",
            "cancelled_at",
            "previous_request_id",
            "is_escalated",
            "days_remaining",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _now(self) -> datetime:
        return self.context.get("now") or timezone.now()

    def get_is_escalated(self, obj: RefundRequest) -> bool:
        return EligibilityCalculator.is_escalated(obj, self._now())

    def get_days_remaining(self, obj: RefundRequest) -> int | None:
        return EligibilityCalculator.days_remaining(obj, self._now())


class SellerRefundRequestSerializer(BuyerRefundRequestSerializer):
    """Seller projection: every field of the request."""

    decided_by_admin_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta(BuyerRefundRequestSerializer.Meta):
        fields = BuyerRefundRequestSerializer.Meta.fields + [
            "decided_by_admin_id",
            "cancelled_by",
            "cancellation_reason",
            "version",
        ]
        read_only_fields = fields


class AdminRefundRequestSerializer(SellerRefundRequestSerializer):
    """Admin projection: seller view plus audit metadata."""

    seller_email = serializers.EmailField(source="seller.email", read_only=True)

    class Meta(SellerRefundRequestSerializer.Meta):
        fields = SellerRefundRequestSerializer.Meta.fields + [
            "seller_email",
            "escalation_notified_at",
            "metadata",
        ]
        read_only_fields = fields


class RefundEligibilitySerializer(serializers.Serializer):
    """Eligibility preview for an order."""

    order_id = serializers.UUIDField()
    eligible = serializers.BooleanField()
    refund_deadline = serializers.DateTimeField(allow_null=True)
    days_remaining = serializers.IntegerField()
    has_active_refund = serializers.BooleanField()
    active_request_id = serializers.UUIDField(allow_null=True)
    block_reason = serializers.CharField(allow_null=True)
    error_code = serializers.CharField(allow_null=True)


# =============================================================================
# Write Serializers
# =============================================================================


class RefundRequestCreateSerializer(serializers.Serializer):
    """Open a refund request for a completed order."""

    order_id = serializers.UUIDField(help_text="Order to dispute")
    reason = serializers.CharField(
        max_length=5000,
        help_text="Why the buyer wants a refund",
    )


class RefundCancelSerializer(serializers.Serializer):
    """Withdraw an open refund request."""

    reason = serializers.CharField(
        max_length=5000,
        required=False,
        allow_blank=True,
        default="",
    )


class SellerDecisionSerializer(serializers.Serializer):
    """
    Seller decision input.

    The comment is validated by the service, which reports a missing
    rejection comment as VALIDATION_ERROR.
    """

    action = serializers.ChoiceField(choices=DecisionAction.choices)
    comment = serializers.CharField(
        max_length=5000,
        required=False,
        allow_blank=True,
        allow_null=True,
    )


class AdminDecisionSerializer(serializers.Serializer):
    """
    Administrator decision input.

    The comment is mandatory, but a missing or blank one is reported by
    the service as VALIDATION_ERROR.
    """

    action = serializers.ChoiceField(choices=DecisionAction.choices)
    comment = serializers.CharField(
        max_length=5000,
        required=False,
        allow_blank=True,
        default="",
    )
