"""
API views for refund disputes.

Endpoints:
    GET  /api/v1/refunds/eligibility/<order_id>/   - Eligibility preview (buyer)
    POST /api/v1/refunds/                          - Open a refund request (buyer)
    GET  /api/v1/refunds/mine/                     - Buyer's requests
    POST /api/v1/refunds/<id>/cancel/              - Withdraw a request (buyer)
    GET  /api/v1/refunds/seller/                   - Seller's requests (?status=)
    POST /api/v1/refunds/<id>/seller-decision/     - Seller approve/reject
    GET  /api/v1/refunds/admin/                    - All requests (?status=)
    GET  /api/v1/refunds/admin/escalated/          - Escalated requests
    POST /api/v1/refunds/<id>/admin-decision/      - Final admin decision
    GET  /api/v1/refunds/admin/orders/<order_id>/  - Refund history of an order
    GET  /api/v1/refunds/<id>/                     - One request (buyer, seller, admin)

Failed service results are returned as {"error", "error_code", "details"?}
with the HTTP status mapped from the error code.
"""

from __future__ import annotations

from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import generics, status
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from core.services import ServiceResult
from refunds.permissions import HasBuyerEmail, IsRefundAdmin
from refunds.serializers import (
    AdminDecisionSerializer,
    AdminRefundRequestSerializer,
    BuyerRefundRequestSerializer,
    RefundCancelSerializer,
    RefundEligibilitySerializer,
    RefundRequestCreateSerializer,
    SellerDecisionSerializer,
    SellerRefundRequestSerializer,
)
from refunds.services import (
    AdminOverrideService,
    RefundQueryService,
    RefundRequestService,
    SellerDecisionService,
)
from refunds.state_machines import RefundRequestStatus

ERROR_STATUS_CODES = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "NOT_ELIGIBLE": status.HTTP_400_BAD_REQUEST,
    "ORDER_NOT_COMPLETED": status.HTTP_400_BAD_REQUEST,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ORDER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "ALREADY_ACTIVE": status.HTTP_409_CONFLICT,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "WINDOW_EXPIRED": status.HTTP_409_CONFLICT,
    "CONCURRENT_MODIFICATION": status.HTTP_409_CONFLICT,
    "LEDGER_FAILURE": status.HTTP_503_SERVICE_UNAVAILABLE,
}

STATUS_FILTER = OpenApiParameter(
    name="status",
    type=OpenApiTypes.STR,
    enum=RefundRequestStatus.values,
    required=False,
    description="Only return requests in this status",
)


def failure_response(result: ServiceResult) -> Response:
    """Render a failed ServiceResult with its mapped HTTP status."""
    body = result.to_response()
    body.pop("success", None)
    return Response(
        body,
        status=ERROR_STATUS_CODES.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


def status_filter(request) -> str | None:
    """Read and validate the optional ?status= query parameter."""
    value = request.query_params.get("status") or None
    if value is not None and value not in RefundRequestStatus.values:
        raise DRFValidationError({"status": [f"Unknown status {value!r}"]})
    return value


class RefundListView(generics.ListAPIView):
    """Base list view; serializers get one evaluation instant per response."""

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["now"] = timezone.now()
        return context


# =============================================================================
# Buyer Endpoints
# =============================================================================


class RefundEligibilityView(APIView):
    """
    Eligibility preview for one of the buyer's orders.

    GET /api/v1/refunds/eligibility/<order_id>/
    """

    permission_classes = [IsAuthenticated, HasBuyerEmail]

    @extend_schema(
        operation_id="get_refund_eligibility",
        summary="Check refund eligibility",
        tags=["Refunds - Buyer"],
        responses={200: RefundEligibilitySerializer},
    )
    def get(self, request, order_id):
        result = RefundRequestService.check_eligibility(order_id, buyer_email=request.user.email)
        if not result.success:
            return failure_response(result)

        eligibility = result.data
        serializer = RefundEligibilitySerializer(
            {
                "order_id": order_id,
                "eligible": eligibility.eligible,
                "refund_deadline": eligibility.refund_deadline,
                "days_remaining": eligibility.days_remaining,
                "has_active_refund": eligibility.has_active_refund,
                "active_request_id": (
                    eligibility.active_request.id if eligibility.active_request else None
                ),
                "block_reason": eligibility.block_reason,
                "error_code": eligibility.error_code,
            }
        )
        return Response(serializer.data)


class RefundRequestCreateView(APIView):
    """
    Open a refund request.

    POST /api/v1/refunds/

    Request body:
        {"order_id": "<uuid>", "reason": "Item arrived broken"}
    """

    permission_classes = [IsAuthenticated, HasBuyerEmail]

    @extend_schema(
        operation_id="create_refund_request",
        summary="Request a refund",
        tags=["Refunds - Buyer"],
        request=RefundRequestCreateSerializer,
        responses={
            201: BuyerRefundRequestSerializer,
            400: OpenApiResponse(description="Not eligible or validation error"),
            404: OpenApiResponse(description="Order not found"),
            409: OpenApiResponse(description="A request is already open"),
        },
    )
    def post(self, request):
        serializer = RefundRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RefundRequestService.create(
            order_id=serializer.validated_data["order_id"],
            reason=serializer.validated_data["reason"],
            buyer_email=request.user.email,
        )
        if not result.success:
            return failure_response(result)

        return Response(
            BuyerRefundRequestSerializer(result.data).data,
            status=status.HTTP_201_CREATED,
        )


class BuyerRefundListView(RefundListView):
    """
    The buyer's refund requests, newest first.

    GET /api/v1/refunds/mine/
    """

    permission_classes = [IsAuthenticated, HasBuyerEmail]
    serializer_class = BuyerRefundRequestSerializer

    def get_queryset(self):
        return RefundQueryService.list_for_buyer(self.request.user.email)

    @extend_schema(
        operation_id="list_my_refund_requests",
        summary="List my refund requests",
        tags=["Refunds - Buyer"],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class RefundCancelView(APIView):
    """
    Withdraw an open refund request.

    POST /api/v1/refunds/<id>/cancel/
    """

    permission_classes = [IsAuthenticated, HasBuyerEmail]

    @extend_schema(
        operation_id="cancel_refund_request",
        summary="Cancel a refund request",
        tags=["Refunds - Buyer"],
        request=RefundCancelSerializer,
        responses={200: BuyerRefundRequestSerializer},
    )
    def post(self, request, pk):
        serializer = RefundCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RefundRequestService.cancel(
            pk,
            buyer_email=request.user.email,
            reason=serializer.validated_data["reason"],
        )
        if not result.success:
            return failure_response(result)
        return Response(BuyerRefundRequestSerializer(result.data).data)


# =============================================================================
# Seller Endpoints
# =============================================================================


class SellerRefundListView(RefundListView):
    """
    Refund requests against the current user's orders.

    GET /api/v1/refunds/seller/?status=pending
    """

    permission_classes = [IsAuthenticated]
    serializer_class = SellerRefundRequestSerializer

    def get_queryset(self):
        return RefundQueryService.list_for_seller(
            self.request.user.pk,
            status=status_filter(self.request),
        )

    @extend_schema(
        operation_id="list_seller_refund_requests",
        summary="List refund requests for my orders",
        tags=["Refunds - Seller"],
        parameters=[STATUS_FILTER],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class SellerDecisionView(APIView):
    """
    Approve or reject a pending refund request as the seller.

    POST /api/v1/refunds/<id>/seller-decision/

    Request body:
        {"action": "reject", "comment": "Item was used"}

    A lapsed response window returns 409 WINDOW_EXPIRED with
    ``details.route_to == "admin_override"``.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="decide_refund_request_as_seller",
        summary="Seller decision",
        tags=["Refunds - Seller"],
        request=SellerDecisionSerializer,
        responses={
            200: SellerRefundRequestSerializer,
            403: OpenApiResponse(description="Not the seller of this order"),
            409: OpenApiResponse(description="Already decided or window expired"),
            503: OpenApiResponse(description="Ledger unavailable, retry"),
        },
    )
    def post(self, request, pk):
        serializer = SellerDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = SellerDecisionService.decide(
            pk,
            actor_seller_id=request.user.pk,
            action=serializer.validated_data["action"],
            comment=serializer.validated_data.get("comment"),
        )
        if not result.success:
            return failure_response(result)
        return Response(SellerRefundRequestSerializer(result.data).data)


# =============================================================================
# Admin Endpoints
# =============================================================================


class AdminRefundListView(RefundListView):
    """
    All refund requests.

    GET /api/v1/refunds/admin/?status=rejected_by_seller
    """

    permission_classes = [IsRefundAdmin]
    serializer_class = AdminRefundRequestSerializer

    def get_queryset(self):
        return RefundQueryService.list_all(status=status_filter(self.request))

    @extend_schema(
        operation_id="list_all_refund_requests",
        summary="List all refund requests",
        tags=["Refunds - Admin"],
        parameters=[STATUS_FILTER],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class EscalatedRefundListView(RefundListView):
    """
    Requests awaiting an administrator: rejected by the seller, or pending
    past their response deadline.

    GET /api/v1/refunds/admin/escalated/
    """

    permission_classes = [IsRefundAdmin]
    serializer_class = AdminRefundRequestSerializer

    def get_queryset(self):
        return RefundQueryService.list_escalated()

    @extend_schema(
        operation_id="list_escalated_refund_requests",
        summary="List escalated refund requests",
        tags=["Refunds - Admin"],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class AdminDecisionView(APIView):
    """
    Final administrative decision.

    POST /api/v1/refunds/<id>/admin-decision/

    Request body:
        {"action": "approve", "comment": "Seller did not respond"}
    """

    permission_classes = [IsRefundAdmin]

    @extend_schema(
        operation_id="decide_refund_request_as_admin",
        summary="Admin decision",
        tags=["Refunds - Admin"],
        request=AdminDecisionSerializer,
        responses={
            200: AdminRefundRequestSerializer,
            409: OpenApiResponse(description="Request already closed"),
            503: OpenApiResponse(description="Ledger unavailable, retry"),
        },
    )
    def post(self, request, pk):
        serializer = AdminDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AdminOverrideService.override(
            pk,
            actor_admin_id=request.user.pk,
            action=serializer.validated_data["action"],
            comment=serializer.validated_data["comment"],
        )
        if not result.success:
            return failure_response(result)
        return Response(AdminRefundRequestSerializer(result.data).data)


class OrderRefundHistoryView(RefundListView):
    """
    Every refund request ever opened for an order, newest first.

    GET /api/v1/refunds/admin/orders/<order_id>/
    """

    permission_classes = [IsRefundAdmin]
    serializer_class = AdminRefundRequestSerializer

    def get_queryset(self):
        return RefundQueryService.list_for_order(self.kwargs["order_id"])

    @extend_schema(
        operation_id="list_order_refund_history",
        summary="List refund requests for an order",
        tags=["Refunds - Admin"],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


# =============================================================================
# Shared Endpoints
# =============================================================================


class RefundRequestDetailView(APIView):
    """
    One refund request, for its buyer, its seller or an administrator.

    GET /api/v1/refunds/<id>/

    Admins get the admin projection, the order's seller the seller
    projection and the buyer the buyer projection.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_refund_request",
        summary="Get a refund request",
        tags=["Refunds"],
        responses={
            200: SellerRefundRequestSerializer,
            403: OpenApiResponse(description="Not a party to this dispute"),
            404: OpenApiResponse(description="Refund request not found"),
        },
    )
    def get(self, request, pk):
        user = request.user
        try:
            refund_request = RefundQueryService.get_for_actor(
                pk,
                buyer_email=user.email,
                seller_id=user.pk,
                is_admin=user.is_staff,
            )
        except BaseApplicationError as e:
            return failure_response(ServiceResult.from_exception(e))

        if user.is_staff:
            serializer_class = AdminRefundRequestSerializer
        elif refund_request.seller_id == user.pk:
            serializer_class = SellerRefundRequestSerializer
        else:
            serializer_class = BuyerRefundRequestSerializer
        return Response(serializer_class(refund_request, context={"now": timezone.now()}).data)
