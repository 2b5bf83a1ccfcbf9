"""
URL configuration for the refunds API.

All URLs are prefixed with /api/v1/refunds/ in the main URL configuration.
"""

from django.urls import path

from refunds.views import (
    AdminDecisionView,
    AdminRefundListView,
    BuyerRefundListView,
    EscalatedRefundListView,
    OrderRefundHistoryView,
    RefundCancelView,
    RefundEligibilityView,
    RefundRequestCreateView,
    RefundRequestDetailView,
    SellerDecisionView,
    SellerRefundListView,
)

app_name = "refunds"

urlpatterns = [
    # Buyer
    path("", RefundRequestCreateView.as_view(), name="create"),
    path("eligibility/<uuid:order_id>/", RefundEligibilityView.as_view(), name="eligibility"),
    path("mine/", BuyerRefundListView.as_view(), name="mine"),
    path("<uuid:pk>/cancel/", RefundCancelView.as_view(), name="cancel"),
    # Seller
    path("seller/", SellerRefundListView.as_view(), name="seller-list"),
    path("<uuid:pk>/seller-decision/", SellerDecisionView.as_view(), name="seller-decision"),
    # Admin
    path("admin/", AdminRefundListView.as_view(), name="admin-list"),
    path("admin/escalated/", EscalatedRefundListView.as_view(), name="admin-escalated"),
    path("<uuid:pk>/admin-decision/", AdminDecisionView.as_view(), name="admin-decision"),
    path(
        "admin/orders/<uuid:order_id>/",
        OrderRefundHistoryView.as_view(),
        name="admin-order-history",
    ),
    # Buyer, seller or admin
    path("<uuid:pk>/", RefundRequestDetailView.as_view(), name="detail"),
]
