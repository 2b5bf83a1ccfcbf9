"""
Django admin configuration for refund requests.

Status is read-only: decisions go through the API so that every transition
is validated, locked and settled by the refund services.
"""

from django.contrib import admin

from refunds.models import RefundRequest


@admin.register(RefundRequest)
class RefundRequestAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "order_id",
        "status",
        "escalated",
        "amount_display",
        "seller",
        "buyer_email",
        "response_deadline",
        "created_at",
    ]
    list_filter = ["status", "currency", "created_at"]
    search_fields = ["id", "order_id", "buyer_email", "seller__email"]
    readonly_fields = [
        "id",
        "order_id",
        "buyer_email",
        "seller",
        "product_id",
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
        "decided_by_admin",
        "cancelled_at",
        "cancelled_by",
        "cancellation_reason",
        "previous_request",
        "escalation_notified_at",
        "version",
        "metadata",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    @admin.display(boolean=True, description="Escalated")
    def escalated(self, obj: RefundRequest) -> bool:
        return obj.is_escalated

    @admin.display(description="Amount")
    def amount_display(self, obj: RefundRequest) -> str:
        return f"{obj.amount_cents / 100:.2f} {obj.currency.upper()}"

    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
