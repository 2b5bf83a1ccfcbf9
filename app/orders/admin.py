"""
Django admin configuration for orders.

Orders are owned by the storefront, so they are read-only here.
"""

from django.contrib import admin

from orders.models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "status",
        "amount_cents",
        "currency",
        "seller",
        "buyer_email",
        "completed_at",
    ]
    list_filter = ["status", "currency"]
    search_fields = ["id", "buyer_email", "seller__email"]
    readonly_fields = [
        "id",
        "status",
        "amount_cents",
        "currency",
        "completed_at",
        "seller",
        "buyer_email",
        "product_id",
        "created_at",
        "updated_at",
    ]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
