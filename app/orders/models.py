"""
Order model consumed by the refund engine.

Orders are written by the storefront checkout; this project only reads
them. A refund may be requested for an order once it reaches COMPLETED.

Usage:
    from orders.models import Order, OrderStatus

    Order.objects.filter(seller=user, status=OrderStatus.COMPLETED)
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class OrderStatus(models.TextChoices):
    """
    Order lifecycle states as reported by the storefront.

    Only COMPLETED orders (paid and delivered) are refundable.
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    A buyer's purchase of one product from one seller.

    Fields:
        status: Storefront order status
        amount_cents: Amount paid in smallest currency unit
        currency: ISO 4217 currency code (lowercase)
        completed_at: When the order reached COMPLETED
        seller: User who sold the product
        buyer_email: E-mail the buyer checked out with
        product_id: Identifier of the purchased product
    """

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
        help_text="Storefront order status",
    )
    amount_cents = models.PositiveBigIntegerField(
        help_text="Amount paid in smallest currency unit (e.g., cents)",
    )
    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )
    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the order was completed",
    )
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders_sold",
        help_text="User who sold the product",
    )
    buyer_email = models.EmailField(
        db_index=True,
        help_text="E-mail address the buyer checked out with",
    )
    product_id = models.UUIDField(
        help_text="Identifier of the purchased product",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_cents__gt=0),
                name="order_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        amount_display = f"{self.amount_cents / 100:.2f} {self.currency.upper()}"
        return f"Order({self.id}, {self.status}, {amount_display})"

    @property
    def is_completed(self) -> bool:
        return self.status == OrderStatus.COMPLETED
