"""
Order lookup used by the refund engine.

The engine depends on the OrderLookup protocol rather than on the Order
model so that orders can live in another service. DjangoOrderLookup reads
them from this project's database.

Usage:
    from orders.lookup import DjangoOrderLookup

    lookup = DjangoOrderLookup()
    order = lookup.get(order_id)  # raises OrderNotFoundError
"""

from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from django.core.exceptions import ValidationError as DjangoValidationError

from orders.exceptions import OrderNotFoundError
from orders.models import Order


@runtime_checkable
class OrderLookup(Protocol):
    """Read access to orders by id."""

    def get(self, order_id: uuid.UUID | str) -> Order:
        """
        Return the order with the given id.

        Raises:
            OrderNotFoundError: If no such order exists
        """
        ...


class DjangoOrderLookup:
    """OrderLookup backed by the local orders table."""

    def get(self, order_id: uuid.UUID | str) -> Order:
        try:
            return Order.objects.select_related("seller").get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            raise OrderNotFoundError(
                f"Order {order_id} not found",
                details={"order_id": str(order_id)},
            )
