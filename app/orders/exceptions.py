"""
Order lookup exceptions.
"""

from core.exceptions import NotFoundError


class OrderNotFoundError(NotFoundError):
    """Raised when an order id does not resolve to an order."""

    default_error_code: str = "ORDER_NOT_FOUND"
