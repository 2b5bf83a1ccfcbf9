"""
Permission classes for the refunds API.

Ownership of a specific request (is this the order's seller, is this the
buyer) is checked by the services, which report FORBIDDEN. These classes
only gate whole endpoints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class HasBuyerEmail(permissions.BasePermission):
    """Allows access to authenticated users with an e-mail address."""

    message = "A buyer account needs an e-mail address."

    def has_permission(self, request: Request, view: APIView) -> bool:
        return bool(request.user and request.user.is_authenticated and request.user.email)


class IsRefundAdmin(permissions.IsAdminUser):
    """Allows access to staff users only."""

    message = "Only administrators may perform this action."
