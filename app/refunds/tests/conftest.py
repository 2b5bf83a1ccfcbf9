"""
Test fixtures for the refunds app.

Provides fixtures for:
- Refund policy settings pinned to known values
- A recording notification dispatcher (installed for every test)
- Sellers, administrators and authenticated API clients
- A completed order and a pending refund request at fixed instants

Time constants live in refunds.tests.support.
"""

from __future__ import annotations

import pytest
from freezegun import freeze_time
from rest_framework.test import APIClient

from orders.tests.factories import AdminUserFactory, OrderFactory, UserFactory
from refunds.services import RefundRequestService
from refunds.services.base import RefundTransitionService
from refunds.tests.support import ORDER_COMPLETED_AT, RecordingDispatcher


# =============================================================================
# Settings & Collaborators
# =============================================================================


@pytest.fixture(autouse=True)
def refund_settings(settings):
    """Pin the refund policy so tests do not depend on the environment."""
    settings.REFUND_REQUEST_WINDOW_DAYS = 7
    settings.REFUND_SELLER_RESPONSE_BUSINESS_HOURS = 48
    settings.REFUND_BUSINESS_TIMEZONE = "UTC"
    settings.REFUND_ADMIN_NOTIFICATION_EMAILS = ["disputes@example.com"]
    settings.REFUND_BALANCE_ADAPTER = "payments.adapters.LedgerBalanceAdapter"
    settings.REFUND_NOTIFICATION_DISPATCHER = "refunds.notifications.CeleryEmailDispatcher"
    return settings


@pytest.fixture(autouse=True)
def dispatcher():
    """Record notifications instead of queueing e-mails."""
    recording = RecordingDispatcher()
    RefundTransitionService.set_dispatcher(recording)
    yield recording
    RefundTransitionService.set_dispatcher(None)
    RefundTransitionService.set_balance_adapter(None)
    RefundRequestService.set_order_lookup(None)


# =============================================================================
# Users & Clients
# =============================================================================


@pytest.fixture
def seller(db):
    return UserFactory(email="seller@example.com")


@pytest.fixture
def other_seller(db):
    return UserFactory(email="other-seller@example.com")


@pytest.fixture
def admin_user(db):
    return AdminUserFactory(email="admin@example.com")


@pytest.fixture
def buyer(db):
    return UserFactory(email="buyer@example.com")


def client_for(user) -> APIClient:
    """
    Return API client authenticated as ``user``.

    Bypasses token checks so requests made under freeze_time are not
    rejected for an issued-at in the future. Bearer tokens are covered
    in test_views.TestBearerAuthentication.
    """
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def api_client() -> APIClient:
    """Return unauthenticated API client."""
    return APIClient()


@pytest.fixture
def buyer_client(buyer) -> APIClient:
    return client_for(buyer)


@pytest.fixture
def seller_client(seller) -> APIClient:
    return client_for(seller)


@pytest.fixture
def other_seller_client(other_seller) -> APIClient:
    return client_for(other_seller)


@pytest.fixture
def admin_client(admin_user) -> APIClient:
    return client_for(admin_user)


# =============================================================================
# Orders & Requests
# =============================================================================


@pytest.fixture
def order(seller, buyer):
    """Completed 100.00 EUR order from ``seller`` to ``buyer``."""
    return OrderFactory(
        seller=seller,
        buyer_email=buyer.email,
        amount_cents=10000,
        currency="eur",
        completed_at=ORDER_COMPLETED_AT,
    )


@pytest.fixture
def pending_request(order):
    """Pending request opened through the service at ORDER_COMPLETED_AT."""
    with freeze_time(ORDER_COMPLETED_AT):
        result = RefundRequestService.create(
            order_id=order.id,
            reason="Item arrived broken",
            buyer_email=order.buyer_email,
        )
    assert result.success, result.error
    return result.data
