"""
Refund services.

Usage:
    from refunds.services import (
        RefundRequestService,
        SellerDecisionService,
        AdminOverrideService,
        RefundQueryService,
    )
"""

from refunds.services.admin_override import AdminOverrideService
from refunds.services.creation import RefundRequestService
from refunds.services.escalation import EscalationService
from refunds.services.queries import RefundQueryService
from refunds.services.seller_decision import SellerDecisionService
from refunds.services.settlement import debit_seller_for_refund

__all__ = [
    "AdminOverrideService",
    "EscalationService",
    "RefundQueryService",
    "RefundRequestService",
    "SellerDecisionService",
    "debit_seller_for_refund",
]
