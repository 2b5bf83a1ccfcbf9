"""
Refunds app: buyer-initiated refund disputes.

A buyer opens a RefundRequest against a completed order within the request
window. The seller approves or rejects it within 48 business hours; a
rejection or a lapsed window escalates the dispute to an administrator,
whose decision is final. Every approval debits the seller balance through
the payments BalanceLedgerAdapter, exactly once per request.

Key components:
    - state_machines.py: statuses, events and the transition table
    - eligibility.py: window and escalation rules
    - services/: create, cancel, seller decision, admin override, queries
    - notifications.py / tasks.py: e-mail notifications via Celery
"""
