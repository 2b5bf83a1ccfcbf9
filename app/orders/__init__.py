"""
Orders app.

Read-only view of storefront orders as seen by the refund engine. Order
creation, checkout and payment capture live outside this project; the
engine only needs to look an order up and read its completion data.

Usage:
    from orders.lookup import DjangoOrderLookup

    order = DjangoOrderLookup().get(order_id)
"""
