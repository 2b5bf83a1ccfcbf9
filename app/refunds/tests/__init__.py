"""
Tests for the refunds app.

Usage:
    pytest app/refunds/tests/
    pytest app/refunds/tests/test_seller_decision.py
"""
