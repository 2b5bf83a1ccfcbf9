"""
Tests for core app.

This package contains test modules for:
- test_service_result.py: ServiceResult and BaseService tests
- test_exceptions.py: BaseApplicationError hierarchy tests
- test_views.py: Health check endpoint tests

Usage:
    pytest core/tests/
"""
