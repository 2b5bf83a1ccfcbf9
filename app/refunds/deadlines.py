"""
Deadline arithmetic for refund requests.

Two deadlines govern a refund request:
- refund request deadline: a buyer may create a request until
  ``completed_at + REFUND_REQUEST_WINDOW_DAYS`` calendar days (inclusive)
- response deadline: a seller may decide until ``created_at`` plus
  ``REFUND_SELLER_RESPONSE_BUSINESS_HOURS`` business hours

Business hours are whole weekdays: every hour Monday 00:00 to Friday 24:00
counts, Saturday and Sunday never do. Weekdays are evaluated in the
``REFUND_BUSINESS_TIMEZONE`` wall clock.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

SATURDAY = 5


def business_timezone() -> ZoneInfo:
    return ZoneInfo(settings.REFUND_BUSINESS_TIMEZONE)


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def add_business_hours(start: datetime, hours: int, tz: ZoneInfo | None = None) -> datetime:
    """
    Return the instant ``hours`` business hours after ``start``.

    A start on a weekend begins counting at the following Monday 00:00.

    Example:
        # Friday 10:00 + 48h -> Tuesday 10:00 (14h Fri, 24h Mon, 10h Tue)
        add_business_hours(datetime(2026, 3, 6, 10, tzinfo=UTC), 48)
    """
    if timezone.is_naive(start):
        raise ValueError("start must be timezone-aware")
    if hours < 0:
        raise ValueError("hours must not be negative")

    tz = tz or business_timezone()
    current = start.astimezone(tz)
    remaining = timedelta(hours=hours)

    while remaining > timedelta(0):
        if current.weekday() >= SATURDAY:
            current = _start_of_day(current + timedelta(days=7 - current.weekday()))
            continue
        next_midnight = _start_of_day(current + timedelta(days=1))
        available = next_midnight - current
        if remaining <= available:
            current += remaining
            remaining = timedelta(0)
        else:
            remaining -= available
            current = next_midnight

    return current.astimezone(start.tzinfo)


def response_deadline_for(created_at: datetime) -> datetime:
    """Seller response deadline for a request created at ``created_at``."""
    return add_business_hours(created_at, settings.REFUND_SELLER_RESPONSE_BUSINESS_HOURS)


def refund_request_deadline_for(completed_at: datetime) -> datetime:
    """Last instant at which a refund may be requested for an order."""
    return completed_at + timedelta(days=settings.REFUND_REQUEST_WINDOW_DAYS)


def days_until(deadline: datetime | None, now: datetime | None = None) -> int:
    """Whole days (rounded up) left until ``deadline``; 0 once it has passed."""
    if deadline is None:
        return 0
    now = now or timezone.now()
    seconds = (deadline - now).total_seconds()
    if seconds <= 0:
        return 0
    return math.ceil(seconds / 86400)
