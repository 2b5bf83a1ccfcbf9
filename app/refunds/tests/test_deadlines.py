"""
Tests for refund deadline arithmetic.

Business hours skip Saturdays and Sundays entirely; the request window is
counted in calendar days.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from refunds.deadlines import (
    add_business_hours,
    days_until,
    refund_request_deadline_for,
    response_deadline_for,
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# =============================================================================
# add_business_hours
# =============================================================================


class TestAddBusinessHours:
    """Tests for add_business_hours()."""

    @pytest.mark.parametrize(
        ("start", "hours", "expected"),
        [
            # Monday 09:00 + 48h -> Wednesday 09:00
            (utc(2026, 3, 2, 9), 48, utc(2026, 3, 4, 9)),
            # Friday 10:00 + 48h -> Tuesday 10:00 (14h Fri, 24h Mon, 10h Tue)
            (utc(2026, 3, 6, 10), 48, utc(2026, 3, 10, 10)),
            # Thursday 18:00 + 48h -> Monday 18:00 across the weekend
            (utc(2026, 3, 5, 18), 48, utc(2026, 3, 9, 18)),
            # Saturday starts counting at Monday 00:00
            (utc(2026, 3, 7, 15), 48, utc(2026, 3, 11, 0)),
            # Sunday 23:59 behaves the same way
            (utc(2026, 3, 8, 23, 59), 1, utc(2026, 3, 9, 1)),
            # Filling Friday exactly ends at Saturday 00:00
            (utc(2026, 3, 6, 0), 24, utc(2026, 3, 7, 0)),
            (utc(2026, 3, 4, 12), 0, utc(2026, 3, 4, 12)),
        ],
    )
    def test_skips_weekends(self, start, hours, expected):
        assert add_business_hours(start, hours, tz=ZoneInfo("UTC")) == expected

    def test_counts_weekdays_in_business_timezone(self):
        # Friday 23:30 UTC is already Saturday in Tokyo, so counting
        # starts Monday 00:00 JST (Sunday 15:00 UTC)
        start = utc(2026, 3, 6, 23, 30)

        result = add_business_hours(start, 1, tz=ZoneInfo("Asia/Tokyo"))

        assert result == utc(2026, 3, 8, 16)
        assert result.tzinfo == start.tzinfo

    def test_rejects_naive_start(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            add_business_hours(datetime(2026, 3, 2, 9), 48)

    def test_rejects_negative_hours(self):
        with pytest.raises(ValueError, match="negative"):
            add_business_hours(utc(2026, 3, 2, 9), -1)


# =============================================================================
# Deadlines from settings
# =============================================================================


class TestDeadlinesFromSettings:
    """response_deadline_for() and refund_request_deadline_for() read settings."""

    def test_response_deadline_uses_configured_hours(self, settings):
        settings.REFUND_BUSINESS_TIMEZONE = "UTC"
        settings.REFUND_SELLER_RESPONSE_BUSINESS_HOURS = 24

        assert response_deadline_for(utc(2026, 3, 6, 10)) == utc(2026, 3, 9, 10)

    def test_request_deadline_is_calendar_days(self, settings):
        settings.REFUND_REQUEST_WINDOW_DAYS = 7
        completed_at = utc(2026, 3, 6, 10)

        assert refund_request_deadline_for(completed_at) == utc(2026, 3, 13, 10)


# =============================================================================
# days_until
# =============================================================================


class TestDaysUntil:
    """Tests for days_until()."""

    def test_rounds_partial_days_up(self):
        now = utc(2026, 3, 2, 9)

        assert days_until(now + timedelta(days=6, hours=1), now) == 7

    def test_whole_days(self):
        now = utc(2026, 3, 2, 9)

        assert days_until(now + timedelta(days=2), now) == 2

    def test_past_deadline_is_zero(self):
        now = utc(2026, 3, 2, 9)

        assert days_until(now - timedelta(seconds=1), now) == 0
        assert days_until(now, now) == 0

    def test_missing_deadline_is_zero(self):
        assert days_until(None) == 0
