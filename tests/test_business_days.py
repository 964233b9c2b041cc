"""Tests for business-day counting."""

from datetime import date
from uuid import uuid4

import pytest

from hr_engine.calculators.business_days import (
    business_days,
    count_business_days,
    is_weekend,
    iter_dates,
    month_bounds,
)


class FixedCalendar:
    """Holiday calendar over a fixed set of dates."""

    def __init__(self, holidays):
        self.holidays = set(holidays)
        self.calls = 0

    async def is_holiday(self, company_id, day):
        self.calls += 1
        return day in self.holidays


class TestBusinessDays:
    def test_iter_dates_is_inclusive(self):
        days = list(iter_dates(date(2025, 6, 2), date(2025, 6, 4)))
        assert days == [date(2025, 6, 2), date(2025, 6, 3), date(2025, 6, 4)]

    def test_single_day_range(self):
        assert business_days(date(2025, 6, 2), date(2025, 6, 2)) == [date(2025, 6, 2)]

    def test_weekends_excluded(self):
        # Friday to Monday
        days = business_days(date(2025, 6, 6), date(2025, 6, 9))
        assert days == [date(2025, 6, 6), date(2025, 6, 9)]
        assert is_weekend(date(2025, 6, 7)) is True
        assert is_weekend(date(2025, 6, 8)) is True

    def test_holidays_excluded(self):
        days = business_days(date(2024, 12, 31), date(2025, 1, 2), holidays={date(2025, 1, 1)})
        assert days == [date(2024, 12, 31), date(2025, 1, 2)]

    def test_june_2025_has_21_business_days(self):
        start, end = month_bounds("2025-06")
        assert len(business_days(start, end)) == 21


class TestMonthBounds:
    @pytest.mark.parametrize(
        "period,expected",
        [
            ("2025-06", (date(2025, 6, 1), date(2025, 6, 30))),
            ("2024-02", (date(2024, 2, 1), date(2024, 2, 29))),
            ("2025-12", (date(2025, 12, 1), date(2025, 12, 31))),
        ],
    )
    def test_month_bounds(self, period, expected):
        assert month_bounds(period) == expected


class TestCountBusinessDays:
    async def test_counts_with_calendar(self):
        calendar = FixedCalendar({date(2025, 6, 3)})
        count = await count_business_days(date(2025, 6, 2), date(2025, 6, 8), uuid4(), calendar)
        assert count == 4

    async def test_weekends_skip_calendar_lookup(self):
        calendar = FixedCalendar(set())
        await count_business_days(date(2025, 6, 7), date(2025, 6, 8), uuid4(), calendar)
        assert calendar.calls == 0
