"""Business-day counting for leave ranges and payroll proration."""

from __future__ import annotations

from collections.abc import Container, Iterator
from datetime import date, timedelta
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from hr_engine.services.collaborators import HolidayCalendar

_SATURDAY = 5


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date of the closed range ``[start, end]``."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def is_weekend(day: date) -> bool:
    return day.weekday() >= _SATURDAY


def business_days(start: date, end: date, holidays: Container[date] = ()) -> list[date]:
    """Dates in ``[start, end]`` that are neither weekend days nor holidays."""
    return [d for d in iter_dates(start, end) if not is_weekend(d) and d not in holidays]


async def count_business_days(
    start: date,
    end: date,
    company_id: UUID,
    calendar: HolidayCalendar,
) -> int:
    """Count business days in ``[start, end]`` asking the calendar for holidays."""
    count = 0
    for day in iter_dates(start, end):
        if is_weekend(day):
            continue
        if await calendar.is_holiday(company_id, day):
            continue
        count += 1
    return count


def month_bounds(period: str) -> tuple[date, date]:
    """First and last date of a ``YYYY-MM`` period."""
    year, month = (int(part) for part in period.split("-"))
    first = date(year, month, 1)
    if month == 12:
        next_first = date(year + 1, 1, 1)
    else:
        next_first = date(year, month + 1, 1)
    return first, next_first - timedelta(days=1)
