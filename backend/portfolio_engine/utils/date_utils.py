# backend/portfolio_engine/utils/date_utils.py
"""
Calendar-month helpers shared by holdings reconstruction, price fallback
and the bar chart series.

Usage:
    from portfolio_engine.utils.date_utils import month_end, months_between

    month_end(date(2024, 2, 10))  # date(2024, 2, 29)
"""

import calendar
from collections.abc import Iterator
from datetime import date


def month_start(d: date) -> date:
    """First day of the month containing d."""
    return d.replace(day=1)


def month_end(d: date) -> date:
    """
    Last day of the month containing d.

    Example:
        >>> month_end(date(2023, 2, 3))
        date(2023, 2, 28)
    """
    last_day = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=last_day)


def add_months(d: date, months: int) -> date:
    """
    Shift d by a number of calendar months (negative goes back).

    The day is clamped to the target month's length, so
    add_months(date(2024, 3, 31), -1) == date(2024, 2, 29).
    """
    month_index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> Iterator[date]:
    """
    Yield the month-end date of every calendar month from start to end.

    Both bounds are inclusive at month granularity; yields nothing when
    start is after end.
    """
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        yield month_end(current)
        current = add_months(current, 1)


def is_first_of_month(d: date) -> bool:
    return d.day == 1
