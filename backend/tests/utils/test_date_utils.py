# backend/tests/utils/test_date_utils.py
"""
Tests for calendar-month helpers.
"""

from datetime import date

import pytest

from portfolio_engine.utils.date_utils import (
    add_months,
    is_first_of_month,
    month_end,
    month_start,
    months_between,
)


class TestMonthBounds:

    @pytest.mark.parametrize("day,expected", [
        (date(2024, 2, 10), date(2024, 2, 29)),  # leap year
        (date(2023, 2, 3), date(2023, 2, 28)),
        (date(2024, 12, 31), date(2024, 12, 31)),
        (date(2024, 4, 1), date(2024, 4, 30)),
    ])
    def test_month_end(self, day, expected):
        assert month_end(day) == expected

    def test_month_start(self):
        assert month_start(date(2024, 5, 17)) == date(2024, 5, 1)

    def test_is_first_of_month(self):
        assert is_first_of_month(date(2024, 5, 1)) is True
        assert is_first_of_month(date(2024, 5, 2)) is False


class TestAddMonths:

    @pytest.mark.parametrize("day,months,expected", [
        (date(2024, 3, 31), -1, date(2024, 2, 29)),
        (date(2024, 1, 15), -3, date(2023, 10, 15)),
        (date(2023, 11, 30), 3, date(2024, 2, 29)),
        (date(2024, 5, 5), 0, date(2024, 5, 5)),
        (date(2024, 1, 31), 12, date(2025, 1, 31)),
    ])
    def test_add_months(self, day, months, expected):
        assert add_months(day, months) == expected


class TestMonthsBetween:

    def test_inclusive_month_ends(self):
        result = list(months_between(date(2023, 11, 20), date(2024, 2, 3)))

        assert result == [
            date(2023, 11, 30),
            date(2023, 12, 31),
            date(2024, 1, 31),
            date(2024, 2, 29),
        ]

    def test_same_month(self):
        assert list(months_between(date(2024, 1, 5), date(2024, 1, 6))) == [date(2024, 1, 31)]

    def test_start_after_end(self):
        assert list(months_between(date(2024, 3, 1), date(2024, 1, 1))) == []
