# backend/tests/services/test_charts.py
"""
Tests for chart construction: build_chart, palette assignment and the
bar chart series.
"""

from datetime import date
from decimal import Decimal

import pytest

from portfolio_engine.models import AssetClass
from portfolio_engine.services.charts import (
    ChartKind,
    ChartMode,
    ChartSeriesPoint,
    assign_colors,
    build_chart,
    build_series,
    include_today_chart,
    percentage,
)
from portfolio_engine.services.constants import CHART_PALETTE
from portfolio_engine.services.holdings.types import HoldingPosition
from portfolio_engine.services.pricing.types import PriceQuote
from portfolio_engine.services.valuation.calculator import PortfolioCalculator
from portfolio_engine.services.valuation.types import PortfolioValue, SubcategoryAssignment

RED, GREEN, BLUE = CHART_PALETTE[:3]


def valuation_of(values: dict[str, str], assignment: SubcategoryAssignment | None = None) -> PortfolioValue:
    """Value one unit of each asset at the given price."""
    positions = [
        HoldingPosition(name, name.upper(), "SHARE", AssetClass.STOCK, Decimal(1))
        for name in values
    ]

    def lookup(p: HoldingPosition) -> PriceQuote | None:
        raw = values[p.asset_name]
        if raw is None:
            return None
        return PriceQuote(p.symbol, p.asset_class, Decimal(raw), "EUR")

    return PortfolioCalculator().calculate(positions, lookup, "EUR", assignment=assignment)


def stocks_and_bonds() -> SubcategoryAssignment:
    return SubcategoryAssignment(
        category_name="Type",
        labels={"Bond Fund": "Bonds", "Tiny Co": "Stocks", "Big Co": "Stocks", "Cash": None},
        priorities={"Stocks": 1, "Bonds": 2},
    )


class TestPercentage:

    def test_four_places(self):
        assert percentage(Decimal(1), Decimal(3)) == Decimal("33.3333")

    def test_zero_total(self):
        assert percentage(Decimal(5), Decimal(0)) == Decimal(0)


class TestFlatCharts:

    def test_sorted_by_value_descending(self):
        chart = build_chart(valuation_of({"A": "10", "B": "300", "C": "50"}), ChartMode.FLAT, ChartKind.PIE)

        assert [e.asset_name for e in chart] == ["B", "C", "A"]

    def test_colors_follow_sorted_order(self):
        chart = build_chart(valuation_of({"A": "10", "B": "300", "C": "50"}), ChartMode.FLAT, ChartKind.PIE)

        assert [e.color for e in chart] == [RED, GREEN, BLUE]

    def test_pie_percentages_sum_to_hundred(self):
        chart = build_chart(valuation_of({"A": "1", "B": "1", "C": "1"}), ChartMode.FLAT, ChartKind.PIE)

        total = sum(e.percentage_of_total for e in chart)
        assert abs(total - Decimal(100)) <= Decimal("0.001")
        assert all(e.percentage_of_total == Decimal("33.3333") for e in chart)

    def test_zero_total_gives_zero_percentages(self):
        chart = build_chart(valuation_of({"A": None, "B": "0"}), ChartMode.FLAT, ChartKind.PIE)

        assert [e.percentage_of_total for e in chart] == [Decimal(0), Decimal(0)]

    def test_pie_flat_subcategory_share_is_hundred(self):
        chart = build_chart(valuation_of({"A": "10", "B": "30"}), ChartMode.FLAT, ChartKind.PIE)

        assert all(e.percentage_of_subcategory == Decimal(100) for e in chart)
        assert all(e.subcategory == "None" and e.priority == 0 for e in chart)
        assert all(e.date is None for e in chart)

    def test_bar_entries_carry_date_and_reserved_share(self):
        chart = build_chart(
            valuation_of({"A": "10", "B": "30"}), ChartMode.FLAT, ChartKind.BAR, chart_date=date(2024, 1, 31)
        )

        assert all(e.percentage_of_subcategory == Decimal("1.0") for e in chart)
        assert all(e.date == date(2024, 1, 31) for e in chart)

    def test_unpriced_entry_keeps_other_percentages(self):
        chart = build_chart(valuation_of({"A": "25", "B": "75", "Ghost": None}), ChartMode.FLAT, ChartKind.PIE)
        by_name = {e.asset_name: e for e in chart}

        assert by_name["Ghost"].value == Decimal(0)
        assert by_name["A"].percentage_of_total == Decimal("25.0000")
        assert by_name["B"].percentage_of_total == Decimal("75.0000")

    def test_empty_valuation(self):
        assert build_chart(valuation_of({}), ChartMode.FLAT, ChartKind.PIE) == ()


class TestSubcategoryCharts:

    def test_bar_order_follows_priority_not_value(self):
        """Stocks (priority 1) come before Bonds (priority 2) even with far less value."""
        assignment = stocks_and_bonds()
        valuation = valuation_of({"Bond Fund": "1000", "Tiny Co": "10"}, assignment)

        chart = build_chart(valuation, ChartMode.BY_SUBCATEGORY, ChartKind.BAR, assignment=assignment)

        assert [e.subcategory for e in chart] == ["Stocks", "Bonds"]

    def test_none_bucket_first_then_value_within_subcategory(self):
        assignment = stocks_and_bonds()
        valuation = valuation_of({"Tiny Co": "10", "Big Co": "500", "Bond Fund": "1000", "Cash": "1"}, assignment)

        chart = build_chart(valuation, ChartMode.BY_SUBCATEGORY, ChartKind.PIE, assignment=assignment)

        assert [e.asset_name for e in chart] == ["Cash", "Big Co", "Tiny Co", "Bond Fund"]
        assert [e.priority for e in chart] == [0, 1, 1, 2]

    def test_colors_by_subcategory(self):
        assignment = stocks_and_bonds()
        valuation = valuation_of({"Tiny Co": "10", "Big Co": "500", "Bond Fund": "1000"}, assignment)

        chart = build_chart(valuation, ChartMode.BY_SUBCATEGORY, ChartKind.PIE, assignment=assignment)
        colors = {e.asset_name: e.color for e in chart}

        assert colors["Big Co"] == colors["Tiny Co"] == RED
        assert colors["Bond Fund"] == GREEN

    def test_pie_subcategory_share_is_of_grand_total(self):
        assignment = stocks_and_bonds()
        valuation = valuation_of({"Tiny Co": "100", "Big Co": "100", "Bond Fund": "200"}, assignment)

        chart = build_chart(valuation, ChartMode.BY_SUBCATEGORY, ChartKind.PIE, assignment=assignment)
        by_name = {e.asset_name: e for e in chart}

        assert by_name["Tiny Co"].subcategory_value == Decimal("200")
        assert by_name["Tiny Co"].percentage_of_subcategory == Decimal("50.0000")
        assert by_name["Tiny Co"].percentage_of_total == Decimal("25.0000")
        assert by_name["Bond Fund"].total_value == Decimal("400")

    def test_requires_assignment(self):
        with pytest.raises(ValueError):
            build_chart(valuation_of({"A": "1"}), ChartMode.BY_SUBCATEGORY, ChartKind.PIE)


class TestPalette:

    def test_first_seen_order(self):
        assert assign_colors(["B", "A", "B"]) == {"B": RED, "A": GREEN}

    def test_cycles_past_the_palette(self):
        labels = [f"asset-{i}" for i in range(len(CHART_PALETTE) + 1)]

        colors = assign_colors(labels)

        assert colors[labels[-1]] == CHART_PALETTE[0]


class TestSeries:

    def _point(self, day: date, values: dict[str, str]) -> ChartSeriesPoint:
        entries = build_chart(valuation_of(values), ChartMode.FLAT, ChartKind.BAR, chart_date=day)
        return ChartSeriesPoint(date=day, entries=entries)

    def test_points_ordered_by_date(self):
        series = build_series([
            self._point(date(2024, 2, 29), {"A": "1"}),
            self._point(date(2024, 1, 31), {"A": "1"}),
        ])

        assert [p.date for p in series] == [date(2024, 1, 31), date(2024, 2, 29)]

    def test_today_chart_appended_last(self):
        series = build_series(
            [self._point(date(2024, 1, 31), {"A": "1"})],
            today_chart=self._point(date(2024, 2, 14), {"A": "2"}),
        )

        assert [p.date for p in series] == [date(2024, 1, 31), date(2024, 2, 14)]

    def test_asset_keeps_color_across_points(self):
        january = self._point(date(2024, 1, 31), {"A": "10"})
        february = self._point(date(2024, 2, 29), {"A": "10", "B": "100"})

        series = build_series([january, february])
        colors = [{e.asset_name: e.color for e in p.entries} for p in series]

        # Alone in February, B would have taken red
        assert colors[0]["A"] == colors[1]["A"] == RED
        assert colors[1]["B"] == GREEN

    def test_point_total(self):
        point = self._point(date(2024, 1, 31), {"A": "10", "B": "5"})

        assert point.total_value == Decimal("15")


class TestIncludeTodayChart:

    def test_mid_month(self):
        assert include_today_chart(date(2024, 3, 15)) is True

    def test_first_of_month(self):
        assert include_today_chart(date(2024, 3, 1)) is False
