# backend/portfolio_engine/services/charts/types.py
"""
Chart payload types.

Charts are plain tuples of ChartEntry; the (ChartMode, ChartKind) pair
selects how entries are labelled, sorted and annotated.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from portfolio_engine.services.constants import NONE_LABEL, NONE_PRIORITY


class ChartMode(str, enum.Enum):
    FLAT = "FLAT"  # one bucket, every asset colored individually
    BY_SUBCATEGORY = "BY_SUBCATEGORY"  # assets of one category, colored by subcategory


class ChartKind(str, enum.Enum):
    PIE = "PIE"
    BAR = "BAR"


@dataclass(frozen=True)
class ChartEntry:
    """
    One asset in a chart.

    Attributes:
        asset_name: Label of the entry
        symbol: Pricing symbol
        value: Asset value in the chart currency
        color: Hex color from the palette
        subcategory: Subcategory label ("None" in FLAT mode)
        priority: Subcategory priority (0 for "None")
        total_value: Chart total
        subcategory_value: Σ value of the entry's subcategory
        percentage_of_total: value / total × 100 (0 when total is 0)
        percentage_of_subcategory: See build_chart for the per-kind rule
        date: Month end or today for bar entries, None for pie entries
    """

    asset_name: str
    symbol: str
    value: Decimal
    color: str
    subcategory: str = NONE_LABEL
    priority: int = NONE_PRIORITY
    total_value: Decimal = Decimal(0)
    subcategory_value: Decimal = Decimal(0)
    percentage_of_total: Decimal = Decimal(0)
    percentage_of_subcategory: Decimal = Decimal(0)
    date: date | None = None


@dataclass(frozen=True)
class ChartSeriesPoint:
    """One bar chart of a time series."""

    date: date
    entries: tuple[ChartEntry, ...]

    @property
    def total_value(self) -> Decimal:
        return sum((e.value for e in self.entries), Decimal(0))
