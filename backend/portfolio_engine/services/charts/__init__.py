# backend/portfolio_engine/services/charts/__init__.py
"""
Chart generation package.

Architecture:
    charts/
    ├── __init__.py    # Package exports
    ├── types.py       # ChartMode, ChartKind, ChartEntry, ChartSeriesPoint
    ├── palette.py     # First-seen palette mapping
    ├── builder.py     # build_chart for every (mode, kind) pair
    └── series.py      # build_series (bar chart time series)

Data Flow:
    PortfolioValue → build_chart → ChartEntry tuple
    monthly charts + today chart → build_series → list[ChartSeriesPoint]
"""

from portfolio_engine.services.charts.builder import build_chart, percentage
from portfolio_engine.services.charts.palette import assign_colors, assign_series_colors
from portfolio_engine.services.charts.series import build_series, include_today_chart
from portfolio_engine.services.charts.types import (
    ChartEntry,
    ChartKind,
    ChartMode,
    ChartSeriesPoint,
)

__all__ = [
    "build_chart",
    "build_series",
    "include_today_chart",
    "percentage",
    "assign_colors",
    "assign_series_colors",
    "ChartEntry",
    "ChartKind",
    "ChartMode",
    "ChartSeriesPoint",
]
