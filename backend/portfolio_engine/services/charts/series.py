# backend/portfolio_engine/services/charts/series.py
"""
Combined bar chart series: one bar chart per month end plus an optional
chart for today, ordered by date and colored with one shared mapping.
"""

import logging
from collections.abc import Sequence
from datetime import date

from portfolio_engine.services.charts.palette import assign_series_colors
from portfolio_engine.services.charts.types import ChartMode, ChartSeriesPoint
from portfolio_engine.utils.date_utils import is_first_of_month

logger = logging.getLogger(__name__)


def include_today_chart(today: date) -> bool:
    """
    Whether a current-holdings chart is appended to the series.

    On the first of a month the latest month end already describes the
    holdings, so no extra chart is added.
    """
    return not is_first_of_month(today)


def build_series(
        monthly_charts: Sequence[ChartSeriesPoint],
        today_chart: ChartSeriesPoint | None = None,
        mode: ChartMode = ChartMode.FLAT,
) -> list[ChartSeriesPoint]:
    """
    Assemble the series.

    Args:
        monthly_charts: One chart per month end, any order
        today_chart: Chart built from current holdings, if any
        mode: Mode the charts were built in (selects the color key)

    Returns:
        Points ordered by date; labels keep one color across points
    """
    points = sorted(monthly_charts, key=lambda p: p.date)
    if today_chart is not None:
        points.append(today_chart)
        points.sort(key=lambda p: p.date)

    recolored = assign_series_colors([p.entries for p in points], mode)
    series = [
        ChartSeriesPoint(date=point.date, entries=entries)
        for point, entries in zip(points, recolored)
    ]

    logger.debug(f"Assembled bar chart series with {len(series)} points")
    return series
