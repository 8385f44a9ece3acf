# backend/portfolio_engine/services/charts/palette.py
"""
Palette color assignment.

Colors are a pure function of first-seen order: the n-th distinct label
gets CHART_PALETTE[n % len(CHART_PALETTE)]. Nothing is shared between
builds; a series keeps colors stable by deriving one mapping over all of
its charts.
"""

from collections.abc import Iterable, Sequence
from dataclasses import replace

from portfolio_engine.services.charts.types import ChartEntry, ChartMode
from portfolio_engine.services.constants import CHART_PALETTE


def assign_colors(labels: Iterable[str], palette: Sequence[str] = CHART_PALETTE) -> dict[str, str]:
    """
    Map each distinct label to a palette color by first-seen index.

    Example:
        >>> assign_colors(["B", "A", "B"])
        {'B': '#FF0000', 'A': '#00FF00'}
    """
    colors: dict[str, str] = {}
    for label in labels:
        if label not in colors:
            colors[label] = palette[len(colors) % len(palette)]
    return colors


def color_key(entry: ChartEntry, mode: ChartMode) -> str:
    """Assets are colored individually in FLAT mode and by subcategory otherwise."""
    if mode == ChartMode.BY_SUBCATEGORY:
        return entry.subcategory
    return entry.asset_name


def assign_series_colors(
        charts: Sequence[Sequence[ChartEntry]],
        mode: ChartMode,
) -> list[tuple[ChartEntry, ...]]:
    """
    Recolor several charts with one mapping derived over all of them, so a
    label keeps its color from chart to chart.

    Args:
        charts: Charts in display (date) order
        mode: Mode the charts were built in

    Returns:
        New charts; inputs are not modified
    """
    colors = assign_colors(color_key(entry, mode) for chart in charts for entry in chart)
    return [
        tuple(replace(entry, color=colors[color_key(entry, mode)]) for entry in chart)
        for chart in charts
    ]
