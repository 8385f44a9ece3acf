# backend/portfolio_engine/services/charts/builder.py
"""
Chart entry construction for every (ChartMode, ChartKind) pair.

Rules:
    Sort:
        FLAT            value descending
        BY_SUBCATEGORY  priority ascending, then value descending ("None" = 0)
    percentage_of_total:
        value / total × 100, or 0 when the total is 0 (both kinds)
    percentage_of_subcategory:
        PIE  FLAT            100
        PIE  BY_SUBCATEGORY  subcategory_value / total × 100
        BAR  both modes      1.0 (reserved)
    Colors:
        First-seen order over the sorted entries, keyed by asset name (FLAT)
        or subcategory (BY_SUBCATEGORY)

Equal sort keys keep the calculator's line order (stable sort).
"""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal

from portfolio_engine.services.charts.palette import assign_colors, color_key
from portfolio_engine.services.charts.types import ChartEntry, ChartKind, ChartMode
from portfolio_engine.services.constants import (
    BAR_SUBCATEGORY_PERCENTAGE,
    HUNDRED,
    NONE_PRIORITY,
    PERCENTAGE_PRECISION,
    PIE_FLAT_SUBCATEGORY_PERCENTAGE,
)
from portfolio_engine.services.valuation.types import PortfolioValue, SubcategoryAssignment

logger = logging.getLogger(__name__)


def percentage(part: Decimal, total: Decimal) -> Decimal:
    """part / total × 100 at 4 places; 0 when total is 0."""
    if not total:
        return Decimal(0)
    return (part / total * HUNDRED).quantize(PERCENTAGE_PRECISION)


def build_chart(
        valuation: PortfolioValue,
        mode: ChartMode,
        kind: ChartKind,
        *,
        assignment: SubcategoryAssignment | None = None,
        chart_date: date | None = None,
) -> tuple[ChartEntry, ...]:
    """
    Build one chart from a calculator result.

    Args:
        valuation: Calculator output; in BY_SUBCATEGORY mode it must have
            been computed with the same assignment
        mode: FLAT or BY_SUBCATEGORY
        kind: PIE or BAR
        assignment: Subcategory priorities (BY_SUBCATEGORY only)
        chart_date: Date attached to bar entries

    Returns:
        Sorted, colored entries; empty for an empty valuation

    Raises:
        ValueError: BY_SUBCATEGORY without an assignment
    """
    if mode == ChartMode.BY_SUBCATEGORY and assignment is None:
        raise ValueError("BY_SUBCATEGORY charts need a subcategory assignment")

    total = valuation.total_value
    entries: list[ChartEntry] = []

    for line in valuation.lines:
        if mode == ChartMode.BY_SUBCATEGORY:
            priority = assignment.priority_for(line.subcategory)
        else:
            priority = NONE_PRIORITY

        subcategory_value = valuation.per_subcategory_value.get(line.subcategory, Decimal(0))

        entries.append(ChartEntry(
            asset_name=line.asset_name,
            symbol=line.symbol,
            value=line.value,
            color="",
            subcategory=line.subcategory,
            priority=priority,
            total_value=total,
            subcategory_value=subcategory_value,
            percentage_of_total=percentage(line.value, total),
            percentage_of_subcategory=_subcategory_percentage(mode, kind, subcategory_value, total),
            date=chart_date if kind == ChartKind.BAR else None,
        ))

    entries = _sort_entries(entries, mode)

    colors = assign_colors(color_key(entry, mode) for entry in entries)
    chart = tuple(replace(entry, color=colors[color_key(entry, mode)]) for entry in entries)

    logger.debug(
        f"Built {kind.value} chart ({mode.value}) with {len(chart)} entries, "
        f"total {total} {valuation.currency}"
    )
    return chart


def _subcategory_percentage(
        mode: ChartMode,
        kind: ChartKind,
        subcategory_value: Decimal,
        total: Decimal,
) -> Decimal:
    if kind == ChartKind.BAR:
        return BAR_SUBCATEGORY_PERCENTAGE
    if mode == ChartMode.FLAT:
        return PIE_FLAT_SUBCATEGORY_PERCENTAGE
    # Share of the grand total, not of the subcategory
    return percentage(subcategory_value, total)


def _sort_entries(entries: list[ChartEntry], mode: ChartMode) -> list[ChartEntry]:
    if mode == ChartMode.BY_SUBCATEGORY:
        return sorted(entries, key=lambda e: (e.priority, -e.value))
    return sorted(entries, key=lambda e: e.value, reverse=True)
