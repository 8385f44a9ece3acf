# backend/portfolio_engine/schemas/charts.py
"""
Pydantic schemas for pie and bar chart payloads.

Entry order is the display order; clients must not re-sort.
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ChartEntryResponse(BaseModel):
    """One asset of a chart."""

    model_config = ConfigDict(from_attributes=True)

    asset_name: str
    symbol: str
    subcategory: str = Field(..., description='Subcategory label ("None" for flat charts)')
    value: Decimal
    color: str = Field(..., description="Palette color (#RRGGBB)")
    priority: int = Field(..., description="Subcategory priority, 0 for \"None\"")
    total_value: Decimal = Field(..., description="Chart total")
    subcategory_value: Decimal = Field(..., description="Total of the entry's subcategory")
    percentage_of_total: Decimal = Field(..., description="value / total × 100")
    percentage_of_subcategory: Decimal = Field(
        ...,
        description=(
            "Pie: 100 for flat charts, subcategory total / chart total × 100 by "
            "subcategory. Bar: always 1.0 (reserved)"
        )
    )
    date: dt.date | None = Field(default=None, description="Month end or today (bar entries only)")


class PieChartResponse(BaseModel):
    """Response for GET /accounts/{account_id}/charts/pie."""

    currency: str
    category: str | None = Field(default=None, description="Grouping category, None for flat")
    entries: list[ChartEntryResponse]


class BarChartPoint(BaseModel):
    """One month (or today) of the bar chart series."""

    date: dt.date
    entries: list[ChartEntryResponse]


class BarChartSeriesResponse(BaseModel):
    """Response for GET /accounts/{account_id}/charts/bar."""

    currency: str
    category: str | None = None
    series: list[BarChartPoint]
