# backend/portfolio_engine/routers/charts.py
"""
Allocation chart endpoints.

- GET /accounts/{account_id}/charts/pie?currency=EUR&category=Risk
- GET /accounts/{account_id}/charts/bar?currency=EUR&category=Risk

Omitting `category` (or passing "None") gives a flat chart with one entry
per asset. Naming a category groups entries by that category's
subcategories, ordered by subcategory priority.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from portfolio_engine.database import get_db
from portfolio_engine.dependencies import get_portfolio_service
from portfolio_engine.middleware.rate_limit import RATE_LIMIT_CHARTS, limiter
from portfolio_engine.schemas.charts import (
    BarChartPoint,
    BarChartSeriesResponse,
    ChartEntryResponse,
    PieChartResponse,
)
from portfolio_engine.services.charts import ChartEntry, ChartSeriesPoint
from portfolio_engine.services.portfolio_service import PortfolioService

router = APIRouter(
    prefix="/accounts",
    tags=["Charts"],
)


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_entry(entry: ChartEntry) -> ChartEntryResponse:
    return ChartEntryResponse(
        asset_name=entry.asset_name,
        symbol=entry.symbol,
        value=entry.value,
        color=entry.color,
        subcategory=entry.subcategory,
        priority=entry.priority,
        total_value=entry.total_value,
        subcategory_value=entry.subcategory_value,
        percentage_of_total=entry.percentage_of_total,
        percentage_of_subcategory=entry.percentage_of_subcategory,
        date=entry.date,
    )


def _map_point(point: ChartSeriesPoint) -> BarChartPoint:
    return BarChartPoint(
        date=point.date,
        entries=[_map_entry(entry) for entry in point.entries],
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/{account_id}/charts/pie",
    response_model=PieChartResponse,
    summary="Get pie chart of current holdings",
)
@limiter.limit(RATE_LIMIT_CHARTS)
def get_pie_chart(
        request: Request,  # Required for rate limiting
        account_id: uuid.UUID,
        currency: str = Query(..., description="Target currency"),
        category: str | None = Query(
            default=None,
            description="Category whose subcategories group the chart (omit for a flat chart)",
        ),
        db: Session = Depends(get_db),
        service: PortfolioService = Depends(get_portfolio_service),
) -> PieChartResponse:
    """
    Current allocation.

    Entries carry `percentage_of_total` (4 decimal places). In a grouped
    chart `percentage_of_subcategory` is the subcategory's share of the
    whole portfolio.

    Raises **404** for an unknown category.
    """
    entries = service.get_pie_chart(db, account_id, currency, category_name=category)
    return PieChartResponse(
        currency=currency.strip().upper(),
        category=category,
        entries=[_map_entry(entry) for entry in entries],
    )


@router.get(
    "/{account_id}/charts/bar",
    response_model=BarChartSeriesResponse,
    summary="Get monthly bar chart series",
)
@limiter.limit(RATE_LIMIT_CHARTS)
def get_bar_chart_series(
        request: Request,  # Required for rate limiting
        account_id: uuid.UUID,
        currency: str = Query(..., description="Target currency"),
        category: str | None = Query(
            default=None,
            description="Category whose subcategories group each chart (omit for flat charts)",
        ),
        db: Session = Depends(get_db),
        service: PortfolioService = Depends(get_portfolio_service),
) -> BarChartSeriesResponse:
    """
    One chart per month end since the first transaction, plus today's
    holdings (omitted on the first day of a month).

    Colors are consistent across the whole series.
    """
    series = service.get_bar_chart_series(db, account_id, currency, category_name=category)
    return BarChartSeriesResponse(
        currency=currency.strip().upper(),
        category=category,
        series=[_map_point(point) for point in series],
    )
