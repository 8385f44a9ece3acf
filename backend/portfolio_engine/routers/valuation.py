# backend/portfolio_engine/routers/valuation.py
"""
Current valuation endpoint.

- GET /accounts/{account_id}/valuation?currency=EUR

The request publishes a price refresh for the held symbols and waits at
most the configured poll budget; anything still unpriced is valued at 0
and listed in `warnings`.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from portfolio_engine.database import get_db
from portfolio_engine.dependencies import get_portfolio_service
from portfolio_engine.middleware.rate_limit import RATE_LIMIT_CHARTS, limiter
from portfolio_engine.schemas.valuation import AssetValueResponse, CurrentValuationResponse
from portfolio_engine.services.portfolio_service import PortfolioService
from portfolio_engine.services.valuation.types import AssetValue, CurrentValuation

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/accounts",
    tags=["Valuation"],
)


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_line(line: AssetValue) -> AssetValueResponse:
    return AssetValueResponse(
        asset_name=line.asset_name,
        symbol=line.symbol,
        unit=line.unit,
        asset_class=line.asset_class,
        balance=line.balance,
        price=line.price,
        value=line.value,
        is_fallback=line.is_fallback,
    )


def _map_valuation(valuation: CurrentValuation) -> CurrentValuationResponse:
    return CurrentValuationResponse(
        currency=valuation.currency,
        total_value=valuation.total_value,
        lines=[_map_line(line) for line in valuation.lines],
        warnings=list(valuation.warnings),
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/{account_id}/valuation",
    response_model=CurrentValuationResponse,
    summary="Get current valuation",
    response_description="Current holdings valued in the requested currency",
)
@limiter.limit(RATE_LIMIT_CHARTS)
def get_current_valuation(
        request: Request,  # Required for rate limiting
        account_id: uuid.UUID,
        currency: str = Query(..., description="Target currency (e.g., EUR, USD)"),
        db: Session = Depends(get_db),
        service: PortfolioService = Depends(get_portfolio_service),
) -> CurrentValuationResponse:
    """
    Value current holdings in `currency`.

    - Forex pairs quoted only in the reverse direction are inverted
    - A missing current price falls back to the latest price of the last
      three months (`is_fallback: true`)
    - Unpriced assets are valued at 0 and reported in `warnings`

    An account without transactions returns `total_value: 0` and no lines.
    """
    valuation = service.get_current_valuation(db, account_id, currency)
    return _map_valuation(valuation)
