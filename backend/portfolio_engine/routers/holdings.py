# backend/portfolio_engine/routers/holdings.py
"""
Reconstructed holdings endpoints.

- GET  /accounts/{account_id}/holdings           Current positions (balance > 0)
- GET  /accounts/{account_id}/holdings/monthly   Month-end snapshots
- POST /accounts/{account_id}/holdings/rebuild   Recompute both from the ledger
"""

import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from portfolio_engine.database import get_db
from portfolio_engine.dependencies import get_holdings_service
from portfolio_engine.middleware.rate_limit import RATE_LIMIT_DEFAULT, RATE_LIMIT_WRITE, limiter
from portfolio_engine.schemas.holdings import (
    HoldingResponse,
    HoldingSnapshotResponse,
    HoldingSnapshotsResponse,
    HoldingsListResponse,
)
from portfolio_engine.schemas.validators import validate_date_range
from portfolio_engine.services.exceptions import ValidationError
from portfolio_engine.services.holdings.service import HoldingsService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/accounts",
    tags=["Holdings"],
)


@router.get(
    "/{account_id}/holdings",
    response_model=HoldingsListResponse,
    summary="List current holdings",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_current_holdings(
        request: Request,  # Required for rate limiting
        account_id: uuid.UUID,
        db: Session = Depends(get_db),
        service: HoldingsService = Depends(get_holdings_service),
) -> HoldingsListResponse:
    positions = service.get_current_holdings(db, account_id)
    return HoldingsListResponse(
        account_id=str(account_id),
        holdings=[HoldingResponse.model_validate(p) for p in positions],
    )


@router.get(
    "/{account_id}/holdings/monthly",
    response_model=HoldingSnapshotsResponse,
    summary="List month-end holdings snapshots",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_monthly_snapshots(
        request: Request,  # Required for rate limiting
        account_id: uuid.UUID,
        from_date: date | None = Query(default=None, description="First month end (inclusive)"),
        to_date: date | None = Query(default=None, description="Last month end (inclusive)"),
        db: Session = Depends(get_db),
        service: HoldingsService = Depends(get_holdings_service),
) -> HoldingSnapshotsResponse:
    """
    Cumulative balance of every asset at each month end from the first
    transaction onwards. Balances may be zero or negative.
    """
    try:
        validate_date_range(from_date, to_date)
    except ValueError as e:
        raise ValidationError(str(e), field="from_date") from e
    snapshots = service.get_monthly_snapshots(db, account_id, start_date=from_date, end_date=to_date)
    return HoldingSnapshotsResponse(
        account_id=str(account_id),
        snapshots=[HoldingSnapshotResponse.model_validate(s) for s in snapshots],
    )


@router.post(
    "/{account_id}/holdings/rebuild",
    response_model=HoldingsListResponse,
    summary="Rebuild holdings from the ledger",
)
@limiter.limit(RATE_LIMIT_WRITE)
def rebuild_holdings(
        request: Request,  # Required for rate limiting
        account_id: uuid.UUID,
        db: Session = Depends(get_db),
        service: HoldingsService = Depends(get_holdings_service),
) -> HoldingsListResponse:
    """Recompute current holdings and monthly snapshots from live transactions."""
    service.rebuild_all(db, account_id)
    logger.info(f"Rebuilt holdings for account {account_id} on request")
    return HoldingsListResponse(
        account_id=str(account_id),
        holdings=[HoldingResponse.model_validate(p) for p in service.get_current_holdings(db, account_id)],
    )
