# backend/portfolio_engine/routers/transactions.py
"""
Transaction ledger endpoints.

- GET  /accounts/{account_id}/transactions           Live ledger rows with running balances
- POST /accounts/{account_id}/transactions/confirm   Apply an edit

The ledger is never edited in place. A confirmed edit soft-deletes the
listed ids, inserts the new rows and rebuilds both holdings projections
before responding, so the next valuation or chart call sees the edit.
"""

import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from portfolio_engine.database import get_db
from portfolio_engine.dependencies import get_transaction_service
from portfolio_engine.middleware.rate_limit import RATE_LIMIT_DEFAULT, RATE_LIMIT_WRITE, limiter
from portfolio_engine.schemas.transactions import (
    ConfirmTransactionsRequest,
    ConfirmTransactionsResponse,
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
)
from portfolio_engine.services.transactions import LedgerEntry, NewTransaction, TransactionService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/accounts",
    tags=["Transactions"],
)


def _map_new_transaction(payload: TransactionCreate) -> NewTransaction:
    return NewTransaction(
        date=payload.date,
        asset_name=payload.asset_name,
        symbol=payload.symbol,
        asset_class=payload.asset_class,
        credit=payload.credit,
        debit=payload.debit,
        unit=payload.unit,
    )


def _map_ledger_entry(entry: LedgerEntry) -> TransactionResponse:
    txn = entry.transaction
    return TransactionResponse(
        id=txn.id,
        date=txn.date,
        asset_name=txn.asset_name,
        symbol=txn.symbol,
        unit=txn.unit,
        asset_class=txn.asset_class,
        credit=txn.credit,
        debit=txn.debit,
        balance_before=entry.balance_before,
        balance_after=entry.balance_after,
    )


@router.get(
    "/{account_id}/transactions",
    response_model=TransactionListResponse,
    summary="List transactions",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_transactions(
        request: Request,  # Required for rate limiting
        account_id: uuid.UUID,
        from_date: date | None = Query(default=None, description="Earliest trade date (inclusive)"),
        to_date: date | None = Query(default=None, description="Latest trade date (inclusive)"),
        db: Session = Depends(get_db),
        service: TransactionService = Depends(get_transaction_service),
) -> TransactionListResponse:
    entries = service.list_with_balances(db, account_id, start_date=from_date, end_date=to_date)
    return TransactionListResponse(
        account_id=str(account_id),
        transactions=[_map_ledger_entry(e) for e in entries],
    )


@router.post(
    "/{account_id}/transactions/confirm",
    response_model=ConfirmTransactionsResponse,
    status_code=status.HTTP_200_OK,
    summary="Confirm a ledger edit",
)
@limiter.limit(RATE_LIMIT_WRITE)
def confirm_transactions(
        request: Request,  # Required for rate limiting
        account_id: uuid.UUID,
        payload: ConfirmTransactionsRequest,
        db: Session = Depends(get_db),
        service: TransactionService = Depends(get_transaction_service),
) -> ConfirmTransactionsResponse:
    """
    Soft-delete `deleted_ids`, insert `new_transactions`, then rebuild
    current holdings and monthly snapshots.

    Ids belonging to other accounts are ignored.
    """
    result = service.confirm_transactions(
        db,
        account_id,
        new_transactions=[_map_new_transaction(t) for t in payload.new_transactions],
        deleted_ids=payload.deleted_ids,
    )
    return ConfirmTransactionsResponse(
        created_count=result.created_count,
        deleted_count=result.deleted_count,
        holdings_count=result.holdings_count,
        snapshot_count=result.snapshot_count,
    )
