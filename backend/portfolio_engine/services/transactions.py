# backend/portfolio_engine/services/transactions.py
"""
Transaction Service - ledger reads and confirmation of edits.

The ledger is append-only: confirming an edit soft-deletes the replaced
rows (deleted_at) and inserts the new ones, then rebuilds both holdings
projections from scratch.

Usage:
    service = TransactionService(holdings=HoldingsService())

    result = service.confirm_transactions(
        db, account_id,
        new_transactions=[NewTransaction(date(2024, 1, 5), "Apple", "AAPL",
                                         AssetClass.STOCK, credit=Decimal(10))],
        deleted_ids=[42],
    )
"""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from portfolio_engine.models import AssetClass, Transaction
from portfolio_engine.services.constants import UNIT_COMMODITY, UNIT_SHARE, UNIT_UNKNOWN
from portfolio_engine.services.exceptions import ValidationError
from portfolio_engine.services.protocols import HoldingsRebuilderProtocol

logger = logging.getLogger(__name__)


# =============================================================================
# INPUT / RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class NewTransaction:
    """A ledger row to insert; unit is derived from the asset class when None."""

    date: date
    asset_name: str
    symbol: str
    asset_class: AssetClass
    credit: Decimal = Decimal(0)
    debit: Decimal = Decimal(0)
    unit: str | None = None


@dataclass(frozen=True)
class ConfirmResult:
    """Outcome of confirm_transactions."""

    created_count: int
    deleted_count: int
    holdings_count: int
    snapshot_count: int


@dataclass(frozen=True)
class LedgerEntry:
    """
    A live ledger row with the asset's running balance around it.

    Attributes:
        transaction: The ledger row
        balance_before: Net quantity of the asset before this row
        balance_after: balance_before + credit - debit
    """

    transaction: Transaction
    balance_before: Decimal
    balance_after: Decimal


def derive_unit(asset_class: AssetClass, symbol: str) -> str:
    """
    Default unit of an asset class.

    STOCK → "SHARE", CRYPTO and FOREX → the symbol itself,
    COMMODITY → "UNIT", anything else → "UNKNOWN".
    """
    if asset_class == AssetClass.STOCK:
        return UNIT_SHARE
    if asset_class in (AssetClass.CRYPTO, AssetClass.FOREX):
        return symbol
    if asset_class == AssetClass.COMMODITY:
        return UNIT_COMMODITY
    return UNIT_UNKNOWN


# =============================================================================
# SERVICE
# =============================================================================

class TransactionService:
    """
    Ledger access for one account at a time.

    Attributes:
        _holdings: Rebuilds projections after a confirmed edit
    """

    def __init__(self, holdings: HoldingsRebuilderProtocol) -> None:
        self._holdings = holdings

    def list_transactions(
            self,
            db: Session,
            account_id: uuid.UUID,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> list[Transaction]:
        """Live (not soft-deleted) rows ordered by date, then id."""
        query = select(Transaction).where(
            Transaction.account_id == account_id,
            Transaction.deleted_at.is_(None),
        )
        if start_date is not None:
            query = query.where(Transaction.date >= start_date)
        if end_date is not None:
            query = query.where(Transaction.date <= end_date)
        return list(db.scalars(query.order_by(Transaction.date, Transaction.id)).all())

    def list_with_balances(
            self,
            db: Session,
            account_id: uuid.UUID,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> list[LedgerEntry]:
        """
        Live rows in the date range, each with the asset's balance before and
        after it.

        Balances run over the whole live ledger in (date, id) order, so rows
        before start_date still count toward the first balance shown.
        """
        entries: list[LedgerEntry] = []
        balances: dict[str, Decimal] = {}

        for txn in self.list_transactions(db, account_id, end_date=end_date):
            before = balances.get(txn.asset_name, Decimal(0))
            after = before + (txn.credit or Decimal(0)) - (txn.debit or Decimal(0))
            balances[txn.asset_name] = after
            if start_date is None or txn.date >= start_date:
                entries.append(LedgerEntry(transaction=txn, balance_before=before, balance_after=after))

        return entries

    def confirm_transactions(
            self,
            db: Session,
            account_id: uuid.UUID,
            new_transactions: Sequence[NewTransaction],
            deleted_ids: Sequence[int] = (),
    ) -> ConfirmResult:
        """
        Apply an edit to the ledger and rebuild holdings.

        Args:
            new_transactions: Rows to insert
            deleted_ids: Ids to soft-delete; ids of other accounts are ignored

        Returns:
            ConfirmResult with row counts

        Raises:
            ValidationError: Empty asset name or symbol, negative quantities
        """
        for index, txn in enumerate(new_transactions):
            self._validate(txn, index)

        now = datetime.now(timezone.utc)
        try:
            deleted_count = 0
            if deleted_ids:
                result = db.execute(
                    update(Transaction)
                    .where(
                        Transaction.account_id == account_id,
                        Transaction.id.in_(list(deleted_ids)),
                        Transaction.deleted_at.is_(None),
                    )
                    .values(deleted_at=now)
                    .execution_options(synchronize_session="fetch")
                )
                deleted_count = result.rowcount

            db.add_all([
                Transaction(
                    account_id=account_id,
                    date=txn.date,
                    asset_name=txn.asset_name.strip(),
                    symbol=txn.symbol.strip(),
                    unit=txn.unit or derive_unit(txn.asset_class, txn.symbol.strip()),
                    asset_class=txn.asset_class,
                    credit=txn.credit,
                    debit=txn.debit,
                )
                for txn in new_transactions
            ])
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"Confirmed ledger edit for account {account_id}: "
            f"{len(new_transactions)} created, {deleted_count} deleted"
        )

        holdings = self._holdings.rebuild_current(db, account_id)
        snapshots = self._holdings.rebuild_monthly(db, account_id)

        return ConfirmResult(
            created_count=len(new_transactions),
            deleted_count=deleted_count,
            holdings_count=len(holdings),
            snapshot_count=len(snapshots),
        )

    @staticmethod
    def _validate(txn: NewTransaction, index: int) -> None:
        if not txn.asset_name or not txn.asset_name.strip():
            raise ValidationError(f"Transaction {index}: asset_name cannot be empty", field="asset_name")
        if not txn.symbol or not txn.symbol.strip():
            raise ValidationError(f"Transaction {index}: symbol cannot be empty", field="symbol")
        if txn.credit < 0 or txn.debit < 0:
            raise ValidationError(f"Transaction {index}: credit and debit must be >= 0", field="credit")
