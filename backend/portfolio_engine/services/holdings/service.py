# backend/portfolio_engine/services/holdings/service.py
"""
Holdings Service - persists ledger reconstructions.

Responsibilities:
- Fetch the live ledger for an account
- Run HoldingsReconstructor
- Replace the account's Holding / HoldingSnapshot rows (delete-then-insert
  in one DB transaction)
- Serve reads of both projections as internal dataclasses

Concurrency:
    Each rebuild kind runs under a per-account lock, so two rebuilds of the
    same kind for one account never interleave. The delete and the inserts
    commit together; a concurrent reader sees the old set or the new set.
"""

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from portfolio_engine.models import Holding, HoldingSnapshot, Transaction
from portfolio_engine.services.holdings.reconstruction import HoldingsReconstructor
from portfolio_engine.services.holdings.types import HoldingPosition, SnapshotPosition

logger = logging.getLogger(__name__)

REBUILD_CURRENT = "current"
REBUILD_MONTHLY = "monthly"


class AccountLockRegistry:
    """
    Lazily created locks keyed by (account_id, rebuild kind).

    Locks are never evicted; one small Lock per active account and kind.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[uuid.UUID, str], threading.Lock] = {}

    def lock_for(self, account_id: uuid.UUID, kind: str) -> threading.Lock:
        key = (account_id, kind)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, account_id: uuid.UUID, kind: str) -> Iterator[None]:
        lock = self.lock_for(account_id, kind)
        with lock:
            yield


class HoldingsService:
    """
    Rebuilds and reads the holdings projections of an account.

    Attributes:
        _reconstructor: Stateless ledger replay
        _locks: Per-account critical sections for rebuilds
    """

    def __init__(
            self,
            reconstructor: HoldingsReconstructor | None = None,
            locks: AccountLockRegistry | None = None,
    ) -> None:
        self._reconstructor = reconstructor or HoldingsReconstructor()
        self._locks = locks or AccountLockRegistry()

    # =========================================================================
    # REBUILDS
    # =========================================================================

    def rebuild_current(self, db: Session, account_id: uuid.UUID) -> list[HoldingPosition]:
        """
        Recompute and replace the account's current holdings.

        Returns:
            The positions written (balance > 0 only)
        """
        with self._locks.hold(account_id, REBUILD_CURRENT):
            transactions = self._fetch_transactions(db, account_id)
            positions = self._reconstructor.calculate_current(transactions)
            self.replace_current_holdings(db, account_id, positions)

        logger.info(
            f"Rebuilt current holdings for account {account_id}: "
            f"{len(positions)} positions from {len(transactions)} transactions"
        )
        return positions

    def rebuild_monthly(self, db: Session, account_id: uuid.UUID) -> list[SnapshotPosition]:
        """
        Recompute and replace the account's monthly snapshots.

        Returns:
            The snapshots written
        """
        with self._locks.hold(account_id, REBUILD_MONTHLY):
            transactions = self._fetch_transactions(db, account_id)
            snapshots = self._reconstructor.calculate_monthly(transactions)
            self.replace_monthly_snapshots(db, account_id, snapshots)

        logger.info(
            f"Rebuilt monthly snapshots for account {account_id}: "
            f"{len(snapshots)} rows from {len(transactions)} transactions"
        )
        return snapshots

    def rebuild_all(self, db: Session, account_id: uuid.UUID) -> None:
        """Rebuild both projections (current first)."""
        self.rebuild_current(db, account_id)
        self.rebuild_monthly(db, account_id)

    # =========================================================================
    # STORE OPERATIONS
    # =========================================================================

    def replace_current_holdings(
            self,
            db: Session,
            account_id: uuid.UUID,
            positions: list[HoldingPosition],
    ) -> None:
        """Delete every Holding of the account and insert positions, atomically."""
        try:
            db.execute(delete(Holding).where(Holding.account_id == account_id))
            db.add_all([
                Holding(
                    account_id=account_id,
                    asset_name=p.asset_name,
                    symbol=p.symbol,
                    unit=p.unit,
                    asset_class=p.asset_class,
                    balance=p.balance,
                )
                for p in positions
            ])
            db.commit()
        except Exception:
            db.rollback()
            raise

    def replace_monthly_snapshots(
            self,
            db: Session,
            account_id: uuid.UUID,
            snapshots: list[SnapshotPosition],
    ) -> None:
        """Delete every HoldingSnapshot of the account and insert snapshots, atomically."""
        try:
            db.execute(delete(HoldingSnapshot).where(HoldingSnapshot.account_id == account_id))
            db.add_all([
                HoldingSnapshot(
                    account_id=account_id,
                    asset_name=s.asset_name,
                    symbol=s.symbol,
                    unit=s.unit,
                    asset_class=s.asset_class,
                    month_end_date=s.month_end_date,
                    balance=s.balance,
                )
                for s in snapshots
            ])
            db.commit()
        except Exception:
            db.rollback()
            raise

    # =========================================================================
    # READS
    # =========================================================================

    def get_current_holdings(self, db: Session, account_id: uuid.UUID) -> list[HoldingPosition]:
        """Stored current holdings with balance > 0, by asset name."""
        rows = db.scalars(
            select(Holding)
            .where(Holding.account_id == account_id, Holding.balance > 0)
            .order_by(Holding.asset_name)
        ).all()

        return [
            HoldingPosition(
                asset_name=row.asset_name,
                symbol=row.symbol,
                unit=row.unit,
                asset_class=row.asset_class,
                balance=row.balance,
            )
            for row in rows
        ]

    def get_monthly_snapshots(
            self,
            db: Session,
            account_id: uuid.UUID,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> list[SnapshotPosition]:
        """
        Stored snapshots, optionally limited to a month-end date range.

        Returns:
            Snapshots ordered by month, then asset name
        """
        query = select(HoldingSnapshot).where(HoldingSnapshot.account_id == account_id)
        if start_date is not None:
            query = query.where(HoldingSnapshot.month_end_date >= start_date)
        if end_date is not None:
            query = query.where(HoldingSnapshot.month_end_date <= end_date)
        query = query.order_by(HoldingSnapshot.month_end_date, HoldingSnapshot.asset_name)

        return [
            SnapshotPosition(
                asset_name=row.asset_name,
                symbol=row.symbol,
                unit=row.unit,
                asset_class=row.asset_class,
                month_end_date=row.month_end_date,
                balance=row.balance,
            )
            for row in db.scalars(query).all()
        ]

    # =========================================================================
    # PRIVATE
    # =========================================================================

    def _fetch_transactions(self, db: Session, account_id: uuid.UUID) -> list[Transaction]:
        """Live ledger rows ordered by date (ties keep the store's order)."""
        query = (
            select(Transaction)
            .where(
                Transaction.account_id == account_id,
                Transaction.deleted_at.is_(None),
            )
            .order_by(Transaction.date)
        )
        return list(db.scalars(query).all())
