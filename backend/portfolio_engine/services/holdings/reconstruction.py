# backend/portfolio_engine/services/holdings/reconstruction.py
"""
Ledger replay: transactions in, holdings out.

HoldingsReconstructor is stateless and has no database access; the
HoldingsService feeds it ledger rows and persists what it returns.

Rules:
- Net quantity of a row is credit - debit, summed with Decimal
- Soft-deleted rows (deleted_at set) never count
- Metadata (symbol, unit, asset_class) comes from the latest dated row of
  the asset. Rows are stable-sorted by date descending, so rows sharing a
  date keep the ledger's own order.
- Current holdings keep only balance > 0
- Monthly snapshots keep every balance, including zero and negative

Usage:
    reconstructor = HoldingsReconstructor()
    current = reconstructor.calculate_current(transactions)
    snapshots = reconstructor.calculate_monthly(transactions)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from portfolio_engine.services.holdings.types import HoldingPosition, SnapshotPosition
from portfolio_engine.utils.date_utils import months_between

if TYPE_CHECKING:
    from portfolio_engine.models import Transaction

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class HoldingsReconstructor:
    """
    Rebuilds current holdings and monthly snapshots from ledger rows.

    Monthly snapshots re-scan the whole ledger for every month instead of
    carrying a running total; per-account ledgers are small.
    """

    def calculate_current(self, transactions: Iterable[Transaction]) -> list[HoldingPosition]:
        """
        Current holdings from every live transaction.

        Args:
            transactions: Ledger rows for one account, any order

        Returns:
            Positions with balance > 0, sorted by asset name. Empty for an
            empty ledger.
        """
        ordered = self._latest_first(transactions)
        balances, metadata = self._aggregate(ordered)

        positions = [
            HoldingPosition(
                asset_name=asset_name,
                symbol=metadata[asset_name].symbol,
                unit=metadata[asset_name].unit,
                asset_class=metadata[asset_name].asset_class,
                balance=balance,
            )
            for asset_name, balance in balances.items()
            if balance > ZERO
        ]
        positions.sort(key=lambda p: p.asset_name)

        dropped = len(balances) - len(positions)
        if dropped:
            logger.debug(f"Dropped {dropped} closed positions from current holdings")

        return positions

    def calculate_monthly(self, transactions: Iterable[Transaction]) -> list[SnapshotPosition]:
        """
        One snapshot per (asset, month) for every month the ledger spans.

        Args:
            transactions: Ledger rows for one account, any order

        Returns:
            Snapshots ordered by month, then asset name
        """
        ordered = self._latest_first(transactions)
        if not ordered:
            return []

        first_date = min(txn.date for txn in ordered)
        last_date = max(txn.date for txn in ordered)

        snapshots: list[SnapshotPosition] = []
        for month_end_date in months_between(first_date, last_date):
            up_to_month = [txn for txn in ordered if txn.date <= month_end_date]
            balances, metadata = self._aggregate(up_to_month)

            for asset_name in sorted(balances):
                meta = metadata[asset_name]
                snapshots.append(
                    SnapshotPosition(
                        asset_name=asset_name,
                        symbol=meta.symbol,
                        unit=meta.unit,
                        asset_class=meta.asset_class,
                        month_end_date=month_end_date,
                        balance=balances[asset_name],
                    )
                )

        return snapshots

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _latest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
        """Live rows, newest date first (stable for equal dates)."""
        live = [txn for txn in transactions if txn.deleted_at is None]
        return sorted(live, key=lambda txn: txn.date, reverse=True)

    @staticmethod
    def _aggregate(
            ordered: list[Transaction],
    ) -> tuple[dict[str, Decimal], dict[str, Transaction]]:
        """
        Sum net quantities per asset.

        Args:
            ordered: Rows already sorted newest first

        Returns:
            (balance by asset name, metadata row by asset name); the
            metadata row is the first row seen for the asset
        """
        balances: dict[str, Decimal] = {}
        metadata: dict[str, Transaction] = {}

        for txn in ordered:
            if txn.asset_name not in metadata:
                metadata[txn.asset_name] = txn
            net = (txn.credit or ZERO) - (txn.debit or ZERO)
            balances[txn.asset_name] = balances.get(txn.asset_name, ZERO) + net

        return balances, metadata


def snapshot_months(snapshots: Iterable[SnapshotPosition]) -> list[date]:
    """Distinct month-end dates of a snapshot set, ascending."""
    return sorted({s.month_end_date for s in snapshots})


def carry_forward(snapshots: Iterable[SnapshotPosition], through: date) -> list[SnapshotPosition]:
    """
    Snapshots for every month end up to and including `through`.

    Stored snapshots stop at the last ledger month. Balances cannot change
    after it, so the last stored month is repeated for each later month end.
    Month ends after `through` are dropped.

    Args:
        snapshots: Stored snapshots ordered by month, then asset name
        through: Last month end to cover (a completed month)

    Returns:
        Snapshots ordered by month, then asset name
    """
    kept = [s for s in snapshots if s.month_end_date <= through]
    if not kept:
        return []

    last_month = max(s.month_end_date for s in kept)
    latest = [s for s in kept if s.month_end_date == last_month]
    for month_end_date in months_between(last_month + timedelta(days=1), through):
        kept.extend(replace(s, month_end_date=month_end_date) for s in latest)

    return kept
