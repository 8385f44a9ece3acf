# backend/portfolio_engine/services/holdings/types.py
"""
Internal data types for holdings reconstruction.

These are NOT Pydantic schemas (see portfolio_engine/schemas/holdings.py).
Both types are frozen so a reconstruction result can be compared, hashed
and handed to concurrent readers without copying.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from portfolio_engine.models import AssetClass


@dataclass(frozen=True)
class HoldingPosition:
    """
    Net position for one asset.

    Used both for current holdings and, once normalized, for one month of
    snapshots, so the calculator and chart builders see a single shape.

    Attributes:
        asset_name: Ledger asset name (unique per account)
        symbol: Pricing symbol from the most recent transaction
        unit: Unit label from the most recent transaction
        asset_class: Asset class from the most recent transaction
        balance: Net quantity (credit - debit)
    """

    asset_name: str
    symbol: str
    unit: str
    asset_class: AssetClass
    balance: Decimal


@dataclass(frozen=True)
class SnapshotPosition:
    """
    Cumulative position for one asset as of a month end.

    Balance may be zero or negative.
    """

    asset_name: str
    symbol: str
    unit: str
    asset_class: AssetClass
    month_end_date: date
    balance: Decimal

    def to_position(self) -> HoldingPosition:
        return HoldingPosition(
            asset_name=self.asset_name,
            symbol=self.symbol,
            unit=self.unit,
            asset_class=self.asset_class,
            balance=self.balance,
        )
