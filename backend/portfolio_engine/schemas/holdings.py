# backend/portfolio_engine/schemas/holdings.py
"""Pydantic schemas for reconstructed holdings."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from portfolio_engine.models import AssetClass


class HoldingResponse(BaseModel):
    """Current position (balance > 0)."""

    model_config = ConfigDict(from_attributes=True)

    asset_name: str
    symbol: str
    unit: str
    asset_class: AssetClass
    balance: Decimal


class HoldingSnapshotResponse(HoldingResponse):
    """Cumulative position at a month end; balance may be <= 0."""

    month_end_date: date


class HoldingsListResponse(BaseModel):
    account_id: str
    holdings: list[HoldingResponse]


class HoldingSnapshotsResponse(BaseModel):
    account_id: str
    snapshots: list[HoldingSnapshotResponse]
