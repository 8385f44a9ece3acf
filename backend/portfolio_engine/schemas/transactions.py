# backend/portfolio_engine/schemas/transactions.py
"""
Pydantic schemas for the transaction ledger.

These schemas define:
- What a client sends to confirm a ledger edit (TransactionCreate, ConfirmTransactionsRequest)
- What the API returns (TransactionResponse, ConfirmTransactionsResponse)

IMPORTANT: All quantities use Decimal for precision.
Never use float for money!
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator, model_validator

from portfolio_engine.models import AssetClass
from portfolio_engine.schemas.validators import validate_symbol


class TransactionCreate(BaseModel):
    """
    A new ledger row.

    Exactly one of credit/debit is normally non-zero; both must be >= 0.
    """

    date: dt.date = Field(..., description="Trade date", examples=["2024-01-05"])
    asset_name: str = Field(..., min_length=1, max_length=200, examples=["Apple"])
    symbol: str = Field(..., description="Pricing symbol", examples=["AAPL", "BTC", "EUR"])
    asset_class: AssetClass = Field(default=AssetClass.UNKNOWN)
    credit: Decimal = Field(
        default=Decimal(0),
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Quantity received",
    )
    debit: Decimal = Field(
        default=Decimal(0),
        ge=0,
        max_digits=18,
        decimal_places=8,
        description="Quantity given up",
    )
    unit: str | None = Field(
        default=None,
        description="Unit label; derived from the asset class when omitted",
    )

    @field_validator("asset_name")
    @classmethod
    def strip_asset_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("asset_name cannot be blank")
        return v.strip()

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return validate_symbol(v)

    @model_validator(mode="after")
    def check_quantity(self) -> "TransactionCreate":
        if self.credit == 0 and self.debit == 0:
            raise ValueError("credit or debit must be non-zero")
        return self


class ConfirmTransactionsRequest(BaseModel):
    """Body of POST /accounts/{account_id}/transactions/confirm."""

    new_transactions: list[TransactionCreate] = Field(default_factory=list)
    deleted_ids: list[int] = Field(default_factory=list, description="Ledger ids to soft-delete")


class TransactionResponse(BaseModel):
    """A live ledger row with the asset's running balance before and after it."""

    id: int
    date: dt.date
    asset_name: str
    symbol: str
    unit: str
    asset_class: AssetClass
    credit: Decimal
    debit: Decimal
    balance_before: Decimal
    balance_after: Decimal


class TransactionListResponse(BaseModel):
    account_id: str
    transactions: list[TransactionResponse]


class ConfirmTransactionsResponse(BaseModel):
    """Counts after the ledger edit and holdings rebuild."""

    created_count: int
    deleted_count: int
    holdings_count: int
    snapshot_count: int
