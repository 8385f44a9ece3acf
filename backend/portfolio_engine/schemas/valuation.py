# backend/portfolio_engine/schemas/valuation.py
"""
Pydantic schemas for current portfolio valuation.

Values are Decimal end to end; a line with price None was valued at 0 and
has a matching entry in `warnings`.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from portfolio_engine.models import AssetClass


class AssetValueResponse(BaseModel):
    """One valued holding."""

    model_config = ConfigDict(from_attributes=True)

    asset_name: str = Field(..., description="Ledger asset name")
    symbol: str = Field(..., description="Pricing symbol")
    unit: str = Field(..., description="Unit of the balance (SHARE, UNIT, BTC, ...)")
    asset_class: AssetClass
    balance: Decimal = Field(..., description="Quantity held")
    price: Decimal | None = Field(
        ...,
        description="Unit price in the requested currency (None if unresolved)"
    )
    value: Decimal = Field(..., description="balance × price, 0 when unresolved")
    is_fallback: bool = Field(
        default=False,
        description="Price taken from an earlier month"
    )


class CurrentValuationResponse(BaseModel):
    """
    Response for GET /accounts/{account_id}/valuation.

    Example:
        {
            "currency": "EUR",
            "total_value": "1500.00",
            "lines": [...],
            "warnings": ["No price for Gold (XAU, COMMODITY) in EUR at current; valued at 0"]
        }
    """

    currency: str
    total_value: Decimal
    lines: list[AssetValueResponse]
    warnings: list[str] = Field(default_factory=list)
