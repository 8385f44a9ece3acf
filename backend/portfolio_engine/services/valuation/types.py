# backend/portfolio_engine/services/valuation/types.py
"""
Internal data types for portfolio valuation.

These dataclasses are used internally by the calculator and chart builders.
They are NOT Pydantic schemas - those are defined in
portfolio_engine/schemas/valuation.py for API serialization.

Design Principles:
- Immutable (frozen=True); collections are tuples
- Use Decimal for ALL financial values (never float)
- A missing price is price=None with value 0, never an exception
- Warnings accumulate for data quality tracking

Type Hierarchy:
    SubcategoryAssignment - Asset → subcategory label for one category
    AssetValue            - One valued line item
    PortfolioValue        - Calculator output (lines + aggregates)
    CurrentValuation      - Result of get_current_valuation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from portfolio_engine.models import AssetClass
from portfolio_engine.services.constants import NONE_LABEL, NONE_PRIORITY


# =============================================================================
# CATEGORY ASSIGNMENT
# =============================================================================

@dataclass(frozen=True)
class SubcategoryAssignment:
    """
    How the assets of one top-level category split into subcategories.

    Attributes:
        category_name: The top-level category
        labels: asset_name → subcategory name, or None when the asset is
            assigned to the category itself. Assets not in the mapping are
            outside the category.
        priorities: subcategory name → display priority (1..n)
    """

    category_name: str
    labels: dict[str, str | None] = field(default_factory=dict)
    priorities: dict[str, int] = field(default_factory=dict)

    def label_for(self, asset_name: str) -> str | None:
        """
        Subcategory label of an asset.

        Returns:
            The subcategory name, NONE_LABEL for a direct assignment, or None
            when the asset is outside the category
        """
        if asset_name not in self.labels:
            return None
        return self.labels[asset_name] or NONE_LABEL

    def priority_for(self, label: str) -> int:
        """Display priority of a label; "None" sorts first."""
        if label == NONE_LABEL:
            return NONE_PRIORITY
        return self.priorities.get(label, NONE_PRIORITY)


# =============================================================================
# VALUATION RESULTS
# =============================================================================

@dataclass(frozen=True)
class AssetValue:
    """
    One valued line item.

    Attributes:
        asset_name: Holding's asset name
        symbol: Pricing symbol
        unit: Unit of the balance
        asset_class: Asset class
        balance: Quantity held
        price: Unit price in the target currency, None if unresolved
        value: balance × price, or 0 when unresolved
        subcategory: Subcategory label ("None" in flat mode)
        is_fallback: Price came from an earlier month
    """

    asset_name: str
    symbol: str
    unit: str
    asset_class: AssetClass
    balance: Decimal
    price: Decimal | None
    value: Decimal
    subcategory: str = NONE_LABEL
    is_fallback: bool = False

    @property
    def is_priced(self) -> bool:
        return self.price is not None


@dataclass(frozen=True)
class PortfolioValue:
    """
    Calculator output for one set of positions.

    Attributes:
        lines: One AssetValue per included asset (input order)
        per_asset_value: asset_name → value
        per_subcategory_value: label → Σ value of its assets
        total_value: Σ value over all lines
        currency: Target currency
        warnings: Unresolved prices and other data quality notes
        valuation_date: Month end for historical valuations, None = current
    """

    lines: tuple[AssetValue, ...]
    per_asset_value: dict[str, Decimal]
    per_subcategory_value: dict[str, Decimal]
    total_value: Decimal
    currency: str
    warnings: tuple[str, ...] = ()
    valuation_date: date | None = None

    @property
    def is_empty(self) -> bool:
        return not self.lines


@dataclass(frozen=True)
class CurrentValuation:
    """Result of PortfolioService.get_current_valuation."""

    lines: tuple[AssetValue, ...]
    total_value: Decimal
    currency: str
    warnings: tuple[str, ...] = ()
