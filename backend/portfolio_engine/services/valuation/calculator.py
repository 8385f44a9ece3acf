# backend/portfolio_engine/services/valuation/calculator.py
"""
Portfolio Calculator - values positions with resolved prices.

Design Principles:
- Stateless (no instance state, pure functions)
- Receives the price lookup explicitly, so it never touches the database
- Uses Decimal for ALL financial calculations
- An unresolved price is a warning and a zero value, never an error

Usage:
    calculator = PortfolioCalculator()
    result = calculator.calculate(
        positions,
        price_lookup=lambda p: resolver.resolve(db, p.symbol, p.asset_class, "EUR"),
        target_currency="EUR",
    )
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal

from portfolio_engine.services.constants import NONE_LABEL
from portfolio_engine.services.holdings.types import HoldingPosition
from portfolio_engine.services.pricing.types import PriceQuote
from portfolio_engine.services.valuation.types import (
    AssetValue,
    PortfolioValue,
    SubcategoryAssignment,
)

logger = logging.getLogger(__name__)

PriceLookup = Callable[[HoldingPosition], PriceQuote | None]


class PortfolioCalculator:
    """
    Computes per-asset values and their aggregates.

    value(asset) = balance × price; 0 with a warning when the price is
    unresolved. Without an assignment every asset is labelled "None"; with
    one, assets outside the category are left out entirely.
    """

    def calculate(
            self,
            positions: Iterable[HoldingPosition],
            price_lookup: PriceLookup,
            target_currency: str,
            assignment: SubcategoryAssignment | None = None,
            valuation_date: date | None = None,
    ) -> PortfolioValue:
        """
        Value a set of positions.

        Args:
            positions: Positions to value
            price_lookup: Returns the unit price of a position, or None
            target_currency: Currency of every value
            assignment: Subcategory split of a category; None = flat
            valuation_date: Month end of a historical valuation (for warnings)

        Returns:
            PortfolioValue with lines in input order
        """
        lines: list[AssetValue] = []
        per_asset_value: dict[str, Decimal] = {}
        per_subcategory_value: dict[str, Decimal] = {}
        warnings: list[str] = []
        total = Decimal(0)

        for position in positions:
            label = NONE_LABEL
            if assignment is not None:
                label = assignment.label_for(position.asset_name)
                if label is None:
                    continue

            quote = price_lookup(position)
            if quote is None:
                warning = self._missing_price_warning(position, target_currency, valuation_date)
                logger.warning(warning)
                warnings.append(warning)
                price = None
                value = Decimal(0)
            else:
                price = quote.price
                value = position.balance * quote.price

            lines.append(AssetValue(
                asset_name=position.asset_name,
                symbol=position.symbol,
                unit=position.unit,
                asset_class=position.asset_class,
                balance=position.balance,
                price=price,
                value=value,
                subcategory=label,
                is_fallback=quote.is_fallback if quote is not None else False,
            ))
            per_asset_value[position.asset_name] = per_asset_value.get(position.asset_name, Decimal(0)) + value
            per_subcategory_value[label] = per_subcategory_value.get(label, Decimal(0)) + value
            total += value

        return PortfolioValue(
            lines=tuple(lines),
            per_asset_value=per_asset_value,
            per_subcategory_value=per_subcategory_value,
            total_value=total,
            currency=target_currency,
            warnings=tuple(warnings),
            valuation_date=valuation_date,
        )

    @staticmethod
    def _missing_price_warning(
            position: HoldingPosition,
            target_currency: str,
            valuation_date: date | None,
    ) -> str:
        when = valuation_date.isoformat() if valuation_date else "current"
        return (
            f"No price for {position.asset_name} ({position.symbol}, {position.asset_class.value}) "
            f"in {target_currency} at {when}; valued at 0"
        )
