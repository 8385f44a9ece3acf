# backend/portfolio_engine/services/valuation/__init__.py
"""
Valuation package: values positions with resolved prices.

Architecture:
    valuation/
    ├── __init__.py      # Package exports
    ├── types.py         # SubcategoryAssignment, AssetValue, PortfolioValue, CurrentValuation
    └── calculator.py    # PortfolioCalculator (stateless)

Orchestration (refresh, resolve, chart) lives in services/portfolio_service.py.

Data Flow:
    HoldingPosition list + price lookup → PortfolioCalculator → PortfolioValue
"""

from portfolio_engine.services.valuation.calculator import PortfolioCalculator, PriceLookup
from portfolio_engine.services.valuation.types import (
    AssetValue,
    CurrentValuation,
    PortfolioValue,
    SubcategoryAssignment,
)

__all__ = [
    "PortfolioCalculator",
    "PriceLookup",
    "AssetValue",
    "CurrentValuation",
    "PortfolioValue",
    "SubcategoryAssignment",
]
