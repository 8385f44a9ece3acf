# backend/portfolio_engine/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates business logic
separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Are easily testable via dependency injection

Usage:
    from portfolio_engine.services import PortfolioService
    from portfolio_engine.services import HoldingsService
    from portfolio_engine.services import (
        CategoryNotFoundError,
        ValidationError,
    )

Architecture:
    services/
    ├── __init__.py              # This file - main exports
    ├── exceptions.py            # Domain exceptions
    ├── constants.py             # Business constants (palette, units, limits)
    ├── protocols.py             # Service interfaces (Protocol classes)
    ├── retry.py                 # Bounded polling (tenacity)
    ├── transactions.py          # Ledger reads and confirmation
    ├── portfolio_service.py     # Valuation and chart orchestrator
    ├── holdings/                # Ledger → current holdings / monthly snapshots
    ├── pricing/                 # Price store, resolver, Yahoo subsystem
    ├── valuation/               # PortfolioCalculator and value types
    ├── charts/                  # Pie / bar builders and series
    └── categories/              # Category tree and assignments
"""

from portfolio_engine.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidColorError,
    DuplicateNameError,
    NotFoundError,
    CategoryNotFoundError,
    SubcategoryNotFoundError,
    PricingError,
    DataUnavailableError,
    UpstreamTimeoutError,
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from portfolio_engine.services.holdings import HoldingsReconstructor, HoldingsService
from portfolio_engine.services.pricing import (
    NullPricingSubsystem,
    PriceResolver,
    YahooPricingSubsystem,
)
from portfolio_engine.services.valuation import PortfolioCalculator
from portfolio_engine.services.categories import CategoryService
from portfolio_engine.services.transactions import TransactionService
from portfolio_engine.services.portfolio_service import PortfolioService

__all__ = [
    # ==========================================================================
    # Services
    # ==========================================================================
    "HoldingsReconstructor",
    "HoldingsService",
    "PriceResolver",
    "NullPricingSubsystem",
    "YahooPricingSubsystem",
    "PortfolioCalculator",
    "CategoryService",
    "TransactionService",
    "PortfolioService",

    # ==========================================================================
    # Exceptions
    # ==========================================================================
    "ServiceError",
    "ValidationError",
    "InvalidColorError",
    "DuplicateNameError",
    "NotFoundError",
    "CategoryNotFoundError",
    "SubcategoryNotFoundError",
    "PricingError",
    "DataUnavailableError",
    "UpstreamTimeoutError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
]
