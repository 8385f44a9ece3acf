# backend/portfolio_engine/services/pricing/__init__.py
"""
Price resolution package.

Architecture:
    pricing/
    ├── __init__.py      # Package exports
    ├── types.py         # PriceRequest, PriceQuote, RefreshOutcome
    ├── store.py         # PriceStore (price_points queries and upserts)
    ├── resolver.py      # PriceResolver (lookup rules + refresh poll)
    ├── subsystem.py     # Yahoo / Null pricing subsystems
    └── yahoo.py         # YahooQuoteProvider (yfinance + tenacity)

Data Flow:
    PortfolioService → PriceResolver.refresh → pricing subsystem (background)
                                             → poll PriceStore
    PortfolioService → PriceResolver.resolve → PriceStore → PriceQuote | None
"""

from portfolio_engine.services.pricing.resolver import PriceResolver
from portfolio_engine.services.pricing.store import PriceStore
from portfolio_engine.services.pricing.subsystem import NullPricingSubsystem, YahooPricingSubsystem
from portfolio_engine.services.pricing.types import (
    PriceQuote,
    PriceRequest,
    RefreshOutcome,
    forex_pair,
    split_forex_pair,
)
from portfolio_engine.services.pricing.yahoo import YahooQuoteProvider

__all__ = [
    "PriceResolver",
    "PriceStore",
    "NullPricingSubsystem",
    "YahooPricingSubsystem",
    "YahooQuoteProvider",
    "PriceQuote",
    "PriceRequest",
    "RefreshOutcome",
    "forex_pair",
    "split_forex_pair",
]
