# backend/portfolio_engine/dependencies.py
"""
Dependency injection module for FastAPI services.

This module provides singleton service instances that are shared across
all requests. Sharing matters here for two reasons:
- The pricing subsystem owns a worker thread pool
- HoldingsService owns the per-account rebuild locks

Services are lazily initialized on first use to avoid import-time side effects.

Usage in routers:
    from portfolio_engine.dependencies import get_portfolio_service

    @router.get("/valuation")
    def get_valuation(
        service: PortfolioService = Depends(get_portfolio_service),
    ):
        ...
"""

import logging
from functools import lru_cache

from portfolio_engine.config import settings
from portfolio_engine.services.categories.service import CategoryService
from portfolio_engine.services.holdings.service import HoldingsService
from portfolio_engine.services.portfolio_service import PortfolioService
from portfolio_engine.services.pricing.resolver import PriceResolver
from portfolio_engine.services.pricing.subsystem import (
    NullPricingSubsystem,
    YahooPricingSubsystem,
)
from portfolio_engine.services.protocols import PricingSubsystemProtocol
from portfolio_engine.services.transactions import TransactionService

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_pricing_subsystem (no deps)
# 2. get_price_resolver (depends on pricing subsystem)
# 3. get_holdings_service, get_category_service (no deps)
# 4. get_transaction_service (depends on holdings)
# 5. get_portfolio_service (depends on resolver, holdings, categories)


@lru_cache(maxsize=1)
def get_pricing_subsystem() -> PricingSubsystemProtocol:
    """
    Get the singleton pricing subsystem.

    Yahoo Finance when PRICING_ENABLED, otherwise a no-op subsystem that
    leaves the price store as it is (always the case in tests).
    """
    if not settings.pricing_enabled:
        logger.debug("Pricing disabled, using NullPricingSubsystem")
        return NullPricingSubsystem()

    logger.debug(f"Initializing singleton YahooPricingSubsystem ({settings.pricing_workers} workers)")
    return YahooPricingSubsystem(max_workers=settings.pricing_workers)


@lru_cache(maxsize=1)
def get_price_resolver() -> PriceResolver:
    """Get the singleton PriceResolver (poll budget from settings)."""
    logger.debug("Initializing singleton PriceResolver")
    return PriceResolver(pricing=get_pricing_subsystem())


@lru_cache(maxsize=1)
def get_holdings_service() -> HoldingsService:
    """
    Get the singleton HoldingsService.

    One instance per process so concurrent rebuilds of the same account
    serialize on the same lock.
    """
    logger.debug("Initializing singleton HoldingsService")
    return HoldingsService()


@lru_cache(maxsize=1)
def get_category_service() -> CategoryService:
    logger.debug("Initializing singleton CategoryService")
    return CategoryService()


@lru_cache(maxsize=1)
def get_transaction_service() -> TransactionService:
    logger.debug("Initializing singleton TransactionService")
    return TransactionService(holdings=get_holdings_service())


@lru_cache(maxsize=1)
def get_portfolio_service() -> PortfolioService:
    """Get the singleton PortfolioService used by valuation and chart routes."""
    logger.debug("Initializing singleton PortfolioService")
    return PortfolioService(
        resolver=get_price_resolver(),
        holdings=get_holdings_service(),
        categories=get_category_service(),
    )


# =============================================================================
# CACHE MANAGEMENT
# =============================================================================

def shutdown_services() -> None:
    """Stop background pricing workers (called on application shutdown)."""
    if get_pricing_subsystem.cache_info().currsize:
        subsystem = get_pricing_subsystem()
        if isinstance(subsystem, YahooPricingSubsystem):
            subsystem.shutdown(wait=False)


def clear_service_caches() -> None:
    """
    Clear all service caches.

    Useful for testing or when you need to reset state.
    """
    shutdown_services()
    get_pricing_subsystem.cache_clear()
    get_price_resolver.cache_clear()
    get_holdings_service.cache_clear()
    get_category_service.cache_clear()
    get_transaction_service.cache_clear()
    get_portfolio_service.cache_clear()
    logger.info("Cleared all service singleton caches")
