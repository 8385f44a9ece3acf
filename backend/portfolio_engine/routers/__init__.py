# backend/portfolio_engine/routers/__init__.py
"""
API routers for the Portfolio Valuation Engine.

Every route is scoped to an account (/accounts/{account_id}/...):
- holdings: Reconstructed current holdings and monthly snapshots
- transactions: Ledger listing and edit confirmation
- valuation: Current valuation in a target currency
- charts: Pie chart and monthly bar chart series
- categories: Category tree, colors and holdings assignments
"""

from portfolio_engine.routers.categories import router as categories_router
from portfolio_engine.routers.charts import router as charts_router
from portfolio_engine.routers.holdings import router as holdings_router
from portfolio_engine.routers.transactions import router as transactions_router
from portfolio_engine.routers.valuation import router as valuation_router

__all__ = [
    "holdings_router",
    "transactions_router",
    "valuation_router",
    "charts_router",
    "categories_router",
]
