# backend/portfolio_engine/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

This package contains all Pydantic schemas organized by domain:
- categories: Category tree, colors, holdings assignments
- charts: Pie chart entries and bar chart series
- errors: Error response formats
- holdings: Current holdings and monthly snapshots
- transactions: Ledger rows and edit confirmation
- validators: Reusable validation functions (symbol, color, dates)
- valuation: Current valuation

Usage:
    from portfolio_engine.schemas import CurrentValuationResponse
    from portfolio_engine.schemas import PieChartResponse, BarChartSeriesResponse
    from portfolio_engine.schemas import ConfirmTransactionsRequest
"""

from portfolio_engine.schemas.categories import (
    CategoryCreate,
    CategoryRename,
    ColorUpdate,
    CategoryResponse,
    CategoryNamesResponse,
    ColorMapResponse,
    HoldingsAssignmentRequest,
    HoldingsCategoriesResponse,
)
from portfolio_engine.schemas.charts import (
    ChartEntryResponse,
    PieChartResponse,
    BarChartPoint,
    BarChartSeriesResponse,
)
from portfolio_engine.schemas.errors import (
    ErrorDetail,
    ValidationErrorDetail,
)
from portfolio_engine.schemas.holdings import (
    HoldingResponse,
    HoldingSnapshotResponse,
    HoldingsListResponse,
    HoldingSnapshotsResponse,
)
from portfolio_engine.schemas.transactions import (
    TransactionCreate,
    ConfirmTransactionsRequest,
    TransactionResponse,
    TransactionListResponse,
    ConfirmTransactionsResponse,
)
from portfolio_engine.schemas.valuation import (
    AssetValueResponse,
    CurrentValuationResponse,
)

__all__ = [
    # Categories
    "CategoryCreate",
    "CategoryRename",
    "ColorUpdate",
    "CategoryResponse",
    "CategoryNamesResponse",
    "ColorMapResponse",
    "HoldingsAssignmentRequest",
    "HoldingsCategoriesResponse",
    # Charts
    "ChartEntryResponse",
    "PieChartResponse",
    "BarChartPoint",
    "BarChartSeriesResponse",
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Holdings
    "HoldingResponse",
    "HoldingSnapshotResponse",
    "HoldingsListResponse",
    "HoldingSnapshotsResponse",
    # Transactions
    "TransactionCreate",
    "ConfirmTransactionsRequest",
    "TransactionResponse",
    "TransactionListResponse",
    "ConfirmTransactionsResponse",
    # Valuation
    "AssetValueResponse",
    "CurrentValuationResponse",
]
