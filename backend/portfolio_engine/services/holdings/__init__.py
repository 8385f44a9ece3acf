# backend/portfolio_engine/services/holdings/__init__.py
"""
Holdings reconstruction package.

Architecture:
    holdings/
    ├── __init__.py         # Package exports
    ├── types.py            # HoldingPosition, SnapshotPosition
    ├── reconstruction.py   # HoldingsReconstructor (pure ledger replay)
    └── service.py          # HoldingsService (locks + persistence)

Data Flow:
    Transactions → HoldingsReconstructor → positions / snapshots
    positions / snapshots → HoldingsService → holdings / holding_snapshots tables
"""

from portfolio_engine.services.holdings.reconstruction import HoldingsReconstructor
from portfolio_engine.services.holdings.service import AccountLockRegistry, HoldingsService
from portfolio_engine.services.holdings.types import HoldingPosition, SnapshotPosition

__all__ = [
    "HoldingsReconstructor",
    "HoldingsService",
    "AccountLockRegistry",
    "HoldingPosition",
    "SnapshotPosition",
]
