# backend/portfolio_engine/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- Concrete services satisfy protocols without inheriting from them
- Test fakes (see tests/conftest.py) work without explicit inheritance
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from portfolio_engine.models import AssetClass
    from portfolio_engine.services.pricing.types import PriceQuote, PriceRequest, RefreshOutcome


class PricingSubsystemProtocol(Protocol):
    """
    Asynchronous pricing collaborator.

    request_refresh is fire-and-forget: it returns immediately and prices
    show up in the local price store some time later (or never).
    """

    def request_refresh(
        self,
        requests: Sequence[PriceRequest],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> None:
        ...


class PriceResolverProtocol(Protocol):
    """Interface required by PortfolioService."""

    def refresh(
        self,
        db: Session,
        requests: Sequence[PriceRequest],
        start_date: date | None = None,
        end_date: date | None = None,
        target_currency: str | None = None,
    ) -> RefreshOutcome:
        ...

    def resolve(
        self,
        db: Session,
        symbol: str,
        asset_class: AssetClass,
        target_currency: str,
        as_of: date | None = None,
        require: bool = False,
    ) -> PriceQuote | None:
        ...


class HoldingsRebuilderProtocol(Protocol):
    """Interface required by TransactionService after ledger changes."""

    def rebuild_current(self, db: Session, account_id: uuid.UUID) -> list:
        ...

    def rebuild_monthly(self, db: Session, account_id: uuid.UUID) -> list:
        ...
