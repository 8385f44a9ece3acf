# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Database session fixtures (in-memory SQLite)
- A recording pricing subsystem (no network, optional instant fills)
- Resolver / service fixtures with a zero-delay poll budget
- Sample data factories (ledger rows, price points, categories)
- A TestClient wired to the test database
"""

import os

# Must be set before portfolio_engine.config is imported anywhere
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("APP_NAME", "Test App")

import uuid
from collections.abc import Sequence
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_engine.database import get_db
from portfolio_engine.dependencies import clear_service_caches, get_portfolio_service
from portfolio_engine.main import app
from portfolio_engine.models import (
    AssetClass,
    Base,
    Category,
    PricePoint,
    Transaction,
)
from portfolio_engine.services.categories.service import CategoryService
from portfolio_engine.services.holdings.service import HoldingsService
from portfolio_engine.services.portfolio_service import PortfolioService
from portfolio_engine.services.pricing.resolver import PriceResolver
from portfolio_engine.services.pricing.store import PriceStore
from portfolio_engine.services.pricing.types import PriceRequest


ACCOUNT_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
OTHER_ACCOUNT_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")

# A mid-month "today" so bar chart series include a current chart
FIXED_TODAY = date(2024, 3, 15)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Iterator[Session]:
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# RECORDING PRICING SUBSYSTEM
# =============================================================================

class RecordingPricingSubsystem:
    """
    Pricing subsystem fake.

    Records every request_refresh call. Prices registered with add_fill()
    are written to the store when their symbol is requested, which
    simulates a subsystem that answers before the first poll.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session = session
        self._store = PriceStore()
        self._fills: dict[str, list[tuple[AssetClass, Decimal, date | None, str | None]]] = {}
        self.calls: list[tuple[list[PriceRequest], date | None, date | None]] = []
        self.fail_with: Exception | None = None

    def add_fill(
            self,
            symbol: str,
            asset_class: AssetClass,
            price: str | Decimal,
            as_of: date | None = None,
            currency: str | None = None,
    ) -> None:
        self._fills.setdefault(symbol, []).append((asset_class, Decimal(price), as_of, currency))

    def request_refresh(
            self,
            requests: Sequence[PriceRequest],
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> None:
        self.calls.append((list(requests), start_date, end_date))
        if self.fail_with is not None:
            raise self.fail_with
        if self._session is None:
            return
        for request in requests:
            for asset_class, price, as_of, currency in self._fills.get(request.symbol, []):
                self._store.upsert(self._session, request.symbol, asset_class, price, as_of=as_of, currency=currency)
        self._session.commit()

    @property
    def requested_symbols(self) -> list[str]:
        return [r.symbol for requests, _, _ in self.calls for r in requests]


@pytest.fixture
def pricing(db: Session) -> RecordingPricingSubsystem:
    return RecordingPricingSubsystem(session=db)


@pytest.fixture
def resolver(pricing: RecordingPricingSubsystem) -> PriceResolver:
    """Resolver with the default 3-attempt budget and no real sleeping."""
    return PriceResolver(
        pricing=pricing,
        max_attempts=3,
        delay=0,
        fallback_months=3,
        sleep=lambda seconds: None,
        today=lambda: FIXED_TODAY,
    )


@pytest.fixture
def holdings_service() -> HoldingsService:
    return HoldingsService()


@pytest.fixture
def category_service() -> CategoryService:
    return CategoryService()


@pytest.fixture
def portfolio_service(
        resolver: PriceResolver,
        holdings_service: HoldingsService,
        category_service: CategoryService,
) -> PortfolioService:
    return PortfolioService(
        resolver=resolver,
        holdings=holdings_service,
        categories=category_service,
        today=lambda: FIXED_TODAY,
    )


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def make_transaction(
        txn_date: date,
        asset_name: str = "Acme",
        symbol: str = "ACME",
        credit: str | Decimal = "0",
        debit: str | Decimal = "0",
        asset_class: AssetClass = AssetClass.STOCK,
        unit: str = "SHARE",
        account_id: uuid.UUID = ACCOUNT_ID,
        deleted: bool = False,
) -> Transaction:
    """Build an unsaved ledger row."""
    return Transaction(
        account_id=account_id,
        date=txn_date,
        asset_name=asset_name,
        symbol=symbol,
        unit=unit,
        asset_class=asset_class,
        credit=Decimal(credit),
        debit=Decimal(debit),
        deleted_at=datetime(2024, 6, 1, tzinfo=timezone.utc) if deleted else None,
    )


def seed_transaction(db: Session, txn_date: date, **kwargs) -> Transaction:
    """Create a ledger row in the database."""
    txn = make_transaction(txn_date, **kwargs)
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


def seed_price(
        db: Session,
        symbol: str,
        price: str | Decimal,
        asset_class: AssetClass = AssetClass.STOCK,
        as_of: date | None = None,
        currency: str | None = None,
) -> PricePoint:
    """Create a price point (as_of None = current price)."""
    point = PricePoint(
        symbol=symbol,
        asset_class=asset_class,
        price=Decimal(price),
        as_of=as_of,
        currency=currency,
    )
    db.add(point)
    db.commit()
    db.refresh(point)
    return point


def seed_category(
        db: Session,
        name: str,
        subcategories: Sequence[str] = (),
        account_id: uuid.UUID = ACCOUNT_ID,
        priority: int = 1,
) -> Category:
    """Create a category with subcategories numbered 1..n in the given order."""
    category = Category(account_id=account_id, name=name, priority=priority)
    db.add(category)
    db.flush()
    for index, sub_name in enumerate(subcategories, start=1):
        db.add(Category(account_id=account_id, name=sub_name, parent_id=category.id, priority=index))
    db.commit()
    db.refresh(category)
    return category


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture
def client(db: Session, portfolio_service: PortfolioService) -> Iterator[TestClient]:
    """
    TestClient on the test database.

    Valuation and chart routes use the recording pricing subsystem with a
    zero-delay poll budget.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    clear_service_caches()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_portfolio_service] = lambda: portfolio_service

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    clear_service_caches()
