# backend/portfolio_engine/services/portfolio_service.py
"""
Portfolio Service - orchestrates valuations and charts for an account.

Exposed operations:
- get_current_valuation: current holdings valued in a target currency
- get_pie_chart: allocation of current holdings
- get_bar_chart_series: allocation per month end, plus today

Each call follows the same read path:
    1. Validate inputs (before any work)
    2. Load holdings or snapshots (HoldingsService)
    3. Refresh prices under the bounded poll budget (PriceResolver.refresh)
    4. Resolve prices and value positions (PortfolioCalculator)
    5. Build charts (build_chart / build_series)

Missing prices and incomplete refreshes never fail a request: assets are
valued at 0 and the problem is reported as a warning.

Usage:
    service = PortfolioService(resolver, HoldingsService(), CategoryService())

    valuation = service.get_current_valuation(db, account_id, "EUR")
    pie = service.get_pie_chart(db, account_id, "EUR", category_name="Risk")
    series = service.get_bar_chart_series(db, account_id, "EUR")
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from portfolio_engine.models import AssetClass
from portfolio_engine.services.categories.service import CategoryService
from portfolio_engine.services.charts import (
    ChartEntry,
    ChartKind,
    ChartMode,
    ChartSeriesPoint,
    build_chart,
    build_series,
    include_today_chart,
)
from portfolio_engine.services.constants import NONE_LABEL
from portfolio_engine.services.exceptions import ValidationError
from portfolio_engine.services.holdings.reconstruction import carry_forward, snapshot_months
from portfolio_engine.services.holdings.service import HoldingsService
from portfolio_engine.services.holdings.types import HoldingPosition
from portfolio_engine.services.pricing.types import PriceRequest, RefreshOutcome, forex_pair
from portfolio_engine.services.protocols import PriceResolverProtocol
from portfolio_engine.services.valuation.calculator import PortfolioCalculator
from portfolio_engine.services.valuation.types import (
    CurrentValuation,
    PortfolioValue,
    SubcategoryAssignment,
)
from portfolio_engine.utils.date_utils import month_start

logger = logging.getLogger(__name__)


class PortfolioService:
    """
    Valuation and chart operations.

    Attributes:
        _resolver: Price lookups and refresh polling
        _holdings: Current holdings and monthly snapshots
        _categories: Category lookups for BY_SUBCATEGORY mode
        _calculator: Stateless position valuation
        _today: Calendar source (tests inject a fixed date)
    """

    def __init__(
            self,
            resolver: PriceResolverProtocol,
            holdings: HoldingsService,
            categories: CategoryService,
            calculator: PortfolioCalculator | None = None,
            today: Callable[[], date] = date.today,
    ) -> None:
        self._resolver = resolver
        self._holdings = holdings
        self._categories = categories
        self._calculator = calculator or PortfolioCalculator()
        self._today = today

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_current_valuation(
            self,
            db: Session,
            account_id: uuid.UUID,
            target_currency: str,
    ) -> CurrentValuation:
        """
        Value current holdings.

        Returns:
            CurrentValuation; empty (total 0) for an empty ledger

        Raises:
            ValidationError: Missing account id or currency
        """
        currency = self._validate(account_id, target_currency)

        positions = self._holdings.get_current_holdings(db, account_id)
        if not positions:
            return CurrentValuation(lines=(), total_value=Decimal(0), currency=currency)

        outcome = self._resolver.refresh(db, self._price_requests(positions, currency), target_currency=currency)
        valuation = self._value(db, positions, currency)

        return CurrentValuation(
            lines=valuation.lines,
            total_value=valuation.total_value,
            currency=currency,
            warnings=self._warnings(outcome, valuation),
        )

    def get_pie_chart(
            self,
            db: Session,
            account_id: uuid.UUID,
            target_currency: str,
            category_name: str | None = None,
    ) -> list[ChartEntry]:
        """
        Allocation of current holdings.

        Args:
            category_name: None or "None" for a flat chart, else the category
                whose subcategories group the entries

        Raises:
            ValidationError: Missing account id or currency, blank category
            CategoryNotFoundError: Unknown category
        """
        currency = self._validate(account_id, target_currency, category_name)
        mode, assignment = self._select_mode(db, account_id, category_name)

        positions = self._holdings.get_current_holdings(db, account_id)
        if not positions:
            return []

        self._resolver.refresh(db, self._price_requests(positions, currency), target_currency=currency)
        valuation = self._value(db, positions, currency, assignment=assignment)

        return list(build_chart(valuation, mode, ChartKind.PIE, assignment=assignment))

    def get_bar_chart_series(
            self,
            db: Session,
            account_id: uuid.UUID,
            target_currency: str,
            category_name: str | None = None,
    ) -> list[ChartSeriesPoint]:
        """
        One bar chart per completed month end, from the first snapshot month
        through last month, plus a chart of current holdings dated today
        unless today is the first of a month.

        Months after the last ledger month repeat its balances. The current
        month is covered only by the today chart. Positions with a month-end
        balance <= 0 are left out of that month.

        Raises:
            ValidationError: Missing account id or currency, blank category
            CategoryNotFoundError: Unknown category
        """
        currency = self._validate(account_id, target_currency, category_name)
        mode, assignment = self._select_mode(db, account_id, category_name)

        today = self._today()
        last_completed_month = month_start(today) - timedelta(days=1)
        snapshots = carry_forward(self._holdings.get_monthly_snapshots(db, account_id), last_completed_month)
        current = self._holdings.get_current_holdings(db, account_id) if include_today_chart(today) else []

        if not snapshots and not current:
            return []

        months = snapshot_months(snapshots)
        positions_by_month: dict[date, list[HoldingPosition]] = {month: [] for month in months}
        for snapshot in snapshots:
            if snapshot.balance > 0:
                positions_by_month[snapshot.month_end_date].append(snapshot.to_position())

        historical = [p for positions in positions_by_month.values() for p in positions]
        if historical:
            self._resolver.refresh(
                db,
                self._price_requests(historical, currency),
                start_date=month_start(months[0]),
                end_date=months[-1],
                target_currency=currency,
            )
        if current:
            self._resolver.refresh(db, self._price_requests(current, currency), target_currency=currency)

        monthly_charts = []
        for month in months:
            valuation = self._value(db, positions_by_month[month], currency, assignment=assignment, as_of=month)
            monthly_charts.append(ChartSeriesPoint(
                date=month,
                entries=build_chart(valuation, mode, ChartKind.BAR, assignment=assignment, chart_date=month),
            ))

        today_chart = None
        if current:
            valuation = self._value(db, current, currency, assignment=assignment)
            today_chart = ChartSeriesPoint(
                date=today,
                entries=build_chart(valuation, mode, ChartKind.BAR, assignment=assignment, chart_date=today),
            )

        series = build_series(monthly_charts, today_chart, mode)
        logger.info(
            f"Built bar chart series for account {account_id}: {len(series)} points "
            f"({mode.value}, {currency})"
        )
        return series

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _value(
            self,
            db: Session,
            positions: Sequence[HoldingPosition],
            currency: str,
            assignment: SubcategoryAssignment | None = None,
            as_of: date | None = None,
    ) -> PortfolioValue:
        return self._calculator.calculate(
            positions,
            price_lookup=lambda p: self._resolver.resolve(db, p.symbol, p.asset_class, currency, as_of=as_of),
            target_currency=currency,
            assignment=assignment,
            valuation_date=as_of,
        )

    def _select_mode(
            self,
            db: Session,
            account_id: uuid.UUID,
            category_name: str | None,
    ) -> tuple[ChartMode, SubcategoryAssignment | None]:
        if category_name is None or category_name.strip().lower() == NONE_LABEL.lower():
            return ChartMode.FLAT, None
        assignment = self._categories.get_subcategory_assignment(db, account_id, category_name.strip())
        return ChartMode.BY_SUBCATEGORY, assignment

    @staticmethod
    def _price_requests(positions: Sequence[HoldingPosition], currency: str) -> list[PriceRequest]:
        """Refresh requests for positions not already in the target currency."""
        requests: dict[PriceRequest, None] = {}
        for position in positions:
            if position.symbol == currency:
                continue
            if position.asset_class == AssetClass.FOREX:
                request = PriceRequest(forex_pair(position.symbol, currency), AssetClass.FOREX)
            else:
                request = PriceRequest(position.symbol, position.asset_class)
            requests[request] = None
        return list(requests)

    @staticmethod
    def _warnings(outcome: RefreshOutcome, valuation: PortfolioValue) -> tuple[str, ...]:
        warnings = list(valuation.warnings)
        if outcome.error is not None:
            warnings.insert(0, str(outcome.error))
        return tuple(warnings)

    @staticmethod
    def _validate(
            account_id: uuid.UUID | None,
            target_currency: str | None,
            category_name: str | None = None,
    ) -> str:
        """Check inputs; returns the normalized currency code."""
        if not account_id:
            raise ValidationError("account_id is required", field="account_id")
        if target_currency is None or not target_currency.strip():
            raise ValidationError("target_currency is required", field="currency")
        if category_name is not None and not category_name.strip():
            raise ValidationError("category name cannot be blank", field="category")
        return target_currency.strip().upper()
