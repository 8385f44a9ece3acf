# backend/portfolio_engine/services/pricing/resolver.py
"""
Price Resolver - unit prices in a target currency from the local price store.

Lookup rules:
    1. symbol == target currency → exactly 1, no lookup
    2. FOREX: direct pair "SYMBOL/TARGET"; else reverse pair "TARGET/SYMBOL"
       inverted as 1/p, rounded half-up to 4 places. No month fallback.
    3. Other classes: the point for the requested month (or the current
       point), else the nearest earlier historical point within the
       fallback window. A point quoted in another currency is converted
       through rule 2.

Freshness:
    refresh() publishes a request to the pricing subsystem and polls the store
    under a bounded budget (attempts × delay, optional deadline). It returns a
    RefreshOutcome instead of raising when the budget runs out. Given the
    target currency it also refreshes the forex pairs that convert landed
    prices quoted in another currency.

Usage:
    resolver = PriceResolver(pricing=NullPricingSubsystem())

    outcome = resolver.refresh(db, [PriceRequest("AAPL", AssetClass.STOCK)])
    quote = resolver.resolve(db, "AAPL", AssetClass.STOCK, "USD")
    if quote is None:
        ...  # caller values the asset at 0 and records a warning
"""

import logging
import threading
from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from sqlalchemy.orm import Session

from portfolio_engine.config import settings
from portfolio_engine.models import AssetClass, PricePoint
from portfolio_engine.services.constants import FOREX_INVERSE_PRECISION
from portfolio_engine.services.exceptions import DataUnavailableError
from portfolio_engine.services.pricing.store import PriceStore
from portfolio_engine.services.pricing.types import (
    PriceQuote,
    PriceRequest,
    RefreshOutcome,
    forex_pair,
    split_forex_pair,
)
from portfolio_engine.services.protocols import PricingSubsystemProtocol
from portfolio_engine.services.retry import poll_until
from portfolio_engine.utils.date_utils import add_months, month_start

logger = logging.getLogger(__name__)


class PriceResolver:
    """
    Resolves prices and drives the refresh-then-poll cycle.

    Attributes:
        _pricing: Fire-and-forget pricing subsystem
        _store: Local price store queries
        _max_attempts / _delay / _deadline: Poll budget
        _fallback_months: Months searched back for a stale price
        _poll_kwargs / _today: Injectable sleep, clock and calendar
    """

    def __init__(
            self,
            pricing: PricingSubsystemProtocol,
            store: PriceStore | None = None,
            max_attempts: int | None = None,
            delay: float | None = None,
            deadline: float | None = None,
            fallback_months: int | None = None,
            sleep: Callable[[float], None] | None = None,
            clock: Callable[[], float] | None = None,
            today: Callable[[], date] = date.today,
    ) -> None:
        self._pricing = pricing
        self._store = store or PriceStore()
        self._max_attempts = max_attempts if max_attempts is not None else settings.price_refresh_max_attempts
        self._delay = delay if delay is not None else settings.price_refresh_delay_seconds
        self._deadline = deadline if deadline is not None else settings.price_refresh_deadline_seconds
        self._fallback_months = (
            fallback_months if fallback_months is not None else settings.price_fallback_months
        )
        self._poll_kwargs: dict = {}
        if sleep is not None:
            self._poll_kwargs["sleep"] = sleep
        if clock is not None:
            self._poll_kwargs["clock"] = clock
        self._today = today

    # =========================================================================
    # FRESHNESS
    # =========================================================================

    def refresh(
            self,
            db: Session,
            requests: Sequence[PriceRequest],
            start_date: date | None = None,
            end_date: date | None = None,
            target_currency: str | None = None,
            deadline: float | None = None,
            cancel: threading.Event | None = None,
    ) -> RefreshOutcome:
        """
        Publish a refresh request, then poll the store until every request
        has data or the budget runs out.

        With a target currency, a second round refreshes the forex pairs
        needed to convert prices that landed quoted in another currency.
        Each round has the full poll budget.

        Args:
            db: Session used for the poll queries
            requests: Symbols to refresh (forex requests carry the pair)
            start_date / end_date: Historical range; None for current prices
            target_currency: Currency the prices will be resolved in
            deadline: Overrides the configured deadline for this call
            cancel: Stops the wait when set

        Returns:
            RefreshOutcome; incomplete outcomes are not errors
        """
        unique = list(dict.fromkeys(requests))
        if not unique:
            return RefreshOutcome(complete=True)

        outcome = self._publish_and_poll(db, unique, start_date, end_date, deadline, cancel)

        if target_currency is not None:
            conversions = self._conversion_requests(db, unique, target_currency, start_date, end_date)
            if conversions:
                logger.debug(f"Refreshing {len(conversions)} conversion pairs into {target_currency}")
                outcome = outcome.combine(
                    self._publish_and_poll(db, conversions, start_date, end_date, deadline, cancel)
                )

        if not outcome.complete:
            logger.warning(str(outcome.error))
        return outcome

    def _publish_and_poll(
            self,
            db: Session,
            unique: list[PriceRequest],
            start_date: date | None,
            end_date: date | None,
            deadline: float | None,
            cancel: threading.Event | None,
    ) -> RefreshOutcome:
        try:
            self._pricing.request_refresh(unique, start_date, end_date)
        except Exception as e:
            # A lost publish is indistinguishable from a slow subsystem
            logger.error(f"Failed to publish price refresh for {len(unique)} symbols: {e}")

        def _missing() -> list[PriceRequest]:
            # Rows written by the subsystem are committed in other sessions
            db.expire_all()
            return [r for r in unique if not self._has_data(db, r, start_date, end_date)]

        result = poll_until(
            check=_missing,
            is_complete=lambda missing: not missing,
            max_attempts=self._max_attempts,
            delay=self._delay,
            deadline=deadline if deadline is not None else self._deadline,
            cancel=cancel,
            **self._poll_kwargs,
        )

        return RefreshOutcome(
            complete=result.complete,
            missing=tuple(result.value),
            attempts=result.attempts,
        )

    def _conversion_requests(
            self,
            db: Session,
            requests: list[PriceRequest],
            target_currency: str,
            start_date: date | None,
            end_date: date | None,
    ) -> list[PriceRequest]:
        """Forex pairs converting stored quote currencies into the target."""
        pairs: dict[PriceRequest, None] = {}
        for request in requests:
            if request.is_forex:
                continue
            currencies = self._store.quote_currencies(
                db, request.symbol, request.asset_class, start_date, end_date
            )
            for currency in sorted(currencies):
                if currency != target_currency:
                    pairs[PriceRequest(forex_pair(currency, target_currency), AssetClass.FOREX)] = None
        return [pair for pair in pairs if pair not in requests]

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def resolve(
            self,
            db: Session,
            symbol: str,
            asset_class: AssetClass,
            target_currency: str,
            as_of: date | None = None,
            require: bool = False,
    ) -> PriceQuote | None:
        """
        Unit price of `symbol` in `target_currency`.

        Args:
            as_of: Month-end date for historical prices; None for current
            require: Raise DataUnavailableError instead of returning None

        Returns:
            PriceQuote, or None when no price is available
        """
        if symbol == target_currency:
            return PriceQuote(
                symbol=symbol,
                asset_class=asset_class,
                price=Decimal(1),
                currency=target_currency,
                as_of=as_of,
            )

        if asset_class == AssetClass.FOREX:
            quote = self._resolve_forex(db, symbol, target_currency, as_of)
        else:
            quote = self._resolve_asset(db, symbol, asset_class, target_currency, as_of)

        if quote is None:
            logger.debug(f"No price for {symbol} ({asset_class.value}) in {target_currency} at {as_of or 'current'}")
            if require:
                raise DataUnavailableError(symbol, asset_class.value, as_of)
        return quote

    def _resolve_forex(
            self,
            db: Session,
            currency: str,
            target_currency: str,
            as_of: date | None,
    ) -> PriceQuote | None:
        direct = self._lookup(db, forex_pair(currency, target_currency), AssetClass.FOREX, as_of)
        if direct is not None:
            return PriceQuote(
                symbol=currency,
                asset_class=AssetClass.FOREX,
                price=direct.price,
                currency=target_currency,
                as_of=as_of,
                source_date=direct.as_of,
            )

        reverse = self._lookup(db, forex_pair(target_currency, currency), AssetClass.FOREX, as_of)
        if reverse is None or not reverse.price:
            return None

        inverted = (Decimal(1) / reverse.price).quantize(FOREX_INVERSE_PRECISION, rounding=ROUND_HALF_UP)
        return PriceQuote(
            symbol=currency,
            asset_class=AssetClass.FOREX,
            price=inverted,
            currency=target_currency,
            as_of=as_of,
            source_date=reverse.as_of,
            is_inverted=True,
        )

    def _resolve_asset(
            self,
            db: Session,
            symbol: str,
            asset_class: AssetClass,
            target_currency: str,
            as_of: date | None,
    ) -> PriceQuote | None:
        is_fallback = False
        point = self._lookup(db, symbol, asset_class, as_of)
        if point is None:
            point = self._fallback(db, symbol, asset_class, as_of)
            is_fallback = point is not None
        if point is None:
            return None

        price = point.price
        if point.currency and point.currency != target_currency:
            fx = self._resolve_forex(db, point.currency, target_currency, as_of)
            if fx is None:
                logger.warning(
                    f"No {point.currency}/{target_currency} rate to convert {symbol} "
                    f"at {as_of or 'current'}"
                )
                return None
            price = price * fx.price

        if is_fallback:
            logger.info(f"Using fallback price for {symbol} from {point.as_of} (requested {as_of or 'current'})")

        return PriceQuote(
            symbol=symbol,
            asset_class=asset_class,
            price=price,
            currency=target_currency,
            as_of=as_of,
            source_date=point.as_of,
            is_fallback=is_fallback,
        )

    # =========================================================================
    # STORE ACCESS
    # =========================================================================

    def _lookup(self, db: Session, symbol: str, asset_class: AssetClass, as_of: date | None) -> PricePoint | None:
        """Current point, or the latest point in the month of as_of."""
        if as_of is None:
            return self._store.get_current(db, symbol, asset_class)
        return self._store.get_in_month(db, symbol, asset_class, as_of)

    def _fallback(self, db: Session, symbol: str, asset_class: AssetClass, as_of: date | None) -> PricePoint | None:
        """
        Nearest earlier historical point within the fallback window.

        For a historical request the window is the months before as_of's
        month; for a current request it ends today and includes this month.
        """
        if self._fallback_months <= 0:
            return None

        anchor = as_of if as_of is not None else self._today()
        start = month_start(add_months(anchor, -self._fallback_months))
        end = anchor if as_of is None else month_start(as_of) - timedelta(days=1)

        return self._store.get_latest_between(db, symbol, asset_class, start, end)

    def _has_data(
            self,
            db: Session,
            request: PriceRequest,
            start_date: date | None,
            end_date: date | None,
    ) -> bool:
        if not request.is_forex:
            return self._store.has_data(db, request.symbol, request.asset_class, start_date, end_date)

        # Either pair direction satisfies a forex request
        base, quote = split_forex_pair(request.symbol)
        return any(
            self._store.has_data(db, pair, AssetClass.FOREX, start_date, end_date)
            for pair in (forex_pair(base, quote), forex_pair(quote, base))
        )
