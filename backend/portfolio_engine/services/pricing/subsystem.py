# backend/portfolio_engine/services/pricing/subsystem.py
"""
Pricing subsystems: receivers of fire-and-forget refresh requests.

- YahooPricingSubsystem: fetches on a background thread pool and upserts
  PricePoint rows; the caller never waits on it directly
- NullPricingSubsystem: logs and drops requests (tests, offline use)

Workers open their own sessions through session_scope(); one failing symbol
is logged and does not affect the others.
"""

import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date

from sqlalchemy.orm import sessionmaker

from portfolio_engine.database import SessionLocal, session_scope
from portfolio_engine.services.exceptions import MarketDataError
from portfolio_engine.services.pricing.store import PriceStore
from portfolio_engine.services.pricing.types import PriceRequest
from portfolio_engine.services.pricing.yahoo import YahooQuoteProvider
from portfolio_engine.utils.context import bind_correlation_id, clear_correlation_id, get_correlation_id

logger = logging.getLogger(__name__)


class NullPricingSubsystem:
    """Accepts refresh requests and does nothing with them."""

    def request_refresh(
            self,
            requests: Sequence[PriceRequest],
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> None:
        logger.debug(f"Pricing disabled; dropping refresh of {len(requests)} symbols")


class YahooPricingSubsystem:
    """
    Background price refresh backed by Yahoo Finance.

    Each request_refresh() call submits one job per symbol to a shared
    executor and returns immediately.

    Example:
        subsystem = YahooPricingSubsystem(max_workers=4)
        subsystem.request_refresh([PriceRequest("AAPL", AssetClass.STOCK)])
        ...
        subsystem.shutdown()
    """

    def __init__(
            self,
            provider: YahooQuoteProvider | None = None,
            store: PriceStore | None = None,
            session_factory: sessionmaker = SessionLocal,
            max_workers: int = 4,
            executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._provider = provider or YahooQuoteProvider()
        self._store = store or PriceStore()
        self._session_factory = session_factory
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="pricing",
        )
        logger.info(f"YahooPricingSubsystem initialized (workers={max_workers})")

    def request_refresh(
            self,
            requests: Sequence[PriceRequest],
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> list[Future]:
        """
        Schedule a fetch per request.

        Returns:
            The submitted futures (callers normally ignore them)
        """
        correlation_id = get_correlation_id()
        futures = [
            self._executor.submit(self._refresh_one, request, start_date, end_date, correlation_id)
            for request in requests
        ]
        logger.debug(f"Scheduled price refresh for {len(futures)} symbols")
        return futures

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)

    def _refresh_one(
            self,
            request: PriceRequest,
            start_date: date | None,
            end_date: date | None,
            correlation_id: str | None,
    ) -> int:
        """Fetch one symbol and upsert its points. Returns rows written."""
        bind_correlation_id(correlation_id)
        try:
            if start_date is None or end_date is None:
                series = self._provider.get_latest_price(request)
            else:
                series = self._provider.get_month_end_prices(request, start_date, end_date)

            with session_scope(self._session_factory) as db:
                for as_of, price in series.prices.items():
                    self._store.upsert(
                        db, request.symbol, request.asset_class, price,
                        as_of=as_of, currency=series.currency,
                    )

            logger.debug(f"Stored {len(series.prices)} price points for {request.symbol} ({series.currency or 'pair'})")
            return len(series.prices)

        except MarketDataError as e:
            logger.warning(f"Price refresh failed for {request.symbol}: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error refreshing {request.symbol}: {e}")
        finally:
            clear_correlation_id()
        return 0
