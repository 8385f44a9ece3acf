# backend/portfolio_engine/services/pricing/yahoo.py
"""
Yahoo Finance quote provider.

Fetches latest and month-end closing prices through the yfinance library.

Key features:
- Symbol mapping (our symbols → Yahoo tickers)
- Retry with exponential backoff on transient failures (tenacity)
- Month-end sampling of daily closes
- Quote currency reported with every result so the resolver can convert

Symbol mapping:
    STOCK / COMMODITY / UNKNOWN: as-is ("AAPL", "GC=F")
    CRYPTO: "<SYMBOL>-USD" ("BTC" → "BTC-USD")
    FOREX: pair without separator plus "=X" ("EUR/USD" → "EURUSD=X")

Quote currency:
    CRYPTO: always USD (the ticker is quoted against USD)
    FOREX: None, the pair symbol already states it
    Others: the currency in Yahoo's history metadata, if any

Limitations:
- Rate limits (not officially documented, but exist)
- Data may be delayed (15-20 minutes for some markets)
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Callable, TypeVar

import yfinance as yf
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from portfolio_engine.models import AssetClass
from portfolio_engine.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
    TickerNotFoundError,
)
from portfolio_engine.services.pricing.types import PriceRequest, split_forex_pair
from portfolio_engine.utils.date_utils import month_end

logger = logging.getLogger(__name__)

T = TypeVar('T')

CRYPTO_QUOTE_CURRENCY = "USD"


@dataclass(frozen=True)
class QuoteSeries:
    """
    Prices fetched for one request.

    Attributes:
        prices: as_of → close; the single key None holds a latest price
        currency: Quote currency of every price, None when unknown or forex
    """

    prices: dict[date | None, Decimal]
    currency: str | None = None


class YahooQuoteProvider:
    """
    Latest and month-end prices from Yahoo Finance.

    Retry Behavior:
        - Retries on ProviderUnavailableError and RateLimitError
        - Does NOT retry on TickerNotFoundError (permanent failure)
        - Exponential backoff: 1s → 2s → 4s, at most 3 attempts
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    # Days of daily history scanned for the latest close
    LATEST_LOOKBACK_DAYS: int = 7

    @property
    def name(self) -> str:
        return "yahoo"

    # =========================================================================
    # SYMBOL MAPPING
    # =========================================================================

    @staticmethod
    def to_yahoo_symbol(request: PriceRequest) -> str:
        """
        Map a price request to its Yahoo ticker.

        Example:
            >>> YahooQuoteProvider.to_yahoo_symbol(PriceRequest("EUR/USD", AssetClass.FOREX))
            'EURUSD=X'
        """
        symbol = request.symbol.strip().upper()
        if request.asset_class == AssetClass.CRYPTO:
            return f"{symbol}-{CRYPTO_QUOTE_CURRENCY}"
        if request.asset_class == AssetClass.FOREX:
            base, quote = split_forex_pair(symbol)
            return f"{base}{quote}=X"
        return symbol

    # =========================================================================
    # PRICES
    # =========================================================================

    def get_latest_price(self, request: PriceRequest) -> QuoteSeries:
        """
        Most recent daily close, keyed by None.

        Raises:
            TickerNotFoundError: If Yahoo returns no data for the ticker
            ProviderUnavailableError: If Yahoo Finance is unavailable after retries
        """
        return self._execute_with_retry(self._fetch_latest_price, request)

    def get_month_end_prices(
            self,
            request: PriceRequest,
            start_date: date,
            end_date: date,
    ) -> QuoteSeries:
        """
        Last close of every calendar month in [start_date, end_date].

        Returns:
            QuoteSeries keyed by month-end date; months without trading
            days are absent
        """
        return self._execute_with_retry(self._fetch_month_end_prices, request, start_date, end_date)

    def _fetch_latest_price(self, request: PriceRequest) -> QuoteSeries:
        today = date.today()
        closes, currency = self._fetch_closes(request, today - timedelta(days=self.LATEST_LOOKBACK_DAYS), today)
        if not closes:
            raise TickerNotFoundError(ticker=self.to_yahoo_symbol(request), provider=self.name)
        return QuoteSeries(prices={None: closes[max(closes)]}, currency=currency)

    def _fetch_month_end_prices(
            self,
            request: PriceRequest,
            start_date: date,
            end_date: date,
    ) -> QuoteSeries:
        closes, currency = self._fetch_closes(request, start_date, end_date)

        # Daily closes are keyed by trading day; keep the last one per month
        month_ends: dict[date | None, Decimal] = {}
        for day in sorted(closes):
            month_ends[month_end(day)] = closes[day]
        return QuoteSeries(prices=month_ends, currency=currency)

    def _fetch_closes(
            self,
            request: PriceRequest,
            start_date: date,
            end_date: date,
    ) -> tuple[dict[date, Decimal], str | None]:
        """Daily closes keyed by date, plus the quote currency."""
        yahoo_symbol = self.to_yahoo_symbol(request)
        logger.debug(f"Fetching closes for {yahoo_symbol}: {start_date} to {end_date}")

        try:
            yf_ticker = yf.Ticker(yahoo_symbol)

            # Yahoo Finance end date is exclusive, so add 1 day
            df = yf_ticker.history(
                start=start_date.isoformat(),
                end=(end_date + timedelta(days=1)).isoformat(),
                interval="1d",
                auto_adjust=False,
            )
        except Exception as e:
            error_str = str(e).lower()
            if "not found" in error_str or "no data" in error_str:
                raise TickerNotFoundError(ticker=yahoo_symbol, provider=self.name)
            if "rate limit" in error_str or "too many requests" in error_str:
                raise RateLimitError(provider=self.name)

            logger.error(f"Yahoo Finance error for {yahoo_symbol}: {e}")
            raise ProviderUnavailableError(provider=self.name, reason=str(e))

        closes: dict[date, Decimal] = {}
        if df is None or df.empty:
            return closes, None

        for idx, row in df.iterrows():
            price_date = idx.date() if hasattr(idx, 'date') else idx
            close = self._to_decimal(row.get('Close'))
            if close is None:
                logger.warning(f"Skipping {yahoo_symbol} {price_date}: missing close price")
                continue
            closes[price_date] = close

        return closes, self._quote_currency(request, yf_ticker)

    @staticmethod
    def _quote_currency(request: PriceRequest, yf_ticker: Any) -> str | None:
        if request.asset_class == AssetClass.FOREX:
            return None
        if request.asset_class == AssetClass.CRYPTO:
            return CRYPTO_QUOTE_CURRENCY

        metadata = yf_ticker.history_metadata or {}
        currency = metadata.get("currency")
        if not isinstance(currency, str) or len(currency) != 3:
            return None
        return currency.upper()

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return Decimal(str(value)).quantize(Decimal("0.00000001"))
        except (TypeError, ValueError):
            return None

    # =========================================================================
    # RETRY
    # =========================================================================

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()
