# backend/tests/services/test_yahoo_provider.py
"""
Tests for the YahooQuoteProvider.

This module tests:
- Symbol mapping per asset class
- Latest close and month-end sampling of daily closes
- Quote currency detection
- Error handling and classification
- Retry behavior on transient failures

Note: These tests mock the yfinance library to avoid actual API calls.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from portfolio_engine.models import AssetClass
from portfolio_engine.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
    TickerNotFoundError,
)
from portfolio_engine.services.pricing.types import PriceRequest
from portfolio_engine.services.pricing.yahoo import YahooQuoteProvider

AAPL = PriceRequest("AAPL", AssetClass.STOCK)


def make_history(closes: dict[str, float]) -> pd.DataFrame:
    """Daily history frame shaped like yfinance's Ticker.history()."""
    return pd.DataFrame(
        {"Close": list(closes.values())},
        index=pd.to_datetime(list(closes.keys())),
    )


def mock_ticker(closes: dict[str, float], currency: str | None = "USD") -> MagicMock:
    ticker = MagicMock()
    ticker.history.return_value = make_history(closes)
    ticker.history_metadata = {"currency": currency} if currency else {}
    return ticker


@pytest.fixture
def provider() -> YahooQuoteProvider:
    """Provider with instant retries."""
    provider = YahooQuoteProvider()
    provider.RETRY_MIN_WAIT = 0
    provider.RETRY_MAX_WAIT = 0
    provider.RETRY_MULTIPLIER = 0
    return provider


# =============================================================================
# SYMBOL MAPPING TESTS
# =============================================================================

class TestSymbolMapping:
    """Tests for request → Yahoo ticker mapping."""

    @pytest.mark.parametrize("request_,expected", [
        (PriceRequest("AAPL", AssetClass.STOCK), "AAPL"),
        (PriceRequest("btc", AssetClass.CRYPTO), "BTC-USD"),
        (PriceRequest("EUR/USD", AssetClass.FOREX), "EURUSD=X"),
        (PriceRequest("GC=F", AssetClass.COMMODITY), "GC=F"),
        (PriceRequest(" vwce.de ", AssetClass.UNKNOWN), "VWCE.DE"),
    ])
    def test_to_yahoo_symbol(self, request_, expected):
        assert YahooQuoteProvider.to_yahoo_symbol(request_) == expected

    def test_forex_without_pair_rejected(self):
        with pytest.raises(ValueError):
            YahooQuoteProvider.to_yahoo_symbol(PriceRequest("EUR", AssetClass.FOREX))

    def test_provider_name(self):
        assert YahooQuoteProvider().name == "yahoo"


# =============================================================================
# PRICE FETCH TESTS (with mocked yfinance)
# =============================================================================

class TestGetLatestPrice:
    """Tests for get_latest_price."""

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_returns_most_recent_close(self, mock_yf, provider):
        mock_yf.Ticker.return_value = mock_ticker({"2024-03-13": 170.5, "2024-03-14": 172.25})

        series = provider.get_latest_price(AAPL)

        assert series.prices == {None: Decimal("172.25")}
        assert series.currency == "USD"
        mock_yf.Ticker.assert_called_once_with("AAPL")

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_empty_history_is_not_found(self, mock_yf, provider):
        mock_yf.Ticker.return_value = mock_ticker({})

        with pytest.raises(TickerNotFoundError) as exc_info:
            provider.get_latest_price(AAPL)

        assert exc_info.value.ticker == "AAPL"
        assert exc_info.value.provider == "yahoo"

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_nan_closes_skipped(self, mock_yf, provider):
        mock_yf.Ticker.return_value = mock_ticker({"2024-03-13": 170.0, "2024-03-14": float("nan")})

        series = provider.get_latest_price(AAPL)

        assert series.prices == {None: Decimal("170.0")}


class TestGetMonthEndPrices:
    """Tests for get_month_end_prices."""

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_keeps_last_close_per_month(self, mock_yf, provider):
        mock_yf.Ticker.return_value = mock_ticker({
            "2024-01-30": 10.0,
            "2024-01-31": 11.0,
            "2024-02-28": 12.0,
            "2024-02-29": 13.0,
            "2024-03-01": 14.0,
        })

        series = provider.get_month_end_prices(AAPL, date(2024, 1, 1), date(2024, 3, 31))

        assert series.prices == {
            date(2024, 1, 31): Decimal("11.0"),
            date(2024, 2, 29): Decimal("13.0"),
            date(2024, 3, 31): Decimal("14.0"),
        }

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_last_trading_day_keyed_by_month_end(self, mock_yf, provider):
        # 2024-03-29 is the last trading day of March
        mock_yf.Ticker.return_value = mock_ticker({"2024-03-29": 20.0})

        series = provider.get_month_end_prices(AAPL, date(2024, 3, 1), date(2024, 3, 31))

        assert list(series.prices) == [date(2024, 3, 31)]

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_end_date_is_inclusive(self, mock_yf, provider):
        ticker = mock_ticker({"2024-01-31": 1.0})
        mock_yf.Ticker.return_value = ticker

        provider.get_month_end_prices(AAPL, date(2024, 1, 1), date(2024, 1, 31))

        kwargs = ticker.history.call_args.kwargs
        assert kwargs["start"] == "2024-01-01"
        assert kwargs["end"] == "2024-02-01"

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_no_history_gives_empty_series(self, mock_yf, provider):
        mock_yf.Ticker.return_value = mock_ticker({})

        series = provider.get_month_end_prices(AAPL, date(2024, 1, 1), date(2024, 1, 31))

        assert series.prices == {}
        assert series.currency is None


class TestQuoteCurrency:
    """Tests for the currency reported with each series."""

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_stock_uses_history_metadata(self, mock_yf, provider):
        mock_yf.Ticker.return_value = mock_ticker({"2024-03-14": 1.0}, currency="eur")

        assert provider.get_latest_price(AAPL).currency == "EUR"

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_crypto_is_usd(self, mock_yf, provider):
        mock_yf.Ticker.return_value = mock_ticker({"2024-03-14": 1.0}, currency=None)

        series = provider.get_latest_price(PriceRequest("BTC", AssetClass.CRYPTO))

        assert series.currency == "USD"

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_forex_has_no_currency(self, mock_yf, provider):
        mock_yf.Ticker.return_value = mock_ticker({"2024-03-14": 1.08}, currency="USD")

        series = provider.get_latest_price(PriceRequest("EUR/USD", AssetClass.FOREX))

        assert series.currency is None

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_malformed_currency_ignored(self, mock_yf, provider):
        mock_yf.Ticker.return_value = mock_ticker({"2024-03-14": 1.0}, currency="GBp-ish")

        assert provider.get_latest_price(AAPL).currency is None


# =============================================================================
# ERROR CLASSIFICATION AND RETRY TESTS
# =============================================================================

class TestErrorHandling:
    """Tests for error classification and retries."""

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_not_found_is_not_retried(self, mock_yf, provider):
        mock_yf.Ticker.side_effect = Exception("No data found, symbol may be delisted")

        with pytest.raises(TickerNotFoundError):
            provider.get_latest_price(AAPL)

        assert mock_yf.Ticker.call_count == 1

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_rate_limit_retried_then_raised(self, mock_yf, provider):
        mock_yf.Ticker.side_effect = Exception("Too many requests")

        with pytest.raises(RateLimitError) as exc_info:
            provider.get_latest_price(AAPL)

        assert exc_info.value.provider == "yahoo"
        assert mock_yf.Ticker.call_count == provider.MAX_RETRY_ATTEMPTS

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_network_error_is_unavailable(self, mock_yf, provider):
        mock_yf.Ticker.side_effect = Exception("Connection timeout")

        with pytest.raises(ProviderUnavailableError) as exc_info:
            provider.get_latest_price(AAPL)

        assert "Connection timeout" in exc_info.value.reason
        assert mock_yf.Ticker.call_count == provider.MAX_RETRY_ATTEMPTS

    @patch('portfolio_engine.services.pricing.yahoo.yf')
    def test_recovers_after_transient_failure(self, mock_yf, provider):
        mock_yf.Ticker.side_effect = [
            Exception("Connection reset"),
            mock_ticker({"2024-03-14": 99.0}),
        ]

        series = provider.get_latest_price(AAPL)

        assert series.prices == {None: Decimal("99.0")}
        assert mock_yf.Ticker.call_count == 2
