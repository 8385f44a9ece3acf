# backend/portfolio_engine/services/pricing/types.py
"""
Internal data types for price resolution.

Design Principles:
- Immutable (frozen=True) so quotes can be shared across chart builds
- Decimal for every price
- Fallback and inversion are flags on the quote, never hidden
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from portfolio_engine.models import AssetClass
from portfolio_engine.services.constants import FOREX_PAIR_SEPARATOR
from portfolio_engine.services.exceptions import UpstreamTimeoutError


def forex_pair(base: str, quote: str) -> str:
    """Pair-encoded forex symbol: forex_pair("EUR", "USD") == "EUR/USD"."""
    return f"{base}{FOREX_PAIR_SEPARATOR}{quote}"


def split_forex_pair(pair: str) -> tuple[str, str]:
    """Inverse of forex_pair; raises ValueError for a non-pair symbol."""
    base, sep, quote = pair.partition(FOREX_PAIR_SEPARATOR)
    if not sep or not base or not quote:
        raise ValueError(f"Not a forex pair: '{pair}'")
    return base, quote


@dataclass(frozen=True)
class PriceRequest:
    """
    One symbol the pricing subsystem is asked to refresh.

    Forex requests carry the pair symbol ("EUR/USD").
    """

    symbol: str
    asset_class: AssetClass

    @property
    def is_forex(self) -> bool:
        return self.asset_class == AssetClass.FOREX


@dataclass(frozen=True)
class PriceQuote:
    """
    Resolved unit price in the requested currency.

    Attributes:
        symbol: Requested symbol (not the pair)
        asset_class: Requested asset class
        price: Unit price in `currency`
        currency: Target currency of the lookup
        as_of: Requested month end (None = current)
        source_date: as_of of the stored point used (None = current point)
        is_fallback: Taken from an earlier month within the fallback window
        is_inverted: Computed as 1 / reverse forex pair
    """

    symbol: str
    asset_class: AssetClass
    price: Decimal
    currency: str
    as_of: date | None = None
    source_date: date | None = None
    is_fallback: bool = False
    is_inverted: bool = False


@dataclass(frozen=True)
class RefreshOutcome:
    """
    Partial-result indicator of a refresh poll.

    Attributes:
        complete: Every requested symbol had data before the budget ran out
        missing: Requests still without data
        attempts: Poll attempts made
    """

    complete: bool
    missing: tuple[PriceRequest, ...] = field(default_factory=tuple)
    attempts: int = 0

    @property
    def error(self) -> UpstreamTimeoutError | None:
        """The timeout this outcome represents, or None when complete."""
        if self.complete:
            return None
        return UpstreamTimeoutError(
            missing=[r.symbol for r in self.missing],
            attempts=self.attempts,
        )

    def combine(self, other: "RefreshOutcome") -> "RefreshOutcome":
        """Outcome of two consecutive polls."""
        return RefreshOutcome(
            complete=self.complete and other.complete,
            missing=self.missing + other.missing,
            attempts=self.attempts + other.attempts,
        )
