# backend/portfolio_engine/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The application layer (main.py) maps them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidColorError
    │   └── DuplicateNameError
    ├── NotFoundError
    │   ├── CategoryNotFoundError
    │   └── SubcategoryNotFoundError
    ├── PricingError
    │   ├── DataUnavailableError
    │   └── UpstreamTimeoutError
    └── MarketDataError
        ├── ProviderUnavailableError
        ├── TickerNotFoundError
        └── RateLimitError

Pricing errors are recoverable: the valuation path turns them into zero
values plus warnings. They are raised only when a caller explicitly asks
for a strict lookup.
"""

from datetime import date


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails (missing account id, blank currency
    or category name, negative quantities, ...).

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidColorError(ValidationError):
    """Raised when a color is not part of the chart palette."""

    def __init__(self, color: str, available: list[str]) -> None:
        self.color = color
        self.available = available
        super().__init__(
            f"Invalid color '{color}'. Available colors: {', '.join(available)}",
            field="color",
        )


class DuplicateNameError(ValidationError):
    """Raised when a category or subcategory name is already taken."""

    def __init__(self, name: str, parent_name: str | None = None) -> None:
        self.name = name
        self.parent_name = parent_name
        if parent_name:
            message = f"Subcategory '{name}' already exists in category '{parent_name}'"
        else:
            message = f"Category '{name}' already exists"
        super().__init__(message, field="name")


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Category")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class CategoryNotFoundError(NotFoundError):
    """Raised when a top-level category does not exist for the account."""

    def __init__(self, category_name: str) -> None:
        self.category_name = category_name
        super().__init__(
            f"Category '{category_name}' not found",
            resource_type="Category",
            resource_id=category_name,
        )


class SubcategoryNotFoundError(NotFoundError):
    """Raised when a subcategory does not exist under its category."""

    def __init__(self, category_name: str, subcategory_name: str) -> None:
        self.category_name = category_name
        self.subcategory_name = subcategory_name
        super().__init__(
            f"Subcategory '{subcategory_name}' not found in category '{category_name}'",
            resource_type="Subcategory",
            resource_id=subcategory_name,
        )


# =============================================================================
# PRICING ERRORS
# =============================================================================


class PricingError(ServiceError):
    """Base exception for price resolution failures."""
    pass


class DataUnavailableError(PricingError):
    """
    Raised when no price exists for a symbol, even after the fallback window.

    Attributes:
        symbol: Requested symbol
        asset_class: Asset class name
        as_of: Requested month (None = current)
    """

    def __init__(
            self,
            symbol: str,
            asset_class: str,
            as_of: date | None = None,
    ) -> None:
        self.symbol = symbol
        self.asset_class = asset_class
        self.as_of = as_of
        when = as_of.isoformat() if as_of else "current"
        super().__init__(f"No price for {symbol} ({asset_class}) at {when}")


class UpstreamTimeoutError(PricingError):
    """
    Raised when the refresh poll budget is exhausted with symbols missing.

    Attributes:
        missing: Symbols still without data
        attempts: Poll attempts made
    """

    def __init__(self, missing: list[str], attempts: int) -> None:
        self.missing = missing
        self.attempts = attempts
        super().__init__(
            f"Price refresh incomplete after {attempts} attempts; missing: {', '.join(missing)}"
        )


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================
# Raised inside the pricing subsystem only; its workers log them and never
# let them reach a valuation request.


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable
    (network timeout, server errors). Retryable.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """Raised when the provider does not know the symbol. Not retryable."""

    def __init__(self, ticker: str, provider: str) -> None:
        message = f"Ticker '{ticker}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.ticker = ticker


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded. Retryable.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidColorError",
    "DuplicateNameError",
    "NotFoundError",
    "CategoryNotFoundError",
    "SubcategoryNotFoundError",
    "PricingError",
    "DataUnavailableError",
    "UpstreamTimeoutError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
]
