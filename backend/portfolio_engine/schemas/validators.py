# backend/portfolio_engine/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

This module provides:
- Ledger symbol normalization
- Date range validation
- Palette color normalization

These validators ensure consistent input handling across all schemas.
"""

import re
from datetime import date

# =============================================================================
# CONSTANTS
# =============================================================================

# Hex colors are checked against the palette in CategoryService; this only
# guards the shape
HEX_COLOR_PATTERN = re.compile(r'^#[0-9A-F]{6}$')

SYMBOL_MAX_LENGTH = 20  # forex pairs ("EUR/USD") included

MIN_VALID_DATE = date(1970, 1, 1)  # Unix epoch


# =============================================================================
# SYMBOL VALIDATION
# =============================================================================

def validate_symbol(value: str) -> str:
    """Trim and uppercase a ledger symbol; rejects empty or oversized input."""
    if not value or not value.strip():
        raise ValueError("Symbol cannot be empty")

    normalized = value.strip().upper()
    if len(normalized) > SYMBOL_MAX_LENGTH:
        raise ValueError(f"Symbol too long: max {SYMBOL_MAX_LENGTH} characters")
    return normalized


# =============================================================================
# DATE VALIDATION
# =============================================================================

def validate_date_range(
    from_date: date | None,
    to_date: date | None,
) -> tuple[date | None, date | None]:
    """
    Validate an optional date range.

    Raises:
        ValueError: If a bound predates MIN_VALID_DATE or the range is inverted
    """
    for bound in (from_date, to_date):
        if bound is not None and bound < MIN_VALID_DATE:
            raise ValueError(f"Dates cannot be before {MIN_VALID_DATE}")

    if from_date is not None and to_date is not None and from_date > to_date:
        raise ValueError("from_date must be before or equal to to_date")

    return from_date, to_date


# =============================================================================
# COLOR VALIDATION
# =============================================================================

def normalize_hex_color(value: str | None) -> str | None:
    """
    Uppercase a "#RRGGBB" color.

    Raises:
        ValueError: If the value is not a 6-digit hex color
    """
    if value is None:
        return None

    normalized = value.strip().upper()
    if not HEX_COLOR_PATTERN.match(normalized):
        raise ValueError(f"Invalid color '{value}': expected #RRGGBB")
    return normalized
