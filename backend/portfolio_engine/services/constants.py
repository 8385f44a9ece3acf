# backend/portfolio_engine/services/constants.py
"""
Centralized constants for the portfolio engine services.

Runtime-tunable values (retry budget, fallback window) live in config.py;
the values here are business rules that do not change per deployment.

Usage:
    from portfolio_engine.services.constants import (
        CHART_PALETTE,
        NONE_LABEL,
        FOREX_INVERSE_PRECISION,
    )
"""

from decimal import Decimal


# =============================================================================
# CHART PALETTE
# =============================================================================

# Ordered palette; labels take colors by first-seen index, cycling
CHART_PALETTE: tuple[str, ...] = (
    "#FF0000",  # red
    "#00FF00",  # green
    "#0000FF",  # blue
    "#FFA500",  # orange
    "#800080",  # purple
    "#00FFFF",  # cyan
    "#008B8B",  # dark cyan
    "#008080",  # teal
    "#556B2F",  # dark olive green
    "#4682B4",  # steel blue
    "#7B68EE",  # medium slate blue
    "#CD5C5C",  # indian red
    "#DAA520",  # goldenrod
    "#A0522D",  # sienna
    "#BDB76B",  # dark khaki
    "#5F9EA0",  # cadet blue
)

# Stored category colors fall back to blue
DEFAULT_CATEGORY_COLOR: str = "#0000FF"


# =============================================================================
# CATEGORY BUCKETS
# =============================================================================

# Virtual bucket for assets without a subcategory (and for FLAT charts)
NONE_LABEL: str = "None"

# "None" sorts before every user-defined subcategory (priorities start at 1)
NONE_PRIORITY: int = 0


# =============================================================================
# PERCENTAGES
# =============================================================================

HUNDRED: Decimal = Decimal("100")

# Placeholder share for FLAT pie entries (each entry is its own group)
PIE_FLAT_SUBCATEGORY_PERCENTAGE: Decimal = Decimal("100")

# Reserved field on bar entries; not derived from any formula
BAR_SUBCATEGORY_PERCENTAGE: Decimal = Decimal("1.0")

# Percentages are reported with 4 decimal places
PERCENTAGE_PRECISION: Decimal = Decimal("0.0001")


# =============================================================================
# PRICE RESOLUTION
# =============================================================================

# Inverted forex rates (1 / reverse pair) are rounded half-up to 4 places
FOREX_INVERSE_PRECISION: Decimal = Decimal("0.0001")

# Separator for pair-encoded forex symbols ("EUR/USD")
FOREX_PAIR_SEPARATOR: str = "/"


# =============================================================================
# LEDGER UNITS
# =============================================================================

UNIT_SHARE: str = "SHARE"
UNIT_COMMODITY: str = "UNIT"
UNIT_UNKNOWN: str = "UNKNOWN"


# =============================================================================
# RATE LIMITING
# =============================================================================
# Format: "requests/period" (slowapi syntax)

# Default for read endpoints
RATE_LIMIT_DEFAULT: str = "100/minute"

# Writes (transaction confirmation, category changes)
RATE_LIMIT_WRITE: str = "30/minute"

# Chart endpoints publish price refreshes and may wait on the poll budget
RATE_LIMIT_CHARTS: str = "30/minute"

# Health checks (monitoring probes)
RATE_LIMIT_HEALTH: str = "300/minute"
