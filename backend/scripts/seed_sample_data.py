#!/usr/bin/env python3
# backend/scripts/seed_sample_data.py
"""
Seed a demo account: a small ledger, a "Risk" category split into
Growth/Defensive, and static prices so charts render without Yahoo.

    python backend/scripts/seed_sample_data.py
"""
import logging
import sys
import uuid
from datetime import date
from decimal import Decimal
from pathlib import Path

# Setup path to import portfolio_engine modules
backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from portfolio_engine.database import SessionLocal
from portfolio_engine.models import AssetClass
from portfolio_engine.services.categories.service import CategoryService
from portfolio_engine.services.holdings.service import HoldingsService
from portfolio_engine.services.pricing.store import PriceStore
from portfolio_engine.services.transactions import ConfirmResult, NewTransaction, TransactionService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_ACCOUNT_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")

DEMO_LEDGER = [
    NewTransaction(date(2024, 1, 5), "NVIDIA", "NVDA", AssetClass.STOCK, credit=Decimal("10")),
    NewTransaction(date(2024, 1, 20), "Bitcoin", "BTC", AssetClass.CRYPTO, credit=Decimal("0.25")),
    NewTransaction(date(2024, 2, 10), "NVIDIA", "NVDA", AssetClass.STOCK, debit=Decimal("3")),
    NewTransaction(date(2024, 3, 1), "Cash USD", "USD", AssetClass.FOREX, credit=Decimal("5000")),
    NewTransaction(date(2024, 3, 15), "Gold", "GC=F", AssetClass.COMMODITY, credit=Decimal("2")),
]

# (symbol, class, price, as_of, quote currency); as_of None = current price
DEMO_PRICES = [
    ("NVDA", AssetClass.STOCK, Decimal("880.00"), None, "USD"),
    ("NVDA", AssetClass.STOCK, Decimal("615.27"), date(2024, 1, 31), "USD"),
    ("NVDA", AssetClass.STOCK, Decimal("791.12"), date(2024, 2, 29), "USD"),
    ("BTC", AssetClass.CRYPTO, Decimal("61000.00"), None, "USD"),
    ("BTC", AssetClass.CRYPTO, Decimal("42580.00"), date(2024, 1, 31), "USD"),
    ("GC=F", AssetClass.COMMODITY, Decimal("2330.00"), None, "USD"),
    ("USD/EUR", AssetClass.FOREX, Decimal("0.9200"), None, None),
    ("EUR/USD", AssetClass.FOREX, Decimal("1.0850"), date(2024, 1, 31), None),
]


def seed() -> ConfirmResult | None:
    db = SessionLocal()
    transactions = TransactionService(holdings=HoldingsService())
    categories = CategoryService()
    store = PriceStore()

    try:
        logger.info("Starting database seeding...")

        result = None
        if not transactions.list_transactions(db, DEMO_ACCOUNT_ID):
            result = transactions.confirm_transactions(db, DEMO_ACCOUNT_ID, DEMO_LEDGER)
            logger.info(
                f"Created {result.created_count} transactions, "
                f"{result.holdings_count} holdings, {result.snapshot_count} snapshots"
            )
        else:
            logger.info(f"Ledger already seeded for {DEMO_ACCOUNT_ID}")

        categories.assign_holdings(db, DEMO_ACCOUNT_ID, "Risk", {
            "NVIDIA": "Growth",
            "Bitcoin": "Growth",
            "Gold": "Defensive",
            "Cash USD": "Defensive",
        })
        logger.info("Assigned holdings to category 'Risk'")

        for symbol, asset_class, price, as_of, currency in DEMO_PRICES:
            store.upsert(db, symbol, asset_class, price, as_of=as_of, currency=currency)
        db.commit()
        logger.info(f"Stored {len(DEMO_PRICES)} price points")

        return result

    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
