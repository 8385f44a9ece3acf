#!/usr/bin/env python3
# backend/init_db.py
"""
Local database bootstrap.

Creates any missing tables, then rebuilds the holdings projections of every
account that already has ledger rows (e.g. after restoring a transactions
dump). Holdings and snapshots are derived data, so rebuilding is always safe.

    python backend/init_db.py

PostgreSQL deployments create the schema with the alembic migrations in
alembic/versions; this script only fills in what create_all can.
"""
import logging
import sys
import uuid
from pathlib import Path

# Make 'portfolio_engine' importable when run from the repository root
sys.path.insert(0, str(Path(__file__).parent))

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from portfolio_engine.database import SessionLocal, engine
from portfolio_engine.models import Base, Transaction
from portfolio_engine.services.holdings.service import HoldingsService
from portfolio_engine.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def init_db(bind: Engine = engine, session_factory: sessionmaker = SessionLocal) -> list[uuid.UUID]:
    """
    Create tables and rebuild holdings for accounts with live ledger rows.

    Returns:
        Account ids whose projections were rebuilt
    """
    Base.metadata.create_all(bind=bind)
    logger.info(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")

    holdings = HoldingsService()
    with session_factory() as db:
        account_ids = list(db.scalars(
            select(Transaction.account_id)
            .where(Transaction.deleted_at.is_(None))
            .distinct()
            .order_by(Transaction.account_id)
        ).all())
        for account_id in account_ids:
            holdings.rebuild_all(db, account_id)

    logger.info(f"Rebuilt holdings for {len(account_ids)} accounts")
    return account_ids


if __name__ == "__main__":
    setup_logging()
    init_db()
