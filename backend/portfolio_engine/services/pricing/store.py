# backend/portfolio_engine/services/pricing/store.py
"""
Local price store (price_points table).

Read side is used by PriceResolver for lookups and by the refresh poll;
write side by the pricing subsystem. Current prices have as_of NULL and are
upserted by hand because NULLs are distinct in unique constraints.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_engine.models import AssetClass, PricePoint
from portfolio_engine.utils.date_utils import month_end, month_start

logger = logging.getLogger(__name__)


class PriceStore:
    """Queries and upserts against price_points."""

    # =========================================================================
    # READS
    # =========================================================================

    def get_current(self, db: Session, symbol: str, asset_class: AssetClass) -> PricePoint | None:
        """The current (as_of NULL) point, if any."""
        return db.scalars(
            select(PricePoint)
            .where(
                PricePoint.symbol == symbol,
                PricePoint.asset_class == asset_class,
                PricePoint.as_of.is_(None),
            )
            .order_by(PricePoint.updated_at.desc())
            .limit(1)
        ).first()

    def get_latest_between(
            self,
            db: Session,
            symbol: str,
            asset_class: AssetClass,
            start_date: date,
            end_date: date,
    ) -> PricePoint | None:
        """Most recent historical point with start_date <= as_of <= end_date."""
        if start_date > end_date:
            return None
        return db.scalars(
            select(PricePoint)
            .where(
                PricePoint.symbol == symbol,
                PricePoint.asset_class == asset_class,
                PricePoint.as_of.is_not(None),
                PricePoint.as_of >= start_date,
                PricePoint.as_of <= end_date,
            )
            .order_by(PricePoint.as_of.desc())
            .limit(1)
        ).first()

    def get_in_month(self, db: Session, symbol: str, asset_class: AssetClass, day: date) -> PricePoint | None:
        """Most recent historical point inside the calendar month of `day`."""
        return self.get_latest_between(db, symbol, asset_class, month_start(day), month_end(day))

    def has_data(
            self,
            db: Session,
            symbol: str,
            asset_class: AssetClass,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> bool:
        """
        Whether a refresh for this symbol has landed.

        Without a range this means a current point; with a range, at least one
        historical point inside it.
        """
        if start_date is None or end_date is None:
            return self.get_current(db, symbol, asset_class) is not None
        return self.get_latest_between(db, symbol, asset_class, start_date, end_date) is not None

    def quote_currencies(
            self,
            db: Session,
            symbol: str,
            asset_class: AssetClass,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> set[str]:
        """
        Currencies the stored points of a symbol are quoted in.

        Same scope as has_data: the current point without a range, else the
        historical points inside it. Points without a currency are ignored.
        """
        query = select(PricePoint.currency).where(
            PricePoint.symbol == symbol,
            PricePoint.asset_class == asset_class,
            PricePoint.currency.is_not(None),
        )
        if start_date is None or end_date is None:
            query = query.where(PricePoint.as_of.is_(None))
        else:
            query = query.where(PricePoint.as_of >= start_date, PricePoint.as_of <= end_date)
        return set(db.scalars(query.distinct()).all())

    # =========================================================================
    # WRITES
    # =========================================================================

    def upsert(
            self,
            db: Session,
            symbol: str,
            asset_class: AssetClass,
            price: Decimal,
            as_of: date | None = None,
            currency: str | None = None,
    ) -> PricePoint:
        """
        Insert or update one point. Does not commit.

        Args:
            as_of: None for the current price, else the month-end date
            currency: Quote currency of a non-forex price, if known
        """
        if as_of is None:
            point = self.get_current(db, symbol, asset_class)
        else:
            point = db.scalars(
                select(PricePoint).where(
                    PricePoint.symbol == symbol,
                    PricePoint.asset_class == asset_class,
                    PricePoint.as_of == as_of,
                )
            ).first()

        if point is None:
            point = PricePoint(
                symbol=symbol,
                asset_class=asset_class,
                price=price,
                as_of=as_of,
                currency=currency,
            )
            db.add(point)
        else:
            point.price = price
            point.currency = currency
            point.updated_at = datetime.now(timezone.utc)

        db.flush()
        return point
