# backend/portfolio_engine/models.py
import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, ForeignKey, Enum, Integer, Numeric, UniqueConstraint, Index, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class AssetClass(str, enum.Enum):
    STOCK = "STOCK"
    CRYPTO = "CRYPTO"
    COMMODITY = "COMMODITY"
    FOREX = "FOREX"  # Symbol is a currency code; prices are pairs "BASE/QUOTE"
    UNKNOWN = "UNKNOWN"


class Transaction(Base):
    """
    Ledger row. Append-only: the only mutation is setting deleted_at.

    Net quantity is credit - debit. Soft-deleted rows are ignored by every
    reconstruction.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        # "All live transactions for account X ordered by date" is the
        # query behind every holdings rebuild
        Index('ix_transaction_account_date', 'account_id', 'date'),
        Index('ix_transaction_account_asset', 'account_id', 'asset_name'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    account_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    date: Mapped[date] = mapped_column(Date)
    asset_name: Mapped[str] = mapped_column(String)
    symbol: Mapped[str] = mapped_column(String)
    unit: Mapped[str] = mapped_column(String)
    asset_class: Mapped[AssetClass] = mapped_column(Enum(AssetClass))

    # Numeric(18, 8) keeps crypto precision without binary floating point
    credit: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    debit: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)


class Holding(Base):
    """
    Current holdings projection. Rebuilt wholesale from the ledger;
    a row exists only while balance > 0.
    """
    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint('account_id', 'asset_name', name='uq_holding_account_asset'),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    asset_name: Mapped[str] = mapped_column(String)
    symbol: Mapped[str] = mapped_column(String)
    unit: Mapped[str] = mapped_column(String)
    asset_class: Mapped[AssetClass] = mapped_column(Enum(AssetClass))
    balance: Mapped[Decimal] = mapped_column(Numeric(18, 8))


class HoldingSnapshot(Base):
    """
    Month-end holdings projection. Balance may be zero or negative: it is
    the cumulative net quantity as of month_end_date.
    """
    __tablename__ = "holding_snapshots"
    __table_args__ = (
        UniqueConstraint('account_id', 'asset_name', 'month_end_date', name='uq_snapshot_account_asset_month'),
        Index('ix_snapshot_account_month', 'account_id', 'month_end_date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    asset_name: Mapped[str] = mapped_column(String)
    symbol: Mapped[str] = mapped_column(String)
    unit: Mapped[str] = mapped_column(String)
    asset_class: Mapped[AssetClass] = mapped_column(Enum(AssetClass))
    month_end_date: Mapped[date] = mapped_column(Date)
    balance: Mapped[Decimal] = mapped_column(Numeric(18, 8))


class PricePoint(Base):
    """
    Local price store fed by the pricing subsystem.

    as_of is NULL for the current/latest price and a date for historical
    monthly values. Forex symbols are pairs, e.g. "EUR/USD".
    """
    __tablename__ = "price_points"
    __table_args__ = (
        # NULL as_of rows are not covered by the unique constraint on every
        # backend; the subsystem upserts them explicitly
        UniqueConstraint('symbol', 'asset_class', 'as_of', name='uq_price_symbol_class_asof'),
        Index('ix_price_symbol_class_asof', 'symbol', 'asset_class', 'as_of'),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    symbol: Mapped[str] = mapped_column(String, index=True)
    asset_class: Mapped[AssetClass] = mapped_column(Enum(AssetClass))
    price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    as_of: Mapped[date | None] = mapped_column(Date, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)  # Quote currency, None = already in target
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class Category(Base):
    """
    Two-level category tree per account. parent_id NULL = top level;
    a subcategory's parent is always top level.
    """
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint('account_id', 'parent_id', 'name', name='uq_category_account_parent_name'),
        Index('ix_category_account_parent', 'account_id', 'parent_id'),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    name: Mapped[str] = mapped_column(String)
    parent_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, default=1)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)

    subcategories: Mapped[list["Category"]] = relationship(
        back_populates="parent",
        cascade="all, delete-orphan",
        order_by="Category.priority",
    )
    parent: Mapped["Category | None"] = relationship(back_populates="subcategories", remote_side=[id])


class HoldingsCategoryAssignment(Base):
    """Maps an asset to its most specific category (subcategory if any)."""
    __tablename__ = "holdings_categories"
    __table_args__ = (
        UniqueConstraint('account_id', 'asset_name', 'category_id', name='uq_holdings_category'),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    asset_name: Mapped[str] = mapped_column(String)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id", ondelete="CASCADE"), index=True)

    category: Mapped["Category"] = relationship()
