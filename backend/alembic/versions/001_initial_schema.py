"""Initial schema baseline

This migration creates the complete database schema for the Portfolio
Valuation Engine.

Tables:
    - transactions: Append-only ledger (soft delete via deleted_at)
    - holdings: Current holdings projection (balance > 0)
    - holding_snapshots: Month-end holdings projection
    - price_points: Local price store (as_of NULL = current price)
    - categories: Two-level category tree per account
    - holdings_categories: Asset → category/subcategory assignments

Revision ID: 001
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ASSET_CLASS = sa.Enum('STOCK', 'CRYPTO', 'COMMODITY', 'FOREX', 'UNKNOWN', name='assetclass')


def upgrade() -> None:
    # ==========================================================================
    # TRANSACTIONS
    # ==========================================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('account_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('asset_name', sa.String(), nullable=False),
        sa.Column('symbol', sa.String(), nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('asset_class', ASSET_CLASS, nullable=False),
        sa.Column('credit', sa.Numeric(18, 8), nullable=False),
        sa.Column('debit', sa.Numeric(18, 8), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_transaction_account_date', 'transactions', ['account_id', 'date'])
    op.create_index('ix_transaction_account_asset', 'transactions', ['account_id', 'asset_name'])

    # ==========================================================================
    # HOLDINGS PROJECTIONS
    # ==========================================================================
    op.create_table(
        'holdings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('account_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('asset_name', sa.String(), nullable=False),
        sa.Column('symbol', sa.String(), nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('asset_class', ASSET_CLASS, nullable=False),
        sa.Column('balance', sa.Numeric(18, 8), nullable=False),
        sa.UniqueConstraint('account_id', 'asset_name', name='uq_holding_account_asset'),
    )

    op.create_table(
        'holding_snapshots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('account_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('asset_name', sa.String(), nullable=False),
        sa.Column('symbol', sa.String(), nullable=False),
        sa.Column('unit', sa.String(), nullable=False),
        sa.Column('asset_class', ASSET_CLASS, nullable=False),
        sa.Column('month_end_date', sa.Date(), nullable=False),
        sa.Column('balance', sa.Numeric(18, 8), nullable=False),
        sa.UniqueConstraint(
            'account_id', 'asset_name', 'month_end_date',
            name='uq_snapshot_account_asset_month',
        ),
    )
    op.create_index('ix_snapshot_account_month', 'holding_snapshots', ['account_id', 'month_end_date'])

    # ==========================================================================
    # PRICE STORE
    # ==========================================================================
    op.create_table(
        'price_points',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('symbol', sa.String(), nullable=False, index=True),
        sa.Column('asset_class', ASSET_CLASS, nullable=False),
        sa.Column('price', sa.Numeric(18, 8), nullable=False),
        sa.Column('as_of', sa.Date(), nullable=True),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('symbol', 'asset_class', 'as_of', name='uq_price_symbol_class_asof'),
    )
    op.create_index('ix_price_symbol_class_asof', 'price_points', ['symbol', 'asset_class', 'as_of'])

    # ==========================================================================
    # CATEGORIES
    # ==========================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('account_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column(
            'parent_id', sa.Integer(),
            sa.ForeignKey('categories.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('color', sa.String(7), nullable=True),
        sa.UniqueConstraint('account_id', 'parent_id', 'name', name='uq_category_account_parent_name'),
    )
    op.create_index('ix_category_account_parent', 'categories', ['account_id', 'parent_id'])

    op.create_table(
        'holdings_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('account_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('asset_name', sa.String(), nullable=False),
        sa.Column(
            'category_id', sa.Integer(),
            sa.ForeignKey('categories.id', ondelete='CASCADE'),
            nullable=False, index=True,
        ),
        sa.UniqueConstraint('account_id', 'asset_name', 'category_id', name='uq_holdings_category'),
    )


def downgrade() -> None:
    op.drop_table('holdings_categories')
    op.drop_index('ix_category_account_parent', table_name='categories')
    op.drop_table('categories')
    op.drop_index('ix_price_symbol_class_asof', table_name='price_points')
    op.drop_table('price_points')
    op.drop_index('ix_snapshot_account_month', table_name='holding_snapshots')
    op.drop_table('holding_snapshots')
    op.drop_table('holdings')
    op.drop_index('ix_transaction_account_asset', table_name='transactions')
    op.drop_index('ix_transaction_account_date', table_name='transactions')
    op.drop_table('transactions')
    ASSET_CLASS.drop(op.get_bind(), checkfirst=True)
