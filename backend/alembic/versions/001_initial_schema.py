"""Initial schema baseline

This migration creates the complete database schema for the Portfolio Tracker.

Tables:
    - assets: Instruments held in the portfolio, keyed by ticker
    - transactions: BUY / SELL / WITHDRAW ledger entries
    - transaction_benchmarks: Index prices observed when a BUY was recorded
    - benchmark_prices: One EUR index price per benchmark and index key
    - portfolio_snapshots: Portfolio value per 15-minute bucket
    - snapshot_index_values: Theoretical units and index price per snapshot

Revision ID: 001
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ==========================================================================
    # ASSETS
    # ==========================================================================
    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('ticker', sa.String(32), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('asset_type', sa.Enum('STOCK', 'ETF', 'CRYPTO', name='assettype'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # TRANSACTIONS
    # ==========================================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('asset_id', sa.Integer(), sa.ForeignKey('assets.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('transaction_type', sa.Enum('BUY', 'SELL', 'WITHDRAW', name='transactiontype'), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column('quantity', sa.Numeric(18, 8), nullable=False),
        sa.Column('unit_price', sa.Numeric(18, 8), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='EUR'),
        sa.Column('fees', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('exchange_rate', sa.Numeric(18, 8), nullable=False, server_default='1'),
        sa.Column('total_eur', sa.Numeric(18, 8), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_index('ix_transaction_asset_date', 'transactions', ['asset_id', 'date'])

    # ==========================================================================
    # TRANSACTION BENCHMARKS
    # ==========================================================================
    op.create_table(
        'transaction_benchmarks',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('transactions.id', ondelete='CASCADE'), nullable=False, unique=True, index=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'benchmark_prices',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('benchmark_id', sa.Integer(), sa.ForeignKey('transaction_benchmarks.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('index_key', sa.String(32), nullable=False),
        sa.Column('price', sa.Numeric(18, 8), nullable=False),
        sa.UniqueConstraint('benchmark_id', 'index_key', name='uq_benchmark_price_index'),
    )

    # ==========================================================================
    # SNAPSHOTS
    # ==========================================================================
    op.create_table(
        'portfolio_snapshots',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False, unique=True, index=True),
        sa.Column('total_value', sa.Numeric(18, 8), nullable=False),
        sa.Column('total_invested', sa.Numeric(18, 8), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'snapshot_index_values',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('snapshot_id', sa.Integer(), sa.ForeignKey('portfolio_snapshots.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('index_key', sa.String(32), nullable=False),
        sa.Column('price', sa.Numeric(18, 8), nullable=False),
        sa.Column('units', sa.Numeric(18, 8), nullable=False),
        sa.UniqueConstraint('snapshot_id', 'index_key', name='uq_snapshot_index'),
    )


def downgrade() -> None:
    op.drop_table('snapshot_index_values')
    op.drop_table('portfolio_snapshots')
    op.drop_table('benchmark_prices')
    op.drop_table('transaction_benchmarks')
    op.drop_index('ix_transaction_asset_date', table_name='transactions')
    op.drop_table('transactions')
    op.drop_table('assets')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS transactiontype')
    op.execute('DROP TYPE IF EXISTS assettype')
