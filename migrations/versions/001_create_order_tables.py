"""
Alembic migration: Create order aggregate tables.

Creates the orders root table and its owned deliveries, payments and items
tables. Child rows reference orders.order_uid and are removed with their
order. Items carry a surrogate key that preserves line order.

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create orders, deliveries, payments and items tables."""
    op.create_table(
        'orders',
        sa.Column('order_uid', sa.String(50), primary_key=True),
        sa.Column('track_number', sa.String(50), nullable=False),
        sa.Column('entry', sa.Text(), nullable=False, server_default=''),
        sa.Column('locale', sa.Text(), nullable=False, server_default=''),
        sa.Column('internal_signature', sa.Text(), nullable=False, server_default=''),
        sa.Column('customer_id', sa.Text(), nullable=False, server_default=''),
        sa.Column('delivery_service', sa.Text(), nullable=False, server_default=''),
        sa.Column('shardkey', sa.Text(), nullable=False, server_default=''),
        sa.Column('sm_id', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('date_created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('oof_shard', sa.Text(), nullable=False, server_default=''),
    )

    op.create_table(
        'deliveries',
        sa.Column(
            'order_uid',
            sa.String(50),
            sa.ForeignKey('orders.order_uid', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('phone', sa.Text(), nullable=False, server_default=''),
        sa.Column('zip', sa.Text(), nullable=False, server_default=''),
        sa.Column('city', sa.Text(), nullable=False, server_default=''),
        sa.Column('address', sa.Text(), nullable=False, server_default=''),
        sa.Column('region', sa.Text(), nullable=False, server_default=''),
        sa.Column('email', sa.String(100), nullable=False),
    )

    op.create_table(
        'payments',
        sa.Column(
            'order_uid',
            sa.String(50),
            sa.ForeignKey('orders.order_uid', ondelete='CASCADE'),
            primary_key=True,
        ),
        sa.Column('transaction', sa.String(50), nullable=False),
        sa.Column('request_id', sa.Text(), nullable=False, server_default=''),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('provider', sa.Text(), nullable=False, server_default=''),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('payment_dt', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('bank', sa.Text(), nullable=False, server_default=''),
        sa.Column('delivery_cost', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('goods_total', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('custom_fee', sa.BigInteger(), nullable=False, server_default='0'),
    )

    op.create_table(
        'items',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            'order_uid',
            sa.String(50),
            sa.ForeignKey('orders.order_uid', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('chrt_id', sa.BigInteger(), nullable=False),
        sa.Column('track_number', sa.Text(), nullable=False, server_default=''),
        sa.Column('price', sa.BigInteger(), nullable=False),
        sa.Column('rid', sa.Text(), nullable=False, server_default=''),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('sale', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('size', sa.Text(), nullable=False, server_default=''),
        sa.Column('total_price', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('nm_id', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('brand', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_items_order_uid', 'items', ['order_uid'])


def downgrade() -> None:
    """Drop order aggregate tables."""
    op.drop_index('ix_items_order_uid', table_name='items')
    op.drop_table('items')
    op.drop_table('payments')
    op.drop_table('deliveries')
    op.drop_table('orders')
