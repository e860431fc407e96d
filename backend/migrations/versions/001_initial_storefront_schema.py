"""
Alembic migration: initial storefront schema.

Creates products, reviews, orders, order_items, contact_messages and
notification_logs. Enum columns are stored as constrained strings so the
same schema runs on PostgreSQL and SQLite.

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Revision identifiers, used by Alembic
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_DOCUMENT = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')
ORDER_STATUSES = ('pending', 'confirmed', 'processing', 'shipped', 'delivered', 'cancelled')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """
    Create the storefront tables, their constraints and indexes.
    """
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(220), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(32), nullable=False),
        sa.Column('target_audience', sa.String(16), nullable=False),
        sa.Column('image', sa.String(1024), nullable=False),
        sa.Column('images', JSON_DOCUMENT, nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('colors', JSON_DOCUMENT, nullable=False),
        sa.Column('sizes', JSON_DOCUMENT, nullable=False),
        sa.Column('tags', JSON_DOCUMENT, nullable=False),
        sa.Column('brand', sa.String(120), nullable=True),
        sa.Column('rating', sa.Float(), nullable=False, server_default='0'),
        sa.Column('review_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
        sa.CheckConstraint(
            'discount_price IS NULL OR (discount_price >= 0 AND discount_price < price)',
            name='ck_products_discount_below_price',
        ),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='ck_products_rating_range'),
    )
    op.create_index('ix_products_slug', 'products', ['slug'])
    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_target_audience', 'products', ['target_audience'])
    op.create_index('ix_products_is_featured', 'products', ['is_featured'])
    op.create_index('ix_products_is_active', 'products', ['is_active'])
    op.create_index('ix_products_created_at', 'products', ['created_at'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(200), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('user_name', sa.String(255), nullable=False),
        sa.Column('user_email', sa.String(320), nullable=False),
        sa.Column('user_avatar', sa.String(1024), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_product_id', 'reviews', ['product_id'])
    op.create_index('ix_reviews_user_id', 'reviews', ['user_id'])
    op.create_index('ix_reviews_created_at', 'reviews', ['created_at'])

    statuses = ', '.join(f"'{status}'" for status in ORDER_STATUSES)
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(40), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('user_name', sa.String(255), nullable=False),
        sa.Column('user_email', sa.String(320), nullable=False),
        sa.Column('shipping_address', JSON_DOCUMENT, nullable=False),
        sa.Column('payment_method', sa.String(10), nullable=False, server_default='cod'),
        sa.Column('special_instructions', sa.Text(), nullable=False, server_default=''),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('delivery_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('shipping_details', JSON_DOCUMENT, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number'),
        sa.CheckConstraint(f'status IN ({statuses})', name='ck_orders_status'),
        sa.CheckConstraint('subtotal >= 0', name='ck_orders_subtotal_non_negative'),
        sa.CheckConstraint('delivery_fee >= 0', name='ck_orders_delivery_fee_non_negative'),
        sa.CheckConstraint(
            'abs(total - (subtotal + delivery_fee)) < 0.005',
            name='ck_orders_total',
        ),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'])
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_index('ix_orders_status_updated_at', 'orders', ['status', 'updated_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('product_id', sa.String(64), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('image', sa.String(1024), nullable=True),
        sa.Column('color', sa.String(64), nullable=True),
        sa.Column('size', sa.String(32), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.CheckConstraint('quantity >= 1', name='ck_order_items_quantity_positive'),
        sa.CheckConstraint('price >= 0', name='ck_order_items_price_non_negative'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'contact_messages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', sa.String(10), nullable=False, server_default='unread'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_contact_messages_user_id', 'contact_messages', ['user_id'])
    op.create_index('ix_contact_messages_created_at', 'contact_messages', ['created_at'])

    op.create_table(
        'notification_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=True),
        sa.Column('order_number', sa.String(40), nullable=False),
        sa.Column('template_status', sa.String(20), nullable=False),
        sa.Column('recipient', sa.String(320), nullable=False),
        sa.Column('subject', sa.String(500), nullable=False),
        sa.Column('delivery_status', sa.String(10), nullable=False),
        sa.Column('message_id', sa.String(255), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notification_logs_order_id', 'notification_logs', ['order_id'])
    op.create_index('ix_notification_logs_order_number', 'notification_logs', ['order_number'])


def downgrade() -> None:
    """
    Drop every storefront table.
    """
    op.drop_table('notification_logs')
    op.drop_table('contact_messages')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('reviews')
    op.drop_table('products')
