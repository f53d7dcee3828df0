"""Initial schema - creates all marketplace tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_type = sa.Enum('ADMIN', 'SELLER', 'BUYER', name='user_type')
subscription_type = sa.Enum('NORMAL', 'PREMIUM', name='subscription_type')
order_status = sa.Enum('PENDING', 'PROCESSING', 'SHIPPED', 'DELIVERED', 'CANCELLED', name='order_status')
payment_method = sa.Enum('CREDIT_CARD', 'DEBIT_CARD', 'BANK_TRANSFER', 'CASH', 'PAYPAL', name='payment_method')
payment_status = sa.Enum('PENDING', 'PAID', 'FAILED', 'REFUNDED', name='payment_status')
certification_status = sa.Enum('PENDING', 'VERIFIED', 'REJECTED', name='certification_status')
change_type = sa.Enum('CREATE', 'UPDATE', 'DELETE', name='change_type')

ENUMS = [
    user_type,
    subscription_type,
    order_status,
    payment_method,
    payment_status,
    certification_status,
    change_type,
]


def _timestamp(name: str = 'created_at') -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('user_type', user_type, nullable=False),
        sa.Column('subscription_type', subscription_type, nullable=False),
        sa.Column('profile_image', sa.String(), nullable=True),
        sa.Column('primary_location_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('refresh_token', sa.String(), nullable=True),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        _timestamp(),
        _timestamp('updated_at'),
        sa.UniqueConstraint('phone'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'locations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('address_line1', sa.String(length=255), nullable=False),
        sa.Column('address_line2', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=False),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        _timestamp(),
        _timestamp('updated_at'),
    )
    op.create_index('ix_locations_user_id', 'locations', ['user_id'])
    op.create_index('ix_locations_city', 'locations', ['city'])
    op.create_index('ix_locations_department', 'locations', ['department'])

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=True),
        _timestamp(),
        _timestamp('updated_at'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('ix_categories_parent_id', 'categories', ['parent_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('base_price', sa.Float(), nullable=False),
        sa.Column('stock_quantity', sa.Integer(), nullable=False),
        sa.Column('unit_measure', sa.String(length=50), nullable=False),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('origin_location_id', sa.Integer(), sa.ForeignKey('locations.id'), nullable=True),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _timestamp(),
        _timestamp('updated_at'),
        sa.CheckConstraint('base_price > 0', name='ck_products_base_price_positive'),
        sa.CheckConstraint('stock_quantity >= 0', name='ck_products_stock_non_negative'),
    )
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_seller_id', 'products', ['seller_id'])
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_origin_location_id', 'products', ['origin_location_id'])

    op.create_table(
        'product_images',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('image_url', sa.String(), nullable=False),
        sa.Column('alt_text', sa.String(length=255), nullable=True),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        _timestamp(),
    )
    op.create_index('ix_product_images_product_id', 'product_images', ['product_id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('buyer_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', order_status, nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('payment_method', payment_method, nullable=False),
        sa.Column('payment_status', payment_status, nullable=False),
        sa.Column('tracking_number', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cancel_reason', sa.Text(), nullable=True),
        _timestamp(),
        _timestamp('updated_at'),
    )
    op.create_index('ix_orders_buyer_user_id', 'orders', ['buyer_user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='SET NULL'), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False),
        _timestamp(),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

    op.create_table(
        'user_certifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('certification_type', sa.String(length=50), nullable=False),
        sa.Column('certification_name', sa.String(length=200), nullable=True),
        sa.Column('certificate_number', sa.String(length=100), nullable=True),
        sa.Column('issued_date', sa.Date(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=False),
        sa.Column('status', certification_status, nullable=False),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('verifier_admin_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        _timestamp('updated_at'),
        sa.UniqueConstraint('user_id', 'certification_type', name='uq_user_certifications_user_type'),
    )
    op.create_index('ix_user_certifications_user_id', 'user_certifications', ['user_id'])
    op.create_index('ix_user_certifications_certification_type', 'user_certifications', ['certification_type'])
    op.create_index('ix_user_certifications_status', 'user_certifications', ['status'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='SET NULL'), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('is_verified_purchase', sa.Boolean(), nullable=False),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        _timestamp(),
        _timestamp('updated_at'),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_reviews_user_product'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_user_id', 'reviews', ['user_id'])
    op.create_index('ix_reviews_product_id', 'reviews', ['product_id'])

    op.create_table(
        'user_notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('recipient_user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('related_entity_type', sa.String(length=50), nullable=True),
        sa.Column('related_entity_id', sa.Integer(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        _timestamp(),
    )
    op.create_index('ix_user_notifications_recipient_user_id', 'user_notifications', ['recipient_user_id'])
    op.create_index('ix_user_notifications_is_read', 'user_notifications', ['is_read'])

    op.create_table(
        'product_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('change_type', change_type, nullable=False),
        sa.Column('change_field', sa.String(length=50), nullable=True),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('additional_info', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_product_history_product_id', 'product_history', ['product_id'])
    op.create_index('ix_product_history_user_id', 'product_history', ['user_id'])
    op.create_index('ix_product_history_change_type', 'product_history', ['change_type'])
    op.create_index('ix_product_history_change_field', 'product_history', ['change_field'])
    op.create_index('ix_product_history_timestamp', 'product_history', ['timestamp'])


def downgrade() -> None:
    for table in (
        'product_history',
        'user_notifications',
        'reviews',
        'user_certifications',
        'order_items',
        'orders',
        'product_images',
        'products',
        'categories',
        'locations',
        'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in ENUMS:
        enum.drop(bind, checkfirst=True)
