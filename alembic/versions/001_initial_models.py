"""initial_models

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('uuid', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('image', sa.String(1024), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        sa.Column('user_role', sa.String(50), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('uuid', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('idx_user_status', 'users', ['status'])
    op.create_index('idx_user_role', 'users', ['user_role'])

    # Create categories table
    op.create_table(
        'categories',
        sa.Column('uuid', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(1024), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('uuid', name='pk_categories'),
        sa.UniqueConstraint('slug', name='uq_categories_slug'),
    )

    # Create creator_profiles table
    op.create_table(
        'creator_profiles',
        sa.Column('uuid', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.String(1024), nullable=True),
        sa.Column('website', sa.String(1024), nullable=True),
        sa.Column('social_links', sa.JSON(), nullable=True),
        sa.Column('stripe_account_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('uuid', name='pk_creator_profiles'),
        sa.ForeignKeyConstraint(['user_id'], ['users.uuid'], name='fk_creator_profiles_user_id_users'),
        sa.UniqueConstraint('user_id', name='uq_creator_profiles_user_id'),
    )

    # Create video_assets table
    op.create_table(
        'video_assets',
        sa.Column('uuid', sa.String(36), nullable=False),
        sa.Column('storage_key', sa.String(1024), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('width', sa.Integer(), nullable=True),
        sa.Column('height', sa.Integer(), nullable=True),
        sa.Column('thumbnail_key', sa.String(1024), nullable=True),
        sa.Column('preview_key', sa.String(1024), nullable=True),
        sa.Column('is_processed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('uploaded_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('uuid', name='pk_video_assets'),
        sa.ForeignKeyConstraint(['uploaded_by'], ['users.uuid'], name='fk_video_assets_uploaded_by_users'),
        sa.UniqueConstraint('storage_key', name='uq_video_assets_storage_key'),
    )

    # Create products table
    op.create_table(
        'products',
        sa.Column('uuid', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('short_description', sa.String(300), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('product_type', sa.String(50), nullable=False, server_default='lesson'),
        sa.Column('level', sa.String(50), nullable=False, server_default='all_levels'),
        sa.Column('status', sa.String(50), nullable=False, server_default='draft'),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('creator_id', sa.String(36), nullable=False),
        sa.Column('category_id', sa.String(36), nullable=True),
        sa.Column('video_asset_id', sa.String(36), nullable=True),
        sa.Column('thumbnail_url', sa.String(1024), nullable=True),
        sa.Column('preview_url', sa.String(1024), nullable=True),
        sa.Column('total_duration', sa.Integer(), nullable=True),
        sa.Column('lesson_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('uuid', name='pk_products'),
        sa.ForeignKeyConstraint(['creator_id'], ['creator_profiles.uuid'], name='fk_products_creator_id_creator_profiles'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.uuid'], name='fk_products_category_id_categories'),
        sa.ForeignKeyConstraint(['video_asset_id'], ['video_assets.uuid'], name='fk_products_video_asset_id_video_assets'),
        sa.UniqueConstraint('slug', name='uq_products_slug'),
        sa.CheckConstraint('price >= 99', name='ck_products_price_minimum'),
    )
    op.create_index('idx_product_status', 'products', ['status'])
    op.create_index('idx_product_creator_id', 'products', ['creator_id'])
    op.create_index('idx_product_category_id', 'products', ['category_id'])

    # Create purchases table; (user_id, product_id) is the upsert conflict target
    op.create_table(
        'purchases',
        sa.Column('uuid', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('product_id', sa.String(36), nullable=False),
        sa.Column('stripe_session_id', sa.String(255), nullable=True),
        sa.Column('stripe_payment_intent_id', sa.String(255), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('platform_fee', sa.Integer(), nullable=False),
        sa.Column('creator_payout', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('uuid', name='pk_purchases'),
        sa.ForeignKeyConstraint(['user_id'], ['users.uuid'], name='fk_purchases_user_id_users'),
        sa.ForeignKeyConstraint(['product_id'], ['products.uuid'], name='fk_purchases_product_id_products'),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_purchases_user_id_product_id'),
        sa.CheckConstraint('amount = platform_fee + creator_payout', name='ck_purchases_amount_split'),
    )
    op.create_index('idx_purchase_product_id', 'purchases', ['product_id'])
    op.create_index('idx_purchase_stripe_session_id', 'purchases', ['stripe_session_id'])
    op.create_index('idx_purchase_stripe_payment_intent_id', 'purchases', ['stripe_payment_intent_id'])
    op.create_index('idx_purchase_status', 'purchases', ['status'])


def downgrade() -> None:
    op.drop_table('purchases')
    op.drop_table('products')
    op.drop_table('video_assets')
    op.drop_table('creator_profiles')
    op.drop_table('categories')
    op.drop_table('users')
