"""add_purchase_refunds

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 16:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'purchase_refunds',
        sa.Column('uuid', sa.String(36), nullable=False),
        sa.Column('purchase_id', sa.String(36), nullable=False),
        sa.Column('stripe_charge_id', sa.String(255), nullable=True),
        sa.Column('stripe_payment_intent_id', sa.String(255), nullable=False),
        sa.Column('stripe_session_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('uuid', name='pk_purchase_refunds'),
        sa.ForeignKeyConstraint(['purchase_id'], ['purchases.uuid'], name='fk_purchase_refunds_purchase_id_purchases'),
        sa.UniqueConstraint('stripe_payment_intent_id', name='uq_purchase_refunds_stripe_payment_intent_id'),
    )
    op.create_index('idx_purchase_refund_session_id', 'purchase_refunds', ['stripe_session_id'])


def downgrade() -> None:
    op.drop_index('idx_purchase_refund_session_id', table_name='purchase_refunds')
    op.drop_table('purchase_refunds')
