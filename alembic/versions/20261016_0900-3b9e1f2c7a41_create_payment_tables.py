"""create_payment_tables

Revision ID: 3b9e1f2c7a41
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b9e1f2c7a41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'campaigns',
        sa.Column('id', sa.String(length=64), nullable=False, comment='活动ID'),
        sa.Column('title', sa.String(length=255), nullable=True, comment='标题'),
        sa.Column('total_raised', sa.Numeric(precision=15, scale=2), nullable=False, server_default='0', comment='累计筹款金额'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_campaigns'),
    )

    op.create_table(
        'donations',
        sa.Column('id', sa.String(length=64), nullable=False, comment='捐赠ID'),
        sa.Column('campaign_id', sa.String(length=64), nullable=False, comment='筹款活动ID'),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False, comment='捐赠金额（主单位）'),
        sa.Column('payment_id', sa.String(length=100), nullable=False, comment='网关支付ID'),
        sa.Column('order_id', sa.String(length=100), nullable=False, comment='网关订单ID'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, comment='创建时间'),
        sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id'], name='fk_donations_campaign_id_campaigns', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_donations'),
        # 同一笔支付至多入账一次
        sa.UniqueConstraint('payment_id', name='uq_donations_payment_id'),
    )
    op.create_index('ix_donations_campaign_id', 'donations', ['campaign_id'], unique=False)
    op.create_index('ix_donations_order_id', 'donations', ['order_id'], unique=False)
    op.create_index('ix_donations_campaign_created', 'donations', ['campaign_id', 'created_at'], unique=False)

    op.create_table(
        'events',
        sa.Column('id', sa.String(length=64), nullable=False, comment='活动ID'),
        sa.Column('title', sa.String(length=255), nullable=True, comment='标题'),
        sa.Column('seats_sold', sa.Integer(), nullable=False, server_default='0', comment='已售座位数'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_events'),
    )

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(length=64), nullable=False, comment='预订ID'),
        sa.Column('event_id', sa.String(length=64), nullable=False, comment='所属活动ID'),
        sa.Column('seats', sa.Integer(), nullable=False, comment='座位数'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending', comment='pending/confirmed'),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default=sa.false(), comment='是否已支付'),
        sa.Column('payment_id', sa.String(length=100), nullable=True, comment='网关支付ID'),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True, comment='确认时间'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], name='fk_bookings_event_id_events', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_bookings'),
    )
    op.create_index('ix_bookings_event_id', 'bookings', ['event_id'], unique=False)
    op.create_index('ix_bookings_status', 'bookings', ['status'], unique=False)
    op.create_index('ix_bookings_payment_id', 'bookings', ['payment_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_bookings_payment_id', table_name='bookings')
    op.drop_index('ix_bookings_status', table_name='bookings')
    op.drop_index('ix_bookings_event_id', table_name='bookings')
    op.drop_table('bookings')
    op.drop_table('events')

    op.drop_index('ix_donations_campaign_created', table_name='donations')
    op.drop_index('ix_donations_order_id', table_name='donations')
    op.drop_index('ix_donations_campaign_id', table_name='donations')
    op.drop_table('donations')
    op.drop_table('campaigns')
