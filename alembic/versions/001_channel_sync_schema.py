"""Channel sync schema

Revision ID: 001_channel_sync_schema
Revises:
Create Date: 2026-10-18

Creates:
1. guests, rooms, reservations - the PMS tables queue handlers touch
2. channel_connections - per-channel credentials
3. channel_bookings - canonical bookings, unique per channel + external id
4. channel_sync_logs - one row per sync batch or push
5. data_sync_queue - outbound sync queue
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_channel_sync_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ===========================================
    # 1. PMS TABLES
    # ===========================================
    op.create_table(
        'guests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('total_spent', sa.Numeric(12, 2), server_default='0'),
        sa.Column('loyalty_points', sa.Integer, server_default='0'),
        sa.Column('loyalty_tier', sa.String(50), server_default='Bronze'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    
    op.create_table(
        'rooms',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('number', sa.String(20), nullable=False, unique=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('floor', sa.Integer, nullable=True),
        sa.Column('base_rate', sa.Numeric(10, 2), server_default='0'),
        sa.Column('status', sa.String(30), server_default='available'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    
    op.create_table(
        'reservations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('guest_id', sa.String(36), sa.ForeignKey('guests.id', ondelete='SET NULL'), nullable=True),
        sa.Column('room_id', sa.String(36), sa.ForeignKey('rooms.id', ondelete='SET NULL'), nullable=True),
        sa.Column('confirmation_number', sa.String(50), nullable=True, unique=True),
        sa.Column('check_in_date', sa.Date, nullable=False),
        sa.Column('check_out_date', sa.Date, nullable=False),
        sa.Column('status', sa.String(30), server_default='confirmed'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('source', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    
    # ===========================================
    # 2. CHANNEL CONNECTIONS
    # ===========================================
    op.create_table(
        'channel_connections',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('channel_name', sa.String(50), nullable=False),
        sa.Column('api_key', sa.Text, nullable=True),
        sa.Column('api_secret', sa.Text, nullable=True),
        sa.Column('property_id', sa.String(100), nullable=False),
        sa.Column('hotel_id', sa.String(100), nullable=True),
        sa.Column('endpoint', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('last_sync_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_channel_connection_name', 'channel_connections', ['channel_name'])
    
    # ===========================================
    # 3. CHANNEL BOOKINGS
    # ===========================================
    op.create_table(
        'channel_bookings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('channel_id', sa.String(36), sa.ForeignKey('channel_connections.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reservation_id', sa.String(36), sa.ForeignKey('reservations.id', ondelete='SET NULL'), nullable=True),
        sa.Column('channel_name', sa.String(50), nullable=False),
        sa.Column('external_booking_id', sa.String(255), nullable=False),
        sa.Column('guest_name', sa.String(200), nullable=True),
        sa.Column('guest_email', sa.String(255), nullable=True),
        sa.Column('room_type', sa.String(100), nullable=True),
        sa.Column('check_in', sa.Date, nullable=True),
        sa.Column('check_out', sa.Date, nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), server_default='0'),
        sa.Column('commission', sa.Numeric(10, 2), nullable=True),
        sa.Column('status', sa.String(30), server_default='confirmed'),
        sa.Column('sync_status', sa.String(20), server_default='synced'),
        sa.Column('raw_data', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('channel_name', 'external_booking_id', name='uq_channel_booking_external'),
    )
    op.create_index('ix_channel_booking_reservation', 'channel_bookings', ['reservation_id'])
    
    # ===========================================
    # 4. CHANNEL SYNC LOGS
    # ===========================================
    op.create_table(
        'channel_sync_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('channel_id', sa.String(36), sa.ForeignKey('channel_connections.id', ondelete='SET NULL'), nullable=True),
        sa.Column('channel_name', sa.String(50), nullable=False),
        sa.Column('sync_type', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('records_processed', sa.Integer, server_default='0'),
        sa.Column('records_success', sa.Integer, server_default='0'),
        sa.Column('records_failed', sa.Integer, server_default='0'),
        sa.Column('error_message', sa.Text, nullable=True),
        sa.Column('started_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime, nullable=True),
        sa.Column('duration_seconds', sa.Integer, server_default='0'),
    )
    op.create_index('ix_channel_sync_log_channel', 'channel_sync_logs', ['channel_name', 'started_at'])
    
    # ===========================================
    # 5. DATA SYNC QUEUE
    # ===========================================
    op.create_table(
        'data_sync_queue',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(36), nullable=False),
        sa.Column('operation', sa.String(20), nullable=False),
        sa.Column('payload', sa.Text, nullable=True),
        sa.Column('status', sa.String(20), server_default='pending'),
        sa.Column('retry_count', sa.Integer, server_default='0'),
        sa.Column('last_error', sa.Text, nullable=True),
        sa.Column('processed_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_sync_queue_status_created', 'data_sync_queue', ['status', 'created_at'])
    op.create_index('ix_sync_queue_entity', 'data_sync_queue', ['entity_type', 'entity_id'])


def downgrade() -> None:
    op.drop_index('ix_sync_queue_entity', table_name='data_sync_queue')
    op.drop_index('ix_sync_queue_status_created', table_name='data_sync_queue')
    op.drop_table('data_sync_queue')
    op.drop_index('ix_channel_sync_log_channel', table_name='channel_sync_logs')
    op.drop_table('channel_sync_logs')
    op.drop_index('ix_channel_booking_reservation', table_name='channel_bookings')
    op.drop_table('channel_bookings')
    op.drop_index('ix_channel_connection_name', table_name='channel_connections')
    op.drop_table('channel_connections')
    op.drop_table('reservations')
    op.drop_table('rooms')
    op.drop_table('guests')
