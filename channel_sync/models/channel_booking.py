"""
Channel Booking Model

Canonical, normalized copy of a reservation seen on an external channel.
One row per (channel_name, external_booking_id); the sync engine updates
rows in place and never deletes them.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, Numeric, ForeignKey, DateTime, Date, Index, UniqueConstraint
from ..database import Base
import enum


class CanonicalStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    NO_SHOW = "no-show"


class BookingSyncStatus(str, enum.Enum):
    SYNCED = "synced"
    PENDING = "pending"


class ChannelBooking(Base):
    __tablename__ = "channel_bookings"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    
    # Context
    channel_id = Column(String(36), ForeignKey("channel_connections.id", ondelete="SET NULL"), nullable=True)
    reservation_id = Column(String(36), ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True)
    
    # Identity on the channel
    channel_name = Column(String(50), nullable=False)
    external_booking_id = Column(String(255), nullable=False)
    
    # Booking details
    guest_name = Column(String(200), nullable=True)
    guest_email = Column(String(255), nullable=True)
    room_type = Column(String(100), nullable=True)  # Provider's room identifier
    check_in = Column(Date, nullable=True)
    check_out = Column(Date, nullable=True)
    total_amount = Column(Numeric(12, 2), default=0)
    commission = Column(Numeric(10, 2), nullable=True)
    status = Column(String(30), default=CanonicalStatus.CONFIRMED.value)
    
    sync_status = Column(String(20), default=BookingSyncStatus.SYNCED.value)
    raw_data = Column(Text, nullable=True)  # JSON of the provider's original payload
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    __table_args__ = (
        UniqueConstraint('channel_name', 'external_booking_id', name='uq_channel_booking_external'),
        Index("ix_channel_booking_reservation", "reservation_id"),
    )
    
    def __repr__(self):
        return f"<ChannelBooking {self.channel_name}:{self.external_booking_id} status={self.status}>"
