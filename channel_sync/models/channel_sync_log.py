"""
Channel Sync Log Model

Append-only audit trail: one row per reconciliation batch or outbound
push attempt. Rows are written once, when the attempt finishes.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, ForeignKey, DateTime, Integer, Index
from ..database import Base
import enum


class SyncType(str, enum.Enum):
    BOOKINGS = "bookings"
    AVAILABILITY = "availability"
    RATES = "rates"


class SyncRunStatus(str, enum.Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


class ChannelSyncLog(Base):
    __tablename__ = "channel_sync_logs"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    channel_id = Column(String(36), ForeignKey("channel_connections.id", ondelete="SET NULL"), nullable=True)
    channel_name = Column(String(50), nullable=False)
    
    sync_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False)
    
    # records_success + records_failed == records_processed
    records_processed = Column(Integer, default=0)
    records_success = Column(Integer, default=0)
    records_failed = Column(Integer, default=0)
    error_message = Column(Text, nullable=True)
    
    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Integer, default=0)
    
    __table_args__ = (
        Index("ix_channel_sync_log_channel", "channel_name", "started_at"),
    )
    
    def __repr__(self):
        return f"<ChannelSyncLog {self.channel_name} {self.sync_type} status={self.status}>"
