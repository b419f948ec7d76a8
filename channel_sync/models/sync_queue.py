"""
Sync Queue Model

Durable outbox of local mutations (reservation/room/guest changes) waiting
to be propagated to channels or to trigger local side effects.

State machine:
    pending --success--> completed (terminal)
    pending --failure, retry_count < max--> pending (retry_count + 1)
    pending --failure, retry_count >= max--> failed (terminal, manual intervention)
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Integer, Index
from ..database import Base
import enum


class QueueStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class QueueOperation(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class QueueEntityType(str, enum.Enum):
    RESERVATION = "reservation"
    ROOM = "room"
    GUEST = "guest"


class SyncQueueItem(Base):
    __tablename__ = "data_sync_queue"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    
    # What changed
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=False)
    operation = Column(String(20), nullable=False)
    payload = Column(Text, nullable=True)  # JSON snapshot of the change
    
    # Processing status
    status = Column(String(20), default=QueueStatus.PENDING.value)
    retry_count = Column(Integer, default=0)
    last_error = Column(Text, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    __table_args__ = (
        Index("ix_sync_queue_status_created", "status", "created_at"),
        Index("ix_sync_queue_entity", "entity_type", "entity_id"),
    )
    
    def __repr__(self):
        return f"<SyncQueueItem {self.entity_type}:{self.entity_id} {self.operation} status={self.status}>"
