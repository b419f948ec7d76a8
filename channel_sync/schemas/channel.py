"""
Channel Sync Schemas

Pydantic models for channel configuration and the channel sync API.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


# ==================
# Channel Configuration
# ==================

class ChannelConfig(BaseModel):
    """Credentials and identifiers for one provider call"""
    api_key: Optional[str] = None
    api_secret: Optional[str] = None
    property_id: str = Field(..., description="Property / listing ID on the channel")
    endpoint: Optional[str] = Field(default=None, description="Overrides the provider's base URL")
    hotel_id: Optional[str] = None


# ==================
# Sync Requests
# ==================

class SyncBookingsRequest(BaseModel):
    """Pull bookings from a channel for a date window"""
    config: ChannelConfig
    start_date: date
    end_date: date
    channel_id: Optional[str] = None


class AvailabilityPushRequest(BaseModel):
    config: ChannelConfig
    room_type: str
    target_date: date
    available_count: int = Field(..., ge=0)
    channel_id: Optional[str] = None


class RatePushRequest(BaseModel):
    config: ChannelConfig
    room_type: str
    target_date: date
    rate: Decimal = Field(..., ge=0)
    channel_id: Optional[str] = None


class BookingStatusUpdateRequest(BaseModel):
    config: ChannelConfig
    status: str = Field(..., description="Canonical status")


class PushResponse(BaseModel):
    success: bool


# ==================
# Sync Queue
# ==================

class EnqueueRequest(BaseModel):
    """Record a local change for later propagation"""
    entity_type: str = Field(..., description="reservation, room, guest, ...")
    entity_id: str
    operation: str = Field(..., pattern="^(create|update|delete)$")
    payload: Dict[str, Any] = Field(default_factory=dict)


class EnqueueResponse(BaseModel):
    id: str
    status: str


class SyncQueueItemResponse(BaseModel):
    id: str
    entity_type: str
    entity_id: str
    operation: str
    status: str
    retry_count: int
    last_error: Optional[str]
    processed_at: Optional[datetime]
    created_at: datetime
    
    class Config:
        from_attributes = True


class QueueStatusResponse(BaseModel):
    pending_count: int
    failed_count: int
    is_processing: bool


class DrainResponse(BaseModel):
    processed: int
    completed: int
    retried: int
    failed: int
    skipped: bool


# ==================
# Sync Logs
# ==================

class SyncRunLogResponse(BaseModel):
    id: str
    channel_id: Optional[str]
    channel_name: str
    sync_type: str
    status: str
    records_processed: int
    records_success: int
    records_failed: int
    error_message: Optional[str]
    started_at: datetime
    completed_at: Optional[datetime]
    duration_seconds: int
    
    class Config:
        from_attributes = True


class SyncRunLogList(BaseModel):
    items: List[SyncRunLogResponse]
