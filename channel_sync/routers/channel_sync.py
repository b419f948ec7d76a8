"""
Channel Sync API Router

Endpoints for the channel synchronization core:
- Channel operations (pull bookings, push availability/rates/status)
- Sync queue (enqueue, drain, status, failed items, requeue)
- Observability (sync run logs)

Partial syncs are returned as 200 with status "partial"; callers must read
the log's status. Only a batch that failed before reconciliation started
is an error response (502).
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import UnknownChannelError, BatchFatalError, QueueItemNotFoundError, QueueItemStateError
from ..models.channel_sync_log import ChannelSyncLog
from ..schemas.canonical import DateRange
from ..schemas.channel import (
    SyncBookingsRequest,
    AvailabilityPushRequest,
    RatePushRequest,
    BookingStatusUpdateRequest,
    PushResponse,
    EnqueueRequest,
    EnqueueResponse,
    SyncQueueItemResponse,
    QueueStatusResponse,
    DrainResponse,
    SyncRunLogResponse,
    SyncRunLogList
)
from ..services.channel_sync_service import ChannelSyncService
from ..services.queue_processor import QueueProcessor
from ..services.sync_queue import enqueue_change, list_failed_items, requeue_failed_item

router = APIRouter(prefix="/api/channel-sync", tags=["Channel Sync"])


def get_queue_processor(request: Request) -> QueueProcessor:
    """The processor owned by the app; its guard must be shared by every caller"""
    return request.app.state.queue_processor


def get_channel_sync_service(db: Session = Depends(get_db)) -> ChannelSyncService:
    return ChannelSyncService(db)


# ==================
# Channel Operations
# ==================

@router.post("/channels/{channel_name}/sync", response_model=SyncRunLogResponse)
def sync_channel_bookings(
    channel_name: str,
    sync_request: SyncBookingsRequest,
    service: ChannelSyncService = Depends(get_channel_sync_service)
):
    """Pull bookings for the window and reconcile them into storage"""
    try:
        date_range = DateRange(sync_request.start_date, sync_request.end_date)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    
    try:
        return service.sync_channel_bookings(
            channel_id=sync_request.channel_id,
            channel_name=channel_name,
            config=sync_request.config,
            date_range=date_range
        )
    except UnknownChannelError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except BatchFatalError as e:
        raise HTTPException(status_code=502, detail=e.message)


@router.post("/channels/{channel_name}/availability", response_model=PushResponse)
def push_availability(
    channel_name: str,
    push_request: AvailabilityPushRequest,
    service: ChannelSyncService = Depends(get_channel_sync_service)
):
    try:
        success = service.push_availability(
            channel_name,
            push_request.config,
            push_request.room_type,
            push_request.target_date,
            push_request.available_count,
            channel_id=push_request.channel_id
        )
    except UnknownChannelError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return PushResponse(success=success)


@router.post("/channels/{channel_name}/rates", response_model=PushResponse)
def push_rates(
    channel_name: str,
    push_request: RatePushRequest,
    service: ChannelSyncService = Depends(get_channel_sync_service)
):
    try:
        success = service.push_rates(
            channel_name,
            push_request.config,
            push_request.room_type,
            push_request.target_date,
            push_request.rate,
            channel_id=push_request.channel_id
        )
    except UnknownChannelError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return PushResponse(success=success)


@router.post(
    "/channels/{channel_name}/bookings/{external_booking_id}/status",
    response_model=PushResponse
)
def update_booking_status(
    channel_name: str,
    external_booking_id: str,
    status_request: BookingStatusUpdateRequest,
    service: ChannelSyncService = Depends(get_channel_sync_service)
):
    try:
        success = service.update_booking_status(
            channel_name,
            status_request.config,
            external_booking_id,
            status_request.status
        )
    except UnknownChannelError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return PushResponse(success=success)


# ==================
# Sync Queue
# ==================

@router.post("/queue", response_model=EnqueueResponse, status_code=status.HTTP_202_ACCEPTED)
async def enqueue(
    enqueue_request: EnqueueRequest,
    db: Session = Depends(get_db)
):
    """Record a local change; it is processed on the next drain"""
    item = enqueue_change(
        db,
        enqueue_request.entity_type,
        enqueue_request.entity_id,
        enqueue_request.operation,
        enqueue_request.payload
    )
    return EnqueueResponse(id=item.id, status=item.status)


@router.post("/queue/drain", response_model=DrainResponse)
def drain_queue(processor: QueueProcessor = Depends(get_queue_processor)):
    """Run one drain now. Returns skipped=true if a drain is already running."""
    result = processor.drain()
    return DrainResponse(
        processed=result.processed,
        completed=result.completed,
        retried=result.retried,
        failed=result.failed,
        skipped=result.skipped
    )


@router.get("/queue/status", response_model=QueueStatusResponse)
def get_queue_status(processor: QueueProcessor = Depends(get_queue_processor)):
    snapshot = processor.get_queue_status()
    return QueueStatusResponse(
        pending_count=snapshot.pending_count,
        failed_count=snapshot.failed_count,
        is_processing=snapshot.is_processing
    )


@router.get("/queue/failed", response_model=List[SyncQueueItemResponse])
async def get_failed_items(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db)
):
    return list_failed_items(db, limit=limit)


@router.post("/queue/{item_id}/requeue", response_model=SyncQueueItemResponse)
async def requeue_item(item_id: str, db: Session = Depends(get_db)):
    """Give a failed item one more attempt"""
    try:
        return requeue_failed_item(db, item_id)
    except QueueItemNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except QueueItemStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


# ==================
# Sync Logs
# ==================

@router.get("/logs", response_model=SyncRunLogList)
async def get_sync_logs(
    channel_name: Optional[str] = None,
    sync_type: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    query = db.query(ChannelSyncLog)
    
    if channel_name:
        query = query.filter(ChannelSyncLog.channel_name == channel_name)
    if sync_type:
        query = query.filter(ChannelSyncLog.sync_type == sync_type)
    
    logs = query.order_by(ChannelSyncLog.started_at.desc()).limit(limit).all()
    return SyncRunLogList(items=[SyncRunLogResponse.model_validate(log) for log in logs])
