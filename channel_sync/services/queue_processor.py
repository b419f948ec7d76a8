"""
Sync Queue Processor

Drains pending items from data_sync_queue:
- Up to SYNC_BATCH_SIZE items per drain, oldest first
- Dispatch by entity type (reservation, room, guest)
- Each item is committed on its own; a failure increments retry_count and
  after SYNC_MAX_RETRIES attempts the item becomes terminally failed
- A drain that starts while another one is running in this process
  returns immediately without touching the queue

The guard is process-local. Across processes, the pending fetch uses
SKIP LOCKED on PostgreSQL.
"""

import json
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

import httpx
from sqlalchemy.orm import Session

from ..config import settings
from ..database import SessionLocal
from ..exceptions import QueueItemError
from ..models.channel_booking import ChannelBooking, CanonicalStatus
from ..models.channel_connection import ChannelConnection
from ..models.guest import Guest
from ..models.reservation import Reservation
from ..models.room import Room, RoomStatus
from ..models.sync_queue import SyncQueueItem, QueueStatus, QueueOperation, QueueEntityType
from ..schemas.canonical import CanonicalBooking, parse_date, parse_decimal
from ..utils.db_helpers import get_pending_with_skip_locked
from ..utils.logging_config import get_logger
from .adapters import is_channel
from .channel_sync_service import ChannelSyncService
from .reconciliation import ReconciliationEngine

logger = get_logger(__name__)

Handler = Callable[[Session, SyncQueueItem, Dict[str, Any]], None]

OCCUPYING_STATUSES = {CanonicalStatus.CONFIRMED.value, CanonicalStatus.CHECKED_IN.value}

# (minimum points, tier), highest first
LOYALTY_TIERS = [
    (1000, "Platinum"),
    (500, "Gold"),
    (200, "Silver"),
    (0, "Bronze"),
]


@dataclass
class DrainResult:
    """Summary of one drain"""
    processed: int = 0
    completed: int = 0
    retried: int = 0
    failed: int = 0
    skipped: bool = False


@dataclass
class QueueStatusSnapshot:
    pending_count: int
    failed_count: int
    is_processing: bool


def compute_loyalty(total_spent: Decimal):
    """1 point per 10 currency units spent, tier by points"""
    points = int(Decimal(total_spent) // 10)
    for threshold, tier in LOYALTY_TIERS:
        if points >= threshold:
            return points, tier
    return points, LOYALTY_TIERS[-1][1]


def _pick(payload: Dict[str, Any], snake: str, camel: str, default=None):
    """Payloads come from both Python and JS callers"""
    if snake in payload:
        return payload[snake]
    return payload.get(camel, default)


class QueueProcessor:
    """
    Owns the reentrancy guard and the handler table.
    
    Every drain opens its own session from session_factory.
    """
    
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        client: Optional[httpx.Client] = None,
        batch_size: Optional[int] = None,
        max_retries: Optional[int] = None
    ):
        self.session_factory = session_factory
        self.client = client
        self.batch_size = batch_size if batch_size is not None else settings.sync_batch_size
        self.max_retries = max_retries if max_retries is not None else settings.sync_max_retries
        if self.batch_size < 1 or self.max_retries < 1:
            raise ValueError("batch_size and max_retries must be at least 1")
        self._lock = threading.Lock()
        self.handlers: Dict[str, Handler] = {
            QueueEntityType.RESERVATION.value: self.handle_reservation,
            QueueEntityType.ROOM.value: self.handle_room,
            QueueEntityType.GUEST.value: self.handle_guest,
        }
    
    @property
    def is_processing(self) -> bool:
        return self._lock.locked()
    
    def register_handler(self, entity_type: str, handler: Handler) -> None:
        self.handlers[entity_type] = handler
    
    # ==================
    # Drain
    # ==================
    
    def drain(self) -> DrainResult:
        """Process one batch of pending items"""
        if not self._lock.acquire(blocking=False):
            logger.debug("Drain already in progress, skipping")
            return DrainResult(skipped=True)
        
        try:
            start_time = time.time()
            result = DrainResult()
            db = self.session_factory()
            try:
                items = get_pending_with_skip_locked(
                    db,
                    SyncQueueItem,
                    SyncQueueItem.status == QueueStatus.PENDING.value,
                    order_by=SyncQueueItem.created_at,
                    limit=self.batch_size
                )
                
                for item in items:
                    outcome = self._process_item(db, item)
                    if outcome is None:
                        continue
                    result.processed += 1
                    if outcome == QueueStatus.COMPLETED.value:
                        result.completed += 1
                    elif outcome == QueueStatus.FAILED.value:
                        result.failed += 1
                    else:
                        result.retried += 1
            finally:
                db.close()
            
            if result.processed:
                logger.drain_finished(
                    result.processed, result.completed, result.failed,
                    duration_ms=(time.time() - start_time) * 1000
                )
            return result
        finally:
            self._lock.release()
    
    def _process_item(self, db: Session, item: SyncQueueItem) -> Optional[str]:
        """
        Run one item's handler and persist the outcome.
        
        Returns the new status, or None when the row disappeared mid-drain.
        """
        item_id = item.id
        
        try:
            payload = self._decode_payload(item)
            handler = self.handlers.get(item.entity_type)
            if handler is None:
                raise QueueItemError(f"No handler for entity type {item.entity_type}", item_id=item_id)
            
            handler(db, item, payload)
            
            item.status = QueueStatus.COMPLETED.value
            item.processed_at = datetime.utcnow()
            item.last_error = None
            db.commit()
            return item.status
        except Exception as e:
            db.rollback()
            
            # Re-read after rollback; the handler may have left it dirty
            item = db.query(SyncQueueItem).filter(SyncQueueItem.id == item_id).first()
            if item is None:
                logger.warning(f"Sync queue item {item_id} was deleted while processing: {e}")
                return None
            
            item.retry_count = (item.retry_count or 0) + 1
            item.last_error = str(e)
            terminal = item.retry_count >= self.max_retries
            if terminal:
                item.status = QueueStatus.FAILED.value
            db.commit()
            
            logger.queue_item_failed(item_id, item.entity_type, item.retry_count, str(e), terminal)
            return item.status
    
    @staticmethod
    def _decode_payload(item: SyncQueueItem) -> Dict[str, Any]:
        if not item.payload:
            return {}
        try:
            payload = json.loads(item.payload)
        except (TypeError, ValueError) as e:
            raise QueueItemError(f"Invalid payload: {e}", item_id=item.id) from e
        if not isinstance(payload, dict):
            raise QueueItemError("Invalid payload: expected a JSON object", item_id=item.id)
        return payload
    
    # ==================
    # Status
    # ==================
    
    def get_queue_status(self) -> QueueStatusSnapshot:
        db = self.session_factory()
        try:
            pending = db.query(SyncQueueItem).filter(
                SyncQueueItem.status == QueueStatus.PENDING.value
            ).count()
            failed = db.query(SyncQueueItem).filter(
                SyncQueueItem.status == QueueStatus.FAILED.value
            ).count()
        finally:
            db.close()
        
        return QueueStatusSnapshot(
            pending_count=pending,
            failed_count=failed,
            is_processing=self.is_processing
        )
    
    # ==================
    # Handlers
    # ==================
    
    def handle_reservation(self, db: Session, item: SyncQueueItem, payload: Dict[str, Any]) -> None:
        """
        Mirror channel-sourced reservations into channel_bookings and keep
        the room's occupancy in step with the reservation status.
        """
        reservation = db.query(Reservation).filter(Reservation.id == item.entity_id).first()
        if reservation is None and not payload:
            raise QueueItemError(f"Reservation {item.entity_id} not found", item_id=item.id)
        
        status = _pick(payload, "status", "status", reservation.status if reservation else None)
        if item.operation == QueueOperation.DELETE.value:
            status = CanonicalStatus.CANCELLED.value
        source = _pick(payload, "source", "source", reservation.source if reservation else None)
        room_id = _pick(payload, "room_id", "roomId", reservation.room_id if reservation else None)
        room = db.query(Room).filter(Room.id == room_id).first() if room_id else None
        
        if is_channel(source):
            self._mirror_reservation(db, item, payload, reservation, status, source.lower(), room, room_id)
        
        if item.operation in (QueueOperation.CREATE.value, QueueOperation.UPDATE.value):
            if room is None:
                raise QueueItemError(f"Room {room_id} not found for reservation {item.entity_id}", item_id=item.id)
            room.status = RoomStatus.OCCUPIED.value if status in OCCUPYING_STATUSES else RoomStatus.AVAILABLE.value
            logger.debug(f"Room {room.id} marked {room.status} from reservation {item.entity_id}")
    
    def _mirror_reservation(
        self,
        db: Session,
        item: SyncQueueItem,
        payload: Dict[str, Any],
        reservation: Optional[Reservation],
        status: str,
        channel_name: str,
        room: Optional[Room],
        room_id: Optional[str]
    ) -> None:
        guest_name = _pick(payload, "guest_name", "guestName")
        guest_email = _pick(payload, "guest_email", "guestEmail")
        guest_id = _pick(payload, "guest_id", "guestId", reservation.guest_id if reservation else None)
        if guest_id and not (guest_name and guest_email):
            guest = db.query(Guest).filter(Guest.id == guest_id).first()
            if guest:
                guest_name = guest_name or guest.full_name
                guest_email = guest_email or guest.email
        
        existing = db.query(ChannelBooking).filter(
            ChannelBooking.channel_name == channel_name,
            ChannelBooking.external_booking_id == item.entity_id
        ).first()
        
        def current(field, fallback=None):
            return getattr(existing, field) if existing is not None else fallback
        
        booking = CanonicalBooking(
            channel_name=channel_name,
            external_booking_id=item.entity_id,
            guest_name=guest_name or current("guest_name", ""),
            guest_email=guest_email or current("guest_email", ""),
            room_type=_pick(payload, "room_type", "roomType") or (room.type if room else None) or room_id,
            check_in=parse_date(_pick(payload, "check_in_date", "checkInDate"))
                or (reservation.check_in_date if reservation else current("check_in")),
            check_out=parse_date(_pick(payload, "check_out_date", "checkOutDate"))
                or (reservation.check_out_date if reservation else current("check_out")),
            total_amount=parse_decimal(
                _pick(payload, "total_amount", "totalAmount"),
                reservation.total_amount if reservation else current("total_amount", Decimal("0"))
            ),
            status=status or CanonicalStatus.CONFIRMED.value,
            raw_payload=payload
        )
        
        engine = ReconciliationEngine(db, channel_name)
        engine.upsert_booking(booking, reservation_id=reservation.id if reservation else None)
    
    def handle_room(self, db: Session, item: SyncQueueItem, payload: Dict[str, Any]) -> None:
        """
        Push availability and/or rate for one date to every active channel
        when the payload carries them.
        """
        room = db.query(Room).filter(Room.id == item.entity_id).first()
        if room is None:
            raise QueueItemError(f"Room {item.entity_id} not found", item_id=item.id)
        
        target_date = parse_date(_pick(payload, "date", "date"))
        available_count = _pick(payload, "available_count", "availableCount")
        rate = parse_decimal(_pick(payload, "rate", "rate"))
        if target_date is None or (available_count is None and rate is None):
            return
        
        room_type = _pick(payload, "room_type", "roomType") or room.type
        connections = db.query(ChannelConnection).filter(ChannelConnection.is_active == True).all()  # noqa: E712
        service = ChannelSyncService(db, client=self.client)
        
        rejected = []
        for connection in connections:
            config = connection.to_config()
            if available_count is not None:
                if not service.push_availability(
                    connection.channel_name, config, room_type, target_date, int(available_count),
                    channel_id=connection.id
                ):
                    rejected.append(f"{connection.channel_name} availability")
            if rate is not None:
                if not service.push_rates(
                    connection.channel_name, config, room_type, target_date, rate,
                    channel_id=connection.id
                ):
                    rejected.append(f"{connection.channel_name} rates")
        
        if rejected:
            raise QueueItemError(f"Channel push rejected: {', '.join(rejected)}", item_id=item.id)
    
    def handle_guest(self, db: Session, item: SyncQueueItem, payload: Dict[str, Any]) -> None:
        """Recompute loyalty points and tier from total spend"""
        if item.operation != QueueOperation.UPDATE.value:
            return
        
        guest = db.query(Guest).filter(Guest.id == item.entity_id).first()
        if guest is None:
            raise QueueItemError(f"Guest {item.entity_id} not found", item_id=item.id)
        
        total_spent = parse_decimal(_pick(payload, "total_spent", "totalSpent"), guest.total_spent or Decimal("0"))
        points, tier = compute_loyalty(total_spent)
        
        guest.total_spent = total_spent
        guest.loyalty_points = points
        guest.loyalty_tier = tier
        logger.debug(f"Guest {guest.id} loyalty: {points} points, {tier}")
