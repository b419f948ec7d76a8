"""
Reconciliation Engine

Merges canonical bookings fetched from a channel into local storage:
- Keyed upsert on (channel_name, external_booking_id), so re-running a
  batch never duplicates rows
- Each record is committed on its own; a bad record is rolled back,
  counted and reported, and the rest of the batch carries on
- Exactly one ChannelSyncLog row per batch
"""

import json
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..exceptions import RecordReconciliationError
from ..models.channel_booking import ChannelBooking, BookingSyncStatus
from ..models.channel_sync_log import ChannelSyncLog, SyncType, SyncRunStatus
from ..schemas.canonical import CanonicalBooking
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


def serialize_raw_payload(raw_payload) -> Optional[str]:
    if raw_payload is None:
        return None
    if isinstance(raw_payload, str):
        return raw_payload
    return json.dumps(raw_payload, ensure_ascii=False, default=str)


def derive_run_status(records_processed: int, records_failed: int) -> str:
    """success when nothing failed, partial otherwise; error is reserved for batch failures"""
    if records_failed == 0:
        return SyncRunStatus.SUCCESS.value
    return SyncRunStatus.PARTIAL.value


class ReconciliationEngine:
    """
    Upserts one channel's bookings and writes the batch's sync log.
    """
    
    def __init__(self, db: Session, channel_name: str):
        self.db = db
        self.channel_name = channel_name
    
    def reconcile(
        self,
        bookings: Iterable[CanonicalBooking],
        channel_id: Optional[str] = None
    ) -> ChannelSyncLog:
        """
        Upsert every booking and return the persisted sync log.
        
        Per-record failures end up in the log as `partial`. A failure while
        materializing the batch itself is logged as `error` and re-raised.
        """
        started_at = datetime.utcnow()
        
        try:
            batch: List[CanonicalBooking] = list(bookings)
        except Exception as e:
            self.record_fatal(str(e), channel_id=channel_id, started_at=started_at)
            raise
        
        records_success = 0
        errors: List[str] = []
        
        for booking in batch:
            try:
                self._validate(booking)
                self.upsert_booking(booking, channel_id=channel_id)
                self.db.commit()
                records_success += 1
            except Exception as e:
                self.db.rollback()
                if not isinstance(e, RecordReconciliationError):
                    e_msg = RecordReconciliationError(booking.external_booking_id, str(e)).message
                else:
                    e_msg = e.message
                logger.warning(e_msg)
                errors.append(e_msg)
        
        return self._write_log(
            sync_type=SyncType.BOOKINGS.value,
            status=derive_run_status(len(batch), len(errors)),
            records_processed=len(batch),
            records_success=records_success,
            records_failed=len(errors),
            error_message="; ".join(errors) if errors else None,
            channel_id=channel_id,
            started_at=started_at
        )
    
    def upsert_booking(
        self,
        booking: CanonicalBooking,
        channel_id: Optional[str] = None,
        reservation_id: Optional[str] = None
    ) -> Tuple[ChannelBooking, bool]:
        """
        Insert or overwrite one booking. Does not commit.
        
        Returns:
            Tuple of (row, is_new)
        """
        channel_name = booking.channel_name or self.channel_name
        
        existing = self.db.query(ChannelBooking).filter(
            ChannelBooking.channel_name == channel_name,
            ChannelBooking.external_booking_id == booking.external_booking_id
        ).first()
        
        values = {
            "guest_name": booking.guest_name,
            "guest_email": booking.guest_email,
            "room_type": booking.room_type,
            "check_in": booking.check_in,
            "check_out": booking.check_out,
            "total_amount": booking.total_amount,
            "commission": booking.commission,
            "status": booking.status,
            "raw_data": serialize_raw_payload(booking.raw_payload),
            "sync_status": BookingSyncStatus.SYNCED.value,
        }
        
        if existing:
            for key, value in values.items():
                setattr(existing, key, value)
            if channel_id:
                existing.channel_id = channel_id
            if reservation_id:
                existing.reservation_id = reservation_id
            self.db.flush()
            return existing, False
        
        row = ChannelBooking(
            channel_name=channel_name,
            external_booking_id=booking.external_booking_id,
            channel_id=channel_id,
            reservation_id=reservation_id,
            **values
        )
        self.db.add(row)
        self.db.flush()
        return row, True
    
    def record_fatal(
        self,
        error_message: str,
        channel_id: Optional[str] = None,
        sync_type: str = SyncType.BOOKINGS.value,
        started_at: Optional[datetime] = None
    ) -> ChannelSyncLog:
        """Write the `error` log for a batch that failed before any record was processed"""
        self.db.rollback()
        return self._write_log(
            sync_type=sync_type,
            status=SyncRunStatus.ERROR.value,
            records_processed=0,
            records_success=0,
            records_failed=0,
            error_message=error_message,
            channel_id=channel_id,
            started_at=started_at or datetime.utcnow()
        )
    
    def _validate(self, booking: CanonicalBooking) -> None:
        if not booking.external_booking_id:
            raise RecordReconciliationError(None, "missing external booking id")
        if booking.check_in is None or booking.check_out is None:
            raise RecordReconciliationError(booking.external_booking_id, "missing stay dates")
        if booking.check_out < booking.check_in:
            raise RecordReconciliationError(booking.external_booking_id, "check-out before check-in")
        if booking.total_amount is None:
            raise RecordReconciliationError(booking.external_booking_id, "missing total amount")
        if not booking.status:
            raise RecordReconciliationError(booking.external_booking_id, "missing status")
    
    def _write_log(
        self,
        sync_type: str,
        status: str,
        records_processed: int,
        records_success: int,
        records_failed: int,
        error_message: Optional[str],
        channel_id: Optional[str],
        started_at: datetime
    ) -> ChannelSyncLog:
        completed_at = datetime.utcnow()
        duration = completed_at - started_at
        
        log = ChannelSyncLog(
            channel_id=channel_id,
            channel_name=self.channel_name,
            sync_type=sync_type,
            status=status,
            records_processed=records_processed,
            records_success=records_success,
            records_failed=records_failed,
            error_message=error_message,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=int(duration.total_seconds())
        )
        self.db.add(log)
        self.db.commit()
        self.db.refresh(log)
        
        logger.sync_run_finished(
            self.channel_name, sync_type, status,
            records_processed, records_failed,
            duration_ms=duration.total_seconds() * 1000
        )
        return log
