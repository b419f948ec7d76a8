"""
Channel Sync Service

Exposed channel operations:
- Pull bookings from a channel and reconcile them into storage
- Push availability and rates (best-effort, audited in channel_sync_logs)
- Push a booking status change and mirror it locally
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ..exceptions import BatchFatalError
from ..models.channel_booking import ChannelBooking
from ..models.channel_connection import ChannelConnection
from ..models.channel_sync_log import ChannelSyncLog, SyncType, SyncRunStatus
from ..schemas.canonical import DateRange
from ..schemas.channel import ChannelConfig
from .adapters import get_channel_adapter
from .reconciliation import ReconciliationEngine

logger = logging.getLogger(__name__)


class ChannelSyncService:
    """
    Service layer over the provider adapters and the reconciliation engine.
    
    An httpx.Client can be injected; it is handed to every adapter the
    service builds.
    """
    
    def __init__(self, db: Session, client: Optional[httpx.Client] = None):
        self.db = db
        self.client = client
    
    def sync_channel_bookings(
        self,
        channel_id: Optional[str],
        channel_name: str,
        config: ChannelConfig,
        date_range: DateRange
    ) -> ChannelSyncLog:
        """
        Fetch bookings for the window and reconcile them.
        
        Raises:
            UnknownChannelError: no adapter for channel_name
            BatchFatalError: the fetch failed; an `error` log was written
        """
        adapter = get_channel_adapter(channel_name, config, client=self.client)
        engine = ReconciliationEngine(self.db, adapter.channel_name)
        started_at = datetime.utcnow()
        
        try:
            bookings = adapter.fetch_bookings(date_range)
        except Exception as e:
            message = f"Failed to fetch bookings from {adapter.display_name}: {e}"
            logger.error(message)
            log = engine.record_fatal(message, channel_id=channel_id, started_at=started_at)
            raise BatchFatalError(message, run_log=log) from e
        
        logger.info(f"Fetched {len(bookings)} bookings from {adapter.display_name}")
        log = engine.reconcile(bookings, channel_id=channel_id)
        self._touch_connection(channel_id)
        return log
    
    def push_availability(
        self,
        channel_name: str,
        config: ChannelConfig,
        room_type: str,
        target_date: date,
        available_count: int,
        channel_id: Optional[str] = None
    ) -> bool:
        adapter = get_channel_adapter(channel_name, config, client=self.client)
        started_at = datetime.utcnow()
        success = adapter.sync_availability(room_type, target_date, available_count)
        self._log_push(
            adapter.channel_name, SyncType.AVAILABILITY.value, success, started_at, channel_id,
            f"{adapter.display_name} rejected availability for {room_type} on {target_date}"
        )
        return success
    
    def push_rates(
        self,
        channel_name: str,
        config: ChannelConfig,
        room_type: str,
        target_date: date,
        rate: Decimal,
        channel_id: Optional[str] = None
    ) -> bool:
        adapter = get_channel_adapter(channel_name, config, client=self.client)
        started_at = datetime.utcnow()
        success = adapter.sync_rates(room_type, target_date, rate)
        self._log_push(
            adapter.channel_name, SyncType.RATES.value, success, started_at, channel_id,
            f"{adapter.display_name} rejected rate for {room_type} on {target_date}"
        )
        return success
    
    def update_booking_status(
        self,
        channel_name: str,
        config: ChannelConfig,
        external_booking_id: str,
        canonical_status: str
    ) -> bool:
        """Push the status; on success the local canonical booking follows"""
        adapter = get_channel_adapter(channel_name, config, client=self.client)
        success = adapter.update_booking_status(external_booking_id, canonical_status)
        
        if success:
            booking = self.db.query(ChannelBooking).filter(
                ChannelBooking.channel_name == adapter.channel_name,
                ChannelBooking.external_booking_id == external_booking_id
            ).first()
            if booking:
                booking.status = canonical_status
                self.db.commit()
        
        return success
    
    def _log_push(
        self,
        channel_name: str,
        sync_type: str,
        success: bool,
        started_at: datetime,
        channel_id: Optional[str],
        failure_message: str
    ) -> ChannelSyncLog:
        completed_at = datetime.utcnow()
        log = ChannelSyncLog(
            channel_id=channel_id,
            channel_name=channel_name,
            sync_type=sync_type,
            status=SyncRunStatus.SUCCESS.value if success else SyncRunStatus.ERROR.value,
            records_processed=1,
            records_success=1 if success else 0,
            records_failed=0 if success else 1,
            error_message=None if success else failure_message,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=int((completed_at - started_at).total_seconds())
        )
        self.db.add(log)
        self.db.commit()
        return log
    
    def _touch_connection(self, channel_id: Optional[str]) -> None:
        if not channel_id:
            return
        connection = self.db.query(ChannelConnection).filter(
            ChannelConnection.id == channel_id
        ).first()
        if connection:
            connection.last_sync_at = datetime.utcnow()
            self.db.commit()
