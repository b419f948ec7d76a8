# Models package
from .guest import Guest
from .room import Room, RoomStatus
from .reservation import Reservation
from .channel_connection import ChannelConnection
from .channel_booking import ChannelBooking, CanonicalStatus, BookingSyncStatus
from .channel_sync_log import ChannelSyncLog, SyncType, SyncRunStatus
from .sync_queue import SyncQueueItem, QueueStatus, QueueOperation, QueueEntityType

__all__ = [
    "Guest", "Room", "RoomStatus", "Reservation",
    "ChannelConnection",
    "ChannelBooking", "CanonicalStatus", "BookingSyncStatus",
    "ChannelSyncLog", "SyncType", "SyncRunStatus",
    "SyncQueueItem", "QueueStatus", "QueueOperation", "QueueEntityType"
]
