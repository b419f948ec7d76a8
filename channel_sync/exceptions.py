"""
Channel sync error taxonomy.

Per-record and per-item errors are recovered locally and turned into data
(SyncRunLog rows, queue item status). Only batch-level failures that happen
before per-record processing starts propagate to the caller.
"""

from typing import Optional


class ChannelSyncError(Exception):
    """Base class for all channel sync errors"""
    
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnknownChannelError(ChannelSyncError):
    """No adapter is registered under the requested channel name"""
    
    def __init__(self, channel_name: str):
        self.channel_name = channel_name
        super().__init__(f"Unknown channel: {channel_name}")


class ChannelTransportError(ChannelSyncError):
    """Outbound call to a provider failed (non-2xx, network error, timeout)"""
    
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecordReconciliationError(ChannelSyncError):
    """A single booking could not be upserted"""
    
    def __init__(self, external_booking_id: Optional[str], reason: str):
        self.external_booking_id = external_booking_id
        self.reason = reason
        super().__init__(f"Failed to sync booking {external_booking_id}: {reason}")


class QueueItemError(ChannelSyncError):
    """A handler failed while processing one sync queue item"""
    
    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message)
        self.item_id = item_id


class QueueItemNotFoundError(QueueItemError):
    """No sync queue item with the given id"""
    
    def __init__(self, item_id: str):
        super().__init__(f"Sync queue item {item_id} not found", item_id=item_id)


class QueueItemStateError(QueueItemError):
    """The item is not in a state that allows the requested transition"""
    
    def __init__(self, item_id: str, status: str, expected: str):
        super().__init__(f"Sync queue item {item_id} is {status}, not {expected}", item_id=item_id)
        self.status = status


class BatchFatalError(ChannelSyncError):
    """A sync batch failed before per-record processing began"""
    
    def __init__(self, message: str, run_log=None):
        super().__init__(message)
        self.run_log = run_log
