# Services package
from .reconciliation import ReconciliationEngine
from .channel_sync_service import ChannelSyncService
from .sync_queue import enqueue_change, list_failed_items, requeue_failed_item
from .queue_processor import QueueProcessor, DrainResult, QueueStatusSnapshot, compute_loyalty
from .sync_scheduler import SyncQueueScheduler

__all__ = [
    "ReconciliationEngine",
    "ChannelSyncService",
    "enqueue_change", "list_failed_items", "requeue_failed_item",
    "QueueProcessor", "DrainResult", "QueueStatusSnapshot", "compute_loyalty",
    "SyncQueueScheduler",
]
