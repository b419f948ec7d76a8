"""
Outbound Sync Queue

Append-only entry point for local mutations. Enqueueing only writes to
the database; the queue processor picks items up on its next drain.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..exceptions import QueueItemNotFoundError, QueueItemStateError
from ..models.sync_queue import SyncQueueItem, QueueStatus, QueueOperation

logger = logging.getLogger(__name__)


def enqueue_change(
    db: Session,
    entity_type: str,
    entity_id: str,
    operation: str,
    payload: Optional[Dict[str, Any]] = None
) -> SyncQueueItem:
    """Record a pending change with retry_count 0"""
    if operation not in {op.value for op in QueueOperation}:
        raise ValueError(f"Unsupported operation: {operation}")
    
    item = SyncQueueItem(
        entity_type=entity_type,
        entity_id=str(entity_id),
        operation=operation,
        payload=json.dumps(payload or {}, default=str),
        status=QueueStatus.PENDING.value,
        retry_count=0
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    
    logger.debug(f"Enqueued {operation} for {entity_type}:{entity_id} ({item.id})")
    return item


def list_failed_items(db: Session, limit: int = 100) -> List[SyncQueueItem]:
    """Items that exhausted their retries, newest first"""
    return db.query(SyncQueueItem).filter(
        SyncQueueItem.status == QueueStatus.FAILED.value
    ).order_by(SyncQueueItem.updated_at.desc()).limit(limit).all()


def requeue_failed_item(db: Session, item_id: str) -> SyncQueueItem:
    """
    Manually put a terminal item back in the queue.
    
    retry_count is left as is, so the item gets exactly one more attempt
    before it is failed again.
    """
    # populate_existing: the session may still hold a stale copy from before a drain
    item = db.query(SyncQueueItem).populate_existing().with_for_update().filter(
        SyncQueueItem.id == item_id
    ).first()
    
    if not item:
        raise QueueItemNotFoundError(item_id)
    if item.status != QueueStatus.FAILED.value:
        raise QueueItemStateError(item_id, item.status, QueueStatus.FAILED.value)
    
    item.status = QueueStatus.PENDING.value
    db.commit()
    db.refresh(item)
    
    logger.info(f"Requeued failed sync queue item {item_id}")
    return item
