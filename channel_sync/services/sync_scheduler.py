"""
Sync Queue Scheduler

Runs QueueProcessor.drain() every SYNC_DRAIN_INTERVAL seconds.

Uses APScheduler's BackgroundScheduler: drains do blocking database and
HTTP I/O, so they run on the scheduler's worker thread rather than the
event loop. Overlapping firings are coalesced and the job never runs
twice at once; the processor's own guard covers manual drains.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import settings
from .queue_processor import QueueProcessor

logger = logging.getLogger(__name__)

DRAIN_JOB_ID = "sync_queue_drain"


class SyncQueueScheduler:
    """Owns the interval job for one QueueProcessor"""
    
    def __init__(self, processor: QueueProcessor, interval_seconds: Optional[int] = None):
        self.processor = processor
        self.interval_seconds = interval_seconds or settings.sync_drain_interval_seconds
        self._scheduler: Optional[BackgroundScheduler] = None
        self.last_run_at: Optional[datetime] = None
    
    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running
    
    def run_drain_job(self) -> None:
        """Job function called by the scheduler"""
        self.last_run_at = datetime.utcnow()
        try:
            self.processor.drain()
        except Exception as e:
            logger.error(f"Scheduled sync queue drain failed: {e}")
    
    def start(self) -> bool:
        """
        Start draining on the configured interval.
        
        Returns:
            True if the scheduler is running after the call
        """
        if self.is_running:
            logger.warning("Sync queue scheduler is already running")
            return True
        
        try:
            self._scheduler = BackgroundScheduler(timezone="UTC")
            self._scheduler.add_job(
                self.run_drain_job,
                IntervalTrigger(seconds=self.interval_seconds),
                id=DRAIN_JOB_ID,
                name=f"Sync queue drain every {self.interval_seconds}s",
                coalesce=True,
                max_instances=1,
                replace_existing=True
            )
            self._scheduler.start()
            logger.info(f"Sync queue scheduler started (every {self.interval_seconds}s)")
            return True
        except Exception as e:
            logger.error(f"Failed to start sync queue scheduler: {e}")
            self._scheduler = None
            return False
    
    def stop(self, wait: bool = True) -> bool:
        """Remove the job and shut the scheduler down"""
        if self._scheduler is None:
            logger.warning("Sync queue scheduler is not running")
            return True
        
        try:
            if self._scheduler.get_job(DRAIN_JOB_ID):
                self._scheduler.remove_job(DRAIN_JOB_ID)
            if self._scheduler.running:
                self._scheduler.shutdown(wait=wait)
            self._scheduler = None
            logger.info("Sync queue scheduler stopped")
            return True
        except Exception as e:
            logger.error(f"Failed to stop sync queue scheduler: {e}")
            return False
    
    def get_status(self) -> Dict:
        status = {
            "running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "next_run": None,
            "last_run": self.last_run_at.isoformat() if self.last_run_at else None,
        }
        if self.is_running:
            job = self._scheduler.get_job(DRAIN_JOB_ID)
            if job and job.next_run_time:
                status["next_run"] = job.next_run_time.isoformat()
        return status
