#!/usr/bin/env python
"""
Sync Queue Worker

Standalone process that drains the outbound sync queue on an interval,
for deployments that run the API with SYNC_SCHEDULER_ENABLED=false.

Run with:
    python worker.py

Or with environment:
    SYNC_DRAIN_INTERVAL=10 python worker.py
"""

import os
import sys
import logging
import signal
import threading

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from channel_sync.config import settings
from channel_sync.database import create_tables
from channel_sync.services.queue_processor import QueueProcessor
from channel_sync.services.sync_scheduler import SyncQueueScheduler
from channel_sync.utils.logging_config import setup_logging

logger = logging.getLogger("worker")

SHUTDOWN = threading.Event()


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully"""
    logger.info("Received shutdown signal, finishing current drain...")
    SHUTDOWN.set()


def run_worker():
    """Start the scheduler and block until asked to stop"""
    setup_logging(level=settings.log_level, json_format=settings.log_json, include_uvicorn=False)
    
    logger.info("=" * 50)
    logger.info("Starting Sync Queue Worker")
    logger.info(f"Drain interval: {settings.sync_drain_interval_seconds}s")
    logger.info(f"Batch size: {settings.sync_batch_size}")
    logger.info(f"Max retries: {settings.sync_max_retries}")
    logger.info("=" * 50)
    
    create_tables()
    
    processor = QueueProcessor()
    scheduler = SyncQueueScheduler(processor)
    if not scheduler.start():
        raise RuntimeError("Sync queue scheduler failed to start")
    
    # Drain once right away instead of waiting a full interval
    scheduler.run_drain_job()
    
    try:
        SHUTDOWN.wait()
    finally:
        scheduler.stop(wait=True)
    
    logger.info("Worker shutdown complete")


if __name__ == "__main__":
    # Register signal handlers for graceful shutdown
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    
    try:
        run_worker()
    except KeyboardInterrupt:
        logger.info("Worker interrupted by user")
    except Exception as e:
        logger.critical(f"Worker crashed: {e}")
        sys.exit(1)
