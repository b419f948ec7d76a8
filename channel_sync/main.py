from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from . import __version__
from .config import settings
from .database import create_tables
from .routers import channel_sync
from .services.queue_processor import QueueProcessor
from .services.sync_scheduler import SyncQueueScheduler
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    logger.info(f"Starting channel-sync ({settings.environment})")
    
    create_tables()
    
    processor = QueueProcessor()
    app.state.queue_processor = processor
    
    scheduler = None
    if settings.sync_scheduler_enabled:
        scheduler = SyncQueueScheduler(processor)
        scheduler.start()
    else:
        logger.warning("Sync queue scheduler disabled, drains run only on demand")
    app.state.sync_scheduler = scheduler
    
    yield
    
    logger.info("Shutting down channel-sync...")
    if scheduler:
        scheduler.stop()


app = FastAPI(
    title="Channel Sync",
    description="Channel manager synchronization for property management",
    version=__version__,
    lifespan=lifespan
)

app.include_router(channel_sync.router)


@app.get("/health")
async def health():
    scheduler = getattr(app.state, "sync_scheduler", None)
    return {
        "status": "ok",
        "scheduler": scheduler.get_status() if scheduler else {"running": False}
    }
