"""
Structured Logging Configuration

Provides JSON-formatted logging with:
- Entity context (queue item, booking, channel)
- Duration metrics for sync runs and drains
- Structured output for log aggregation
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional, Any, Dict


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.
    Outputs logs in JSON format for easy parsing by log aggregators.
    """
    
    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        # Add location info
        log_data["module"] = record.module
        log_data["function"] = record.funcName
        log_data["line"] = record.lineno
        
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        
        if hasattr(record, 'extra_data'):
            log_data["data"] = record.extra_data
        
        if hasattr(record, 'duration_ms'):
            log_data["duration_ms"] = record.duration_ms
        
        if hasattr(record, 'entity_type'):
            log_data["entity_type"] = record.entity_type
        if hasattr(record, 'entity_id'):
            log_data["entity_id"] = record.entity_id
        
        return json.dumps(log_data, ensure_ascii=False, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """
    Logger adapter that adds structured context to log messages.
    """
    
    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get('extra', {})
        extra.update(self.extra)
        kwargs['extra'] = extra
        return msg, kwargs
    
    def log_with_context(
        self,
        level: int,
        msg: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        duration_ms: Optional[float] = None,
        **extra_data
    ):
        """Log with additional structured context."""
        extra = {}
        if entity_type:
            extra['entity_type'] = entity_type
        if entity_id:
            extra['entity_id'] = entity_id
        if duration_ms is not None:
            extra['duration_ms'] = duration_ms
        if extra_data:
            extra['extra_data'] = extra_data
        
        self.log(level, msg, extra=extra)
    
    def sync_run_finished(self, channel_name: str, sync_type: str, status: str,
                          processed: int, failed: int, duration_ms: float = None):
        """Log the outcome of one reconciliation batch or push."""
        level = logging.INFO if status == "success" else logging.WARNING
        self.log_with_context(
            level,
            f"{channel_name} {sync_type} sync finished: {status} ({processed - failed}/{processed})",
            entity_type="channel",
            entity_id=channel_name,
            duration_ms=duration_ms,
            sync_type=sync_type,
            status=status,
            records_processed=processed,
            records_failed=failed
        )
    
    def queue_item_failed(self, item_id: str, entity_type: str, retry_count: int, error: str, terminal: bool):
        """Log a failed queue item attempt."""
        self.log_with_context(
            logging.ERROR if terminal else logging.WARNING,
            f"Sync queue item {item_id} failed (attempt {retry_count}): {error}",
            entity_type=entity_type,
            entity_id=item_id,
            retry_count=retry_count,
            terminal=terminal
        )
    
    def drain_finished(self, processed: int, completed: int, failed: int, duration_ms: float):
        """Log a drain summary."""
        self.log_with_context(
            logging.INFO,
            f"Sync queue drained: {completed}/{processed} completed, {failed} failed",
            duration_ms=duration_ms,
            processed=processed,
            completed=completed,
            failed=failed
        )


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    include_uvicorn: bool = True
) -> None:
    """
    Configure application logging.
    
    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON format (True for production)
        include_uvicorn: Also configure uvicorn loggers
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    
    # Use JSON formatter for production, simple for development
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
    
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]
    
    logging.getLogger("channel_sync").setLevel(log_level)
    
    if include_uvicorn:
        for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
            logging.getLogger(logger_name).handlers = [handler]
    
    # Reduce noise from third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for the given module."""
    return StructuredLogger(logging.getLogger(name), {})
