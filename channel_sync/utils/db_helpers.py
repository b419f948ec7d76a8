"""
Database Helper Utilities for Concurrency Control

Provides:
- Database dialect detection (PostgreSQL vs SQLite)
- SKIP LOCKED queue fetches so two workers never claim the same row
"""

import logging
from typing import Type, TypeVar
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_postgres(db: Session) -> bool:
    """Check if the database is PostgreSQL"""
    bind = db.get_bind()
    return bind is not None and bind.dialect.name == 'postgresql'


def get_pending_with_skip_locked(
    db: Session,
    model: Type[T],
    filter_condition,
    order_by=None,
    limit: int = 50
) -> list:
    """
    Get pending records with skip_locked to prevent worker race conditions.
    
    Args:
        db: Database session
        model: SQLAlchemy model class
        filter_condition: Filter for pending records
        order_by: Optional ordering
        limit: Maximum records to fetch
    
    Returns:
        List of model instances (on PostgreSQL, locked until the
        transaction ends; other workers skip them)
    """
    query = db.query(model).filter(filter_condition)
    
    if order_by is not None:
        query = query.order_by(order_by)
    
    # Only apply skip_locked on PostgreSQL
    if is_postgres(db):
        query = query.with_for_update(skip_locked=True)
    
    return query.limit(limit).all()
