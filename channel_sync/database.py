import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, **kwargs):
    """Create an engine, handling the SQLite check_same_thread special case"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    
    return create_engine(
        database_url,
        connect_args=connect_args,
        echo=settings.database_echo,
        pool_pre_ping=True,
        **kwargs
    )


engine = build_engine(settings.sqlalchemy_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """Create all tables in the database"""
    # Make sure every model is registered on Base.metadata
    from . import models  # noqa: F401
    
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ready")
