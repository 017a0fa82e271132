"""
Database initialization and connection management.
"""

import logging
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from finsight.config import settings
from finsight.ingest.schema import Base

logger = logging.getLogger(__name__)


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Get SQLAlchemy engine for database connection."""
    if database_url is None:
        database_url = settings.database_url

    kwargs = {'echo': False}
    if database_url.startswith('sqlite'):
        kwargs['connect_args'] = {'check_same_thread': False}
        if database_url in ('sqlite://', 'sqlite:///:memory:'):
            # Share the single in-memory database across sessions
            kwargs['poolclass'] = StaticPool

    engine = create_engine(database_url, **kwargs)

    if database_url.startswith('sqlite'):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def get_session(engine: Optional[Engine] = None) -> Session:
    """Get SQLAlchemy session."""
    if engine is None:
        engine = get_engine()

    SessionLocal = sessionmaker(bind=engine)
    return SessionLocal()


def init_database(database_url: Optional[str] = None, drop_existing: bool = False,
                  engine: Optional[Engine] = None) -> Engine:
    """
    Initialize database schema.

    Tables are created together with their indexes.

    Args:
        database_url: SQLAlchemy URL (uses settings.database_url if None)
        drop_existing: If True, drop all tables before creating
        engine: Existing engine to initialize instead of creating one

    Returns:
        SQLAlchemy engine
    """
    if engine is None:
        engine = get_engine(database_url)

    if drop_existing:
        logger.info("Dropping existing tables")
        Base.metadata.drop_all(engine)

    Base.metadata.create_all(engine)

    logger.info("Database initialized", extra={'database_url': str(engine.url)})
    return engine
