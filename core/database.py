"""
Database session management with SQLAlchemy async
"""

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
import logging

logger = logging.getLogger(__name__)


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for the run ledger and the SQL sheet store"""
    logger.debug(f"Creating database engine for {database_url.split('://', 1)[0]}")
    return create_async_engine(
        database_url,
        echo=False,
        poolclass=NullPool,  # One short-lived process per run
        future=True
    )


def create_session_maker(db_engine: AsyncEngine) -> async_sessionmaker:
    """Create a session factory bound to ``db_engine``"""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )
