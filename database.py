"""
Database connection and session management for the Identity Resolution Service
This module sets up the SQLAlchemy async engine and session factory with
transactional session scopes. Supports local PostgreSQL, AWS RDS and SQLite
(aiosqlite) databases. The engine is created lazily on first use.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config import settings
from exceptions import IdentityResolutionError
from models import Base

# Configure logging
logger = logging.getLogger(__name__)


def _hide_credentials(database_url: str) -> str:
    if "@" not in database_url:
        return database_url
    scheme, _, rest = database_url.partition("://")
    return f"{scheme}://[HIDDEN]@{rest.rsplit('@', 1)[1]}"


class DatabaseManager:
    """
    Database connection manager that handles the SQLAlchemy async engine,
    session creation, and connection lifecycle management
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url
        self.engine: Optional[AsyncEngine] = None
        self.SessionLocal: Optional[async_sessionmaker] = None

    def _initialize_database(self):
        """Initialize database engine and session factory"""
        database_url = self.database_url or settings.get_active_database_url()
        logger.info(f"Initializing database connection to: {_hide_credentials(database_url)}")

        try:
            if database_url.startswith("sqlite"):
                self.engine = create_async_engine(database_url, echo=settings.DEBUG)
            else:
                self.engine = create_async_engine(
                    database_url,
                    echo=settings.DEBUG,
                    pool_pre_ping=True,  # Validate connections before use
                    pool_size=1 if settings.is_lambda_environment() else settings.DB_POOL_SIZE,
                    max_overflow=0 if settings.is_lambda_environment() else settings.DB_MAX_OVERFLOW,
                    pool_timeout=settings.DB_POOL_TIMEOUT,
                    pool_recycle=3600,
                )

            self.SessionLocal = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,  # Response is built from objects after commit
                autoflush=False
            )
        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

        logger.info("Database connection initialized successfully")

    def get_engine(self) -> AsyncEngine:
        if self.engine is None:
            self._initialize_database()
        return self.engine

    @property
    def dialect_name(self) -> str:
        return self.get_engine().dialect.name

    async def create_tables(self):
        """Create all database tables defined in models"""
        try:
            logger.info("Creating database tables...")
            async with self.get_engine().begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            raise

    async def test_connection(self) -> bool:
        try:
            async with self.get_engine().connect() as connection:
                await connection.execute(text("SELECT 1"))
            logger.info("Database connection test successful")
            return True
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Transactional session scope: commits when the block exits cleanly,
        rolls back and re-raises otherwise
        Usage:
            async with db_manager.get_session() as session:
                # database operations
        """
        if self.SessionLocal is None:
            self._initialize_database()

        session = self.SessionLocal()
        try:
            yield session
            await session.commit()
        except IdentityResolutionError as e:
            # Resolution faults are logged by their handlers, not as DB errors
            await session.rollback()
            logger.debug(f"Transaction rolled back after {type(e).__name__}: {e}")
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error, transaction rolled back: {e}")
            raise
        finally:
            await session.close()

    async def dispose(self):
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.SessionLocal = None


# Global database manager instance
db_manager = DatabaseManager()
