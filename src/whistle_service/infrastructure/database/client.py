"""
Database Client

Async SQLAlchemy database connection and session management.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from whistle_service.infrastructure.database.models import Base

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Database client for managing async connections"""

    def __init__(self, database_url: str, startup_retries: int = 3):
        self.database_url = database_url
        self.startup_retries = startup_retries
        self.engine: Optional[AsyncEngine] = None
        self.session_maker = None

    async def verify_connection(self):
        """Verify database connection with retry logic.

        Called before table creation so the service waits for a database
        that is still starting. Retries with exponential backoff.
        """
        if not self.engine:
            raise RuntimeError("Engine not initialized. Call initialize() first.")

        for attempt in range(self.startup_retries):
            try:
                async with self.engine.begin() as conn:
                    await conn.execute(text("SELECT 1"))
                logger.info("Database connection verified")
                return
            except Exception as e:
                logger.warning(f"Database not ready (attempt {attempt + 1}/{self.startup_retries}): {e}")
                if attempt == self.startup_retries - 1:
                    raise
                await asyncio.sleep(2 ** attempt)

    async def initialize(self):
        """Initialize database engine and create tables"""
        logger.info("Initializing report database")

        # Create async engine
        self.engine = create_async_engine(
            self.database_url,
            echo=False,
            poolclass=NullPool if self.database_url.startswith("sqlite") else None,
        )

        # Create session maker
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        await self.verify_connection()

        # Note: alembic migrations are the source of truth for deployed schemas;
        # create_all() keeps local runs working without a migration step
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database initialized successfully")

    async def close(self):
        """Close database connections"""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database connections closed")

    def get_session(self) -> AsyncSession:
        """Get database session"""
        if not self.session_maker:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self.session_maker()

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on error"""
        async with self.get_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """Check database health"""
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
