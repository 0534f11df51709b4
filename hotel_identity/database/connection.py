"""Database connection management"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from .models import Base

logger = structlog.get_logger(__name__)


class DatabaseManager:
    """Manages the async engine and sessions"""

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        self.database_url = database_url
        self.echo = echo
        self.engine = None
        self.async_session_maker = None

    async def initialize(self):
        """Create the engine and session factory"""
        if self.database_url is None:
            from ..config import settings
            self.database_url = settings.DATABASE_URL
            self.echo = self.echo or settings.DEBUG

        try:
            engine_kwargs = {'echo': self.echo}
            if self.database_url.startswith('postgresql'):
                engine_kwargs['poolclass'] = NullPool  # asyncpg manages connections

            self.engine = create_async_engine(self.database_url, **engine_kwargs)
            self.async_session_maker = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )
            logger.info("database_initialized", driver=self.engine.dialect.driver)

        except Exception as e:
            logger.error("database_initialize_failed", error=str(e))
            raise

    async def create_schema(self):
        """Create tables that do not exist yet"""
        if not self.engine:
            raise RuntimeError("Database not initialized")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self):
        """Dispose of the engine"""
        try:
            if self.engine:
                await self.engine.dispose()
                logger.info("database_engine_disposed")
        except Exception as e:
            logger.error("database_close_failed", error=str(e))

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get SQLAlchemy async session"""
        if not self.async_session_maker:
            raise RuntimeError("Database not initialized")

        async with self.async_session_maker() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                logger.error("database_session_error", error=str(e))
                raise
