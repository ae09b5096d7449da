"""Database client for document metadata storage."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from .models import Base

logger = logging.getLogger(__name__)


class DatabaseClient:
    """Async database client owning the engine and session factory.

    Managers never hold a session between calls: every operation opens
    either a write ``transaction()`` or a read-only ``snapshot()``.
    """

    def __init__(self, database_url: str, echo: bool = False):
        """Initialize database client.

        Args:
            database_url: SQLAlchemy database URL (e.g., sqlite+aiosqlite:///./db.sqlite)
            echo: Log emitted SQL statements
        """
        engine_kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            # Writers queue on the database lock instead of failing fast
            engine_kwargs["connect_args"] = {"timeout": 30}
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self.async_session = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    async def verify_connection(self):
        """Verify the database answers a trivial query."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")

    async def initialize(self):
        """Create database tables."""
        await self.verify_connection()

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a session inside a single transaction.

        Commits when the block exits normally, rolls back on any exception.
        """
        async with self.async_session() as session:
            async with session.begin():
                yield session

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[AsyncSession]:
        """Open a read-only session with a consistent view across tables.

        Nothing is committed; closing the session releases the connection and
        detaches loaded rows without expiring them.
        """
        async with self.async_session() as session:
            if self.dialect_name == "postgresql":
                await session.connection(
                    execution_options={"isolation_level": "REPEATABLE READ"}
                )
            yield session

    async def close(self):
        """Close database connections."""
        await self.engine.dispose()
