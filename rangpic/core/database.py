"""
Async SQLAlchemy connection pool and database session management.

This module provides a singleton connection pool manager for async SQLAlchemy
operations against the image catalog.

Key Features:
    - Singleton pattern for global connection pool management
    - Async-only operations (no blocking database calls)
    - Connection pool with configurable size and overflow
    - Pre-ping health checks to avoid stale connections
    - Automatic rollback on exceptions
    - Schema creation and a cheap liveness probe

Usage:
    # Initialize once at application startup (in lifespan)
    await AsyncDBPool.init(database_config)
    await AsyncDBPool.create_all()

    # Use in route handlers or services
    async with AsyncDBPool.get_session() as session:
        repo = ImageRepository(session)
        image = await repo.pick_random("desktop")

    # Cleanup at shutdown (in lifespan)
    await AsyncDBPool.dispose()
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rangpic.main_config import DatabaseConfig
from rangpic.models import Base


class AsyncDBPool:
    """Async-only SQLAlchemy engine + session manager."""

    _engine: AsyncEngine | None = None
    _maker: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    async def init(
        cls,
        config: DatabaseConfig,
    ) -> None:
        """Initialize async engine and sessionmaker.

        Args:
            config: DatabaseConfig instance with credentials and pool settings
        """
        if cls._engine is not None:
            return  # already initialized

        dsn = config.dsn
        engine_kwargs: dict = {"echo": config.echo, "pool_pre_ping": config.pool_pre_ping}
        # SQLite (local runs, tests) has no server-side pool to size
        if make_url(dsn).get_backend_name() != "sqlite":
            engine_kwargs.update(
                pool_size=config.pool_size,
                max_overflow=config.max_overflow,
                pool_timeout=config.pool_timeout,
                pool_recycle=config.pool_recycle,
            )

        cls._engine = create_async_engine(dsn, **engine_kwargs)
        cls._maker = async_sessionmaker(cls._engine, expire_on_commit=False, class_=AsyncSession)

    @classmethod
    async def create_all(cls) -> None:
        """Create the catalog tables if they do not exist yet."""
        if cls._engine is None:
            raise RuntimeError("AsyncDBPool not initialized. Call await AsyncDBPool.init() first.")
        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @classmethod
    async def ping(cls) -> bool:
        """Return True when the database answers ``SELECT 1``."""
        if cls._engine is None:
            return False
        async with cls._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    @classmethod
    async def dispose(cls) -> None:
        """Dispose engine and clear session maker.

        Should be called during application shutdown to cleanly close
        all database connections.
        """
        if cls._engine is not None:
            await cls._engine.dispose()
            cls._engine = None
            cls._maker = None

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncIterator[AsyncSession]:
        """Yield a session; rollback on exceptions.

        Raises:
            RuntimeError: If pool not initialized
        """
        if cls._maker is None:
            raise RuntimeError("AsyncDBPool not initialized. Call await AsyncDBPool.init() first.")

        async with cls._maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
