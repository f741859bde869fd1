"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The engine is not a module global: `Database` is built in the app lifespan,
stored on `app.state.database`, and disposed at shutdown. Request handlers
reach it only through the `get_db` dependency.
"""

from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from staffdesk.config import Settings
from staffdesk.db.models import Base


class Database:
    """Owns the connection pool and hands out sessions."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        # Session factory — each request gets its own session.
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the production pool.

        Learn: pool_size=10 with no overflow: callers past capacity wait
        in the pool's queue for up to db_pool_timeout seconds.
        """
        engine = create_async_engine(
            settings.sqlalchemy_url(),
            echo=settings.debug,
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,
        )
        return cls(engine)

    async def create_all(self) -> None:
        """Create any missing tables (no migrations — create-if-absent only)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Drain and close every pooled connection."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes."""
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
