"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The engine is created lazily by the first request rather than at import
time. `Database.connect()` is single-flight: while one caller is
establishing the connection, every other caller awaits that same task
instead of starting a second one. A failed attempt is not cached, so the
next request tries again; nothing loops internally.
"""

import asyncio
import functools
from typing import AsyncIterator, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from plannora.config import settings
from plannora.errors import StorageError

logger = structlog.get_logger()

# Driver-level failures that are translated to StorageError.
STORAGE_FAILURES = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class Database:
    """Process-wide database handle with single-flight initialization."""

    def __init__(self, url: Optional[str] = None, connect_timeout: Optional[float] = None):
        self.url = url or settings.database_url
        self.connect_timeout = connect_timeout or settings.db_connect_timeout
        self.engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._sessionmaker is not None

    def _engine_kwargs(self) -> dict:
        kwargs: dict = {
            "echo": settings.debug,
            "connect_args": {"timeout": self.connect_timeout},
        }
        if not self.url.startswith("sqlite"):
            # Pool sizing only applies to real client/server pools.
            kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                pool_pre_ping=True,
            )
        return kwargs

    async def connect(self) -> async_sessionmaker[AsyncSession]:
        """Return the session factory, establishing the engine on first use."""
        if self._sessionmaker is not None:
            return self._sessionmaker
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._establish())
        # shield: one cancelled request must not cancel everybody's attempt
        return await asyncio.shield(self._pending)

    async def _establish(self) -> async_sessionmaker[AsyncSession]:
        logger.info("db.connecting")
        engine = create_async_engine(self.url, **self._engine_kwargs())
        try:
            await asyncio.wait_for(self._ping(engine), timeout=self.connect_timeout)
        except STORAGE_FAILURES as e:
            await engine.dispose()
            logger.error("db.connect_failed", error=str(e), error_type=type(e).__name__)
            raise StorageError("Database unavailable") from e
        finally:
            self._pending = None

        self.engine = engine
        self._sessionmaker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("db.connected", dialect=engine.dialect.name)
        return self._sessionmaker

    @staticmethod
    async def _ping(engine: AsyncEngine) -> None:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Create missing tables (dev/test convenience; production uses alembic)."""
        from plannora.db.models import Base

        await self.connect()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self._sessionmaker = None


# Singleton — shared by every request in the process.
database = Database()


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes."""
    factory = await database.connect()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def storage_operation(name: str):
    """Translate driver failures inside a service method into StorageError.

    Learn: wraps `async def method(self, ...)` on a service holding
    `self.db`. Domain errors (NotFoundError etc.) pass through untouched;
    SQLAlchemy/OS/timeout errors roll the session back, get logged with
    their detail, and surface as a generic StorageError.
    """

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(self, *args, **kwargs):
            try:
                return await fn(self, *args, **kwargs)
            except STORAGE_FAILURES as e:
                try:
                    await self.db.rollback()
                except STORAGE_FAILURES as rollback_error:
                    logger.warning(
                        "db.rollback_failed", operation=name, error=str(rollback_error)
                    )
                logger.error(
                    "db.operation_failed",
                    operation=name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise StorageError() from e

        return wrapper

    return decorator
