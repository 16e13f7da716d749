"""
Async engine and session management.

One session per request; `get_db` commits when the endpoint returns and rolls
back on any exception, so every admission runs as a single transaction and
row locks taken with SELECT ... FOR UPDATE are held until commit.
"""

from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from cinema_booking.core.config import get_settings

settings = get_settings()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """
    Create an async engine for `url`.

    PostgreSQL gets the configured connection pool. SQLite (used by the test
    suite) gets foreign-key enforcement switched on, which it lacks by default.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_async_engine(url, **kwargs)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    if "poolclass" not in kwargs:
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=True,
        )
    return create_async_engine(url, **kwargs)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def set_lock_timeout(db: AsyncSession) -> None:
    """
    Bound how long the current transaction waits for row locks.
    PostgreSQL only; other dialects rely on their own busy timeouts.
    """
    if db.bind is None or db.bind.dialect.name != "postgresql":
        return
    await db.execute(text(f"SET LOCAL lock_timeout = {int(settings.DB_LOCK_TIMEOUT_MS)}"))
