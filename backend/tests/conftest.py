"""
Pytest fixtures for test database, client, and a controllable clock.

Each test gets a fresh schema. The default database is in-memory SQLite;
point TEST_DATABASE_URL at PostgreSQL to also run the lock-based
concurrency tests.
"""

import os
from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

# Catalog cache is advisory; keep tests independent of a Redis server
os.environ.setdefault("REDIS_ENABLED", "false")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from cinema_booking.main import app
from cinema_booking.core.clock import Clock, get_clock
from cinema_booking.db.base import Base
from cinema_booking.db.session import build_engine, get_db

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
IS_POSTGRES = TEST_DATABASE_URL.startswith("postgresql")

# Every test starts at this instant unless it moves the clock
TEST_NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(TEST_NOW)


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create tables, yield engine, then drop tables for isolation."""
    poolclass = NullPool if IS_POSTGRES else StaticPool
    engine = build_engine(TEST_DATABASE_URL, poolclass=poolclass)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, clock: FrozenClock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the test session and clock, committing per request like get_db."""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_movie(client: AsyncClient) -> dict:
    """A 120-minute movie."""
    response = await client.post("/api/v1/movies/", json={
        "title": "The Test Movie",
        "genre": "Drama",
        "duration_minutes": 120,
        "rating": 8.5,
        "release_year": 2024,
    })
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def test_theater(client: AsyncClient) -> dict:
    """A 50-seat theater."""
    response = await client.post("/api/v1/theaters/", json={"name": "Screen 1", "capacity": 50})
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def small_theater(client: AsyncClient) -> dict:
    """A 3-seat theater."""
    response = await client.post("/api/v1/theaters/", json={"name": "Screening Room", "capacity": 3})
    assert response.status_code == 201
    return response.json()


def _at(hour: int, minute: int = 0, days: int = 1) -> str:
    day = TEST_NOW.replace(hour=0, minute=0) + timedelta(days=days)
    return (day + timedelta(hours=hour, minutes=minute)).isoformat()


@pytest.fixture
def at():
    """Build ISO timestamps `days` after TEST_NOW's date at hour:minute UTC."""
    return _at


@pytest_asyncio.fixture
async def test_showtime(client: AsyncClient, test_movie: dict, test_theater: dict) -> dict:
    """Tomorrow 18:00-20:00 in the 50-seat theater."""
    response = await client.post("/api/v1/showtimes/", json={
        "movie_id": test_movie["id"],
        "theater_id": test_theater["id"],
        "start_time": _at(18),
        "price": "12.50",
    })
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def small_showtime(client: AsyncClient, test_movie: dict, small_theater: dict) -> dict:
    """Tomorrow 18:00-20:00 in the 3-seat theater."""
    response = await client.post("/api/v1/showtimes/", json={
        "movie_id": test_movie["id"],
        "theater_id": small_theater["id"],
        "start_time": _at(18),
        "price": "9.00",
    })
    assert response.status_code == 201
    return response.json()
