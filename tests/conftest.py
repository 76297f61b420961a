"""
Shared fixtures: an in-memory SQLite database, an HTTP client and clean
rate-limit state.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from innovision.core import redis as redis_module
from innovision.core.database import Base, get_db
from innovision.core.rate_limit import get_memory_store
from innovision.main import app
from innovision.modules.admins import models as admin_models  # noqa: F401
from innovision.modules.enrollments import models as enrollment_models  # noqa: F401


@pytest.fixture(autouse=True)
def clean_counters(monkeypatch):
    """Every test starts without Redis and with empty in-memory counters."""
    monkeypatch.setattr(redis_module, "redis_client", None)
    get_memory_store().clear()
    yield
    get_memory_store().clear()


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker):
    """A real database session bound to the in-memory engine."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    """HTTP client for the app, with ``get_db`` bound to the test database."""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
