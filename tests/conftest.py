"""
Shared pytest fixtures for upkeep tests.

- In-memory SQLite database shared by every session of a test (StaticPool)
- SQL-backed entity stores on top of it
- An HTTP client for the FastAPI app with the stores dependency overridden
"""

from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from upkeep.authentication.basic_authentication_crud import CreateAuthentication
from upkeep.db import create_tables, get_stores
from upkeep.entity_store import EntityStores
from upkeep.main import app

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def seconds_ago(seconds: float) -> datetime:
    return NOW - timedelta(seconds=seconds)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def Session(engine):
    return async_sessionmaker(
        autocommit=False, class_=AsyncSession, expire_on_commit=False, bind=engine
    )


@pytest.fixture
def stores(Session) -> EntityStores:
    return EntityStores.from_session(Session)


@pytest_asyncio.fixture
async def client(stores):
    app.dependency_overrides[get_stores] = lambda: stores
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin(stores):
    await CreateAuthentication.create_user_data(stores.users, "root", "root-pass", role="admin")
    return httpx.BasicAuth("root", "root-pass")


@pytest_asyncio.fixture
async def player(stores):
    await CreateAuthentication.create_user_data(stores.users, "player", "player-pass")
    return httpx.BasicAuth("player", "player-pass")
