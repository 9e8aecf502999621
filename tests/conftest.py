from __future__ import annotations

import os

# Must be set before bug_tracker.config is imported anywhere.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from bug_tracker.api.bugs import get_repo
from bug_tracker.db.repository import BugRepository
from bug_tracker.main import app
from bug_tracker.models.models import Base


@pytest_asyncio.fixture
async def engine():
    # One shared in-memory connection so every session sees the same tables.
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def repo(session_factory):
    async with session_factory() as session:
        yield BugRepository(session)


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_repo():
        async with session_factory() as session:
            yield BugRepository(session)

    app.dependency_overrides[get_repo] = override_get_repo
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
