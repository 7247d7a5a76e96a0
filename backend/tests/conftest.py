"""Pytest configuration and fixtures."""

import os
from typing import AsyncGenerator

# Set test env vars before any app import
os.environ.setdefault("SECRET_KEY", "testsecretkey_for_unit_tests_only_1234567890")
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from portfolio_sync.core.database import Database, get_db
from portfolio_sync.core.rate_limit import limiter
from portfolio_sync.core.security import create_access_token
from portfolio_sync.main import app
from portfolio_sync.models import Base
from portfolio_sync.models.user import User

# In-memory SQLite by default; point TEST_DATABASE_URL at Postgres to run
# the suite against the production backend.
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _make_database() -> Database:
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory db
        return Database(
            TEST_DATABASE_URL,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return Database(TEST_DATABASE_URL)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest_asyncio.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    database = _make_database()
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield database

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await database.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(database: Database, db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override."""

    async def override_get_db():
        yield db_session

    app.state.database = database
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, email: str) -> User:
    user = User(email=email, is_active=True)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def regular_user(db_session: AsyncSession) -> User:
    """Create a regular user for testing."""
    return await _create_user(db_session, "user@test.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second user, for ownership isolation checks."""
    return await _create_user(db_session, "other@test.com")


@pytest.fixture
def auth_headers(regular_user: User) -> dict:
    token = create_access_token(subject=str(regular_user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(other_user: User) -> dict:
    token = create_access_token(subject=str(other_user.id))
    return {"Authorization": f"Bearer {token}"}
