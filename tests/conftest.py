import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

# Tests run against an in-memory SQLite store; set before the app reads settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import MetaData, insert
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.security import get_password_hash
from app.database import get_db
from app.dependencies import get_cache_manager, get_rate_limiter
from app.main import app
from app.models.dimensions import metadata as dimensions_metadata
from app.models.users import metadata as users_metadata
from app.models.users import users

# Combine all metadata
metadata = MetaData()
for table in users_metadata.tables.values():
    table.to_metadata(metadata)
for table in dimensions_metadata.tables.values():
    table.to_metadata(metadata)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "correct-horse-battery"  # pragma: allowlist secret


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a session on a fresh in-memory database."""
    # One shared connection so every session sees the same in-memory database
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with the test database and no Redis."""
    rate_limiter = MagicMock()
    rate_limiter.check_rate_limit.return_value = True

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_manager] = lambda: None
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> dict:
    """Create user 42 (a@b.com) in the database."""
    user_data = {
        "id": 42,
        "email": "a@b.com",
        "password_hash": get_password_hash(TEST_PASSWORD),
        "role": "user",
        "is_verified": True,
        "two_factor_secret": "JBSWY3DPEHPK3PXP",  # pragma: allowlist secret
        "two_factor_enabled": False,
    }

    await db_session.execute(insert(users).values(**user_data))
    await db_session.commit()

    return user_data


@pytest.fixture
def auth_headers(test_user: dict) -> dict:
    """Identity headers for the test user."""
    return {"x-user-id": str(test_user["id"])}


@pytest.fixture
def broken_store(client: AsyncClient) -> AsyncMock:
    """Swap the database session for one whose queries always fail."""
    session = AsyncMock(spec=AsyncSession)
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection reset"))

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_db] = override_get_db
    return session
