"""
FridgeMind API — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before anything from `fridgemind` is
       imported, because settings, the engine and the service singletons
       are built at import time.

Fixtures:
    ├── mock_db_session: AsyncMock session for pure service tests
    ├── db_session: Real AsyncSession on in-memory SQLite (schema created)
    ├── current_user / other_user: Authenticated identities
    ├── sample_image_b64: Tiny JPEG as base64
    └── api_client: HTTPX AsyncClient over ASGITransport with the auth gate
                    and DB session overridden
"""

import base64
import os
import tempfile
import uuid
from unittest.mock import AsyncMock, MagicMock

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (before any fridgemind import)
# ══════════════════════════════════════════════════════════════════════════

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="fridgemind_test_")
os.environ["PUBLIC_BASE_URL"] = "http://test"
os.environ["AUTH_URL"] = "http://auth.test"
os.environ["AUTH_API_KEY"] = "test-anon-key"
os.environ["FATSECRET_CLIENT_ID"] = ""
os.environ["FATSECRET_CLIENT_SECRET"] = ""
# One attempt: a failing Gemini call surfaces immediately, no backoff sleeps
os.environ["RETRY_MAX_ATTEMPTS"] = "1"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from fridgemind.database import Base, build_engine, get_db_session  # noqa: E402
from fridgemind.dependencies import get_current_user  # noqa: E402
from fridgemind.schemas.auth import CurrentUser  # noqa: E402

# Registers every table on Base.metadata
from fridgemind.models import eating_out, inventory, receipt, shopping_list  # noqa: E402,F401

# Minimal JPEG: SOI + JFIF header + EOI
SAMPLE_JPEG = (
    b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    b"\xff\xd9"
)


@pytest.fixture
def current_user() -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), email="cook@example.com")


@pytest.fixture
def other_user() -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), email="neighbour@example.com")


@pytest.fixture
def sample_image_b64() -> str:
    return base64.b64encode(SAMPLE_JPEG).decode()


@pytest.fixture
def mock_db_session():
    """
    A MagicMock standing in for AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalars.return_value.all.return_value = rows
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite shared by every session of one test."""
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def api_client(current_user, mock_db_session):
    """
    HTTPX client for route tests.

    The auth gate resolves to `current_user` and every route receives
    `mock_db_session`; patch the service a route calls to control results.
    """
    from fridgemind.main import create_app

    app = create_app()

    async def _db_override():
        yield mock_db_session

    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_db_session] = _db_override

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def anonymous_client():
    """HTTPX client with the real auth gate in place."""
    from fridgemind.main import create_app

    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
