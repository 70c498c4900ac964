"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Environment variables are set before anything from plannora is
   imported, so the settings singleton sees the test configuration
   (cheap bcrypt rounds, in-memory SQLite, unreachable Redis).
2. Each test gets its own aiosqlite engine on a StaticPool, so every
   session shares the one in-memory connection, and the schema is created
   from the ORM metadata.
3. get_db is overridden to hand out sessions from that engine, one per
   request, exactly like production.

Tests that need a logged-in user use `auth_headers`; they never override
get_current_user, so the real cookie/bearer pipeline is always exercised.
"""

import os

os.environ.setdefault("PLANNORA_ENVIRONMENT", "test")
os.environ.setdefault("PLANNORA_BCRYPT_ROUNDS", "4")
os.environ.setdefault("PLANNORA_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PLANNORA_REDIS_URL", "redis://127.0.0.1:1/0")

import uuid  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from plannora.db.engine import database, get_db  # noqa: E402
from plannora.db.models import Base  # noqa: E402
from plannora.main import app  # noqa: E402

TEST_DB_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture()
async def session_factory():
    """Per-test engine with the schema created from the models."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for calling services directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with get_db pointed at the per-test database.

    Learn: the app is driven in-process through httpx's ASGITransport.
    Lifespan is not run, so Redis is never initialised and rate limiting
    is skipped.
    """

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    # /api/health connects the process-wide handle; drop it so the next
    # test's event loop starts clean.
    await database.dispose()


async def register_user(client, name="Test User", email=None, password="secret-pw-1"):
    """Register an account and return (user_json, bearer headers).

    The session cookie the response sets is cleared so later requests
    authenticate only through the headers returned here.
    """
    email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
    r = await client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert r.status_code == 201, r.text
    client.cookies.clear()
    data = r.json()
    return data, {"Authorization": f"Bearer {data['token']}"}


@pytest_asyncio.fixture()
async def register(client):
    """`await register(name=..., email=..., password=...)` -> (user, headers)."""

    async def _register(**kwargs):
        return await register_user(client, **kwargs)

    return _register


@pytest_asyncio.fixture()
async def auth_headers(client):
    _, headers = await register_user(client, name="Alice")
    return headers


@pytest_asyncio.fixture()
async def other_headers(client):
    _, headers = await register_user(client, name="Bob")
    return headers
