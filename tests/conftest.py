"""
Test infrastructure for the Article API.

Strategy
--------
- SQLite in-memory via aiosqlite, so no Postgres instance is needed.
- StaticPool forces every async task onto the same in-memory connection;
  SQLite in-memory databases are connection-scoped.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory.
- Tables are created before each test and dropped after it.
- Redis is disabled by setting cache._redis = None; CacheManager treats a
  missing client as a permanent miss, so the real database path runs.
- bcrypt runs with the minimum work factor to keep the suite fast.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.cache import cache  # noqa: E402
from app.database import Base, discard_after_commit, get_db, run_after_commit  # noqa: E402
from app.dependencies import get_token_issuer  # noqa: E402
from app.main import app  # noqa: E402
from app.middleware import install_query_counter  # noqa: E402

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            discard_after_commit(session)
            await session.rollback()
            raise
        await run_after_commit(session)


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for tests that call repositories and services directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx.AsyncClient wired to the FastAPI app, with Redis disabled."""
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def register_user(async_client: AsyncClient):
    """
    Return a coroutine that signs a user up and in through the API.

    It resolves to ``(user_json, headers)`` where *headers* carries the
    bearer token for that user.
    """

    async def _register(email: str, name: str = "Author", password: str = "secret-pw"):
        resp = await async_client.post("/auth/signup", json={
            "email": email,
            "password": password,
            "name": name,
        })
        assert resp.status_code == 201, resp.text
        resp_token = await async_client.post("/auth/signin", json={
            "email": email,
            "password": password,
        })
        assert resp_token.status_code == 200, resp_token.text
        token = resp_token.json()["access_token"]
        return resp.json(), {"Authorization": f"Bearer {token}"}

    return _register


@pytest_asyncio.fixture
async def token_for():
    """Return a function that mints a bearer header for an arbitrary user id."""

    def _token_for(user_id: int, email: str = "ghost@example.com") -> dict[str, str]:
        token = get_token_issuer().issue(user_id, email)
        return {"Authorization": f"Bearer {token}"}

    return _token_for
