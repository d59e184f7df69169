"""
Test infrastructure for the StackIt API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- There is no login endpoint; tests mint bearer tokens directly with
  ``create_access_token`` for users written through ``make_user``.
"""
from types import SimpleNamespace

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from stackit.auth import create_access_token, hash_password
from stackit.database import Base, get_db
from stackit.main import app
from stackit.middleware import install_query_counter
from stackit.models import User

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Register the per-request SQL query counter on the test engine.
install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

# bcrypt is slow on purpose; hash the shared test password once.
TEST_PASSWORD = "secret123"
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


def bearer(user_id: int, role: str = "user") -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


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
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def make_user():
    """
    Factory that commits a user in its own short-lived session and returns
    ``id``, ``username``, ``role`` and ready-made ``headers`` for requests.
    """

    async def _make(username: str, role: str = "user", banned: bool = False, reputation: int = 0):
        async with async_session_test() as session:
            user = User(
                username=username,
                email=f"{username}@example.com",
                password_hash=TEST_PASSWORD_HASH,
                role=role,
                banned=banned,
                reputation=reputation,
            )
            session.add(user)
            await session.commit()
            return SimpleNamespace(
                id=user.id,
                username=username,
                role=role,
                headers=bearer(user.id, role),
            )

    return _make


@pytest_asyncio.fixture
async def fail_sql():
    """
    Arm a statement filter on the test engine: any SQL for which
    ``matches(statement)`` is true raises ``OperationalError`` as if the
    database had rejected it.  The listener is removed after the test.
    """
    matchers = []

    def _fail(conn, cursor, statement, parameters, context, executemany):
        if any(matches(statement) for matches in matchers):
            raise OperationalError(statement, parameters, Exception("simulated database failure"))

    event.listen(engine_test.sync_engine, "before_cursor_execute", _fail)
    yield matchers.append
    event.remove(engine_test.sync_engine, "before_cursor_execute", _fail)
