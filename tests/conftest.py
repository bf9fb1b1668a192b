"""
Test infrastructure for the article store.

Strategy
--------
- SQLite in-memory via aiosqlite removes the need for a running Postgres.
  StaticPool keeps every session on the one connection that owns the
  in-memory database.
- The engine is built inside each test's event loop and disposed after it,
  with all tables created before and dropped after the test.
- The app's get_db dependency is overridden to use the test session factory.
- Redis is replaced by ``FakeSessionRedis``, an in-process hash store
  assigned to ``sessions._redis``.  Tests write identities into it the way
  the login service would.
"""
import asyncio
import json
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from article_store.config import settings
from article_store.database import Base, build_engine, get_db
from article_store.main import app
from article_store.models import Section, SectionType
from article_store.sessions import SessionStore, sessions

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Redis stand-in
# ---------------------------------------------------------------------------

class FakeSessionRedis:
    """Async hash store answering the subset of Redis the session store uses."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.delay: float = 0.0
        self.error: Exception | None = None

    async def hget(self, name: str, key: str) -> str | None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.hashes.get(name, {}).get(key)

    async def hset(self, name: str, key: str, value: str) -> int:
        self.hashes.setdefault(name, {})[key] = value
        return 1

    async def aclose(self) -> None:
        pass

    def login(self, user_id: uuid.UUID, permission: int | None = None) -> str:
        """Store an identity under a fresh token and return the token."""
        token = uuid.uuid4().hex
        info = {"id": str(user_id), "nickname": "tester", "permission": permission}
        self.hashes[token] = {settings.SESSION_INFO_FIELD: json.dumps(info)}
        return token


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def session_factory():
    """Fresh in-memory schema per test; get_db is pointed at it."""
    engine = build_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield factory
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncSession:
    """A live AsyncSession for service-level tests and direct seeding."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_section(db_session: AsyncSession):
    """Factory committing a section of the given type."""

    async def _make(title: str = "General", section_type: int = SectionType.FORUM) -> Section:
        sec = Section(id=uuid.uuid4(), title=title, section_type=section_type)
        db_session.add(sec)
        await db_session.commit()
        return sec

    return _make


@pytest_asyncio.fixture
async def section(make_section) -> Section:
    """A committed forum section."""
    return await make_section()


# ---------------------------------------------------------------------------
# Sessions / HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_redis() -> FakeSessionRedis:
    """Install a fresh Redis stand-in on the shared ``sessions`` singleton."""
    fake = FakeSessionRedis()
    sessions._redis = fake
    yield fake
    sessions._redis = None


@pytest.fixture
def session_store(fake_redis: FakeSessionRedis) -> SessionStore:
    store = SessionStore()
    store._redis = fake_redis
    return store


@pytest_asyncio.fixture
async def async_client(fake_redis: FakeSessionRedis) -> AsyncClient:
    """httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

