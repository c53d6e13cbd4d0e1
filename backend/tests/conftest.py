"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.jwt import create_access_token
from backend.app.core.redis_client import get_redis
from backend.app.models.enums import UserRole
from backend.app.models.profile import Profile

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def incr(self, key):
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


mock_redis = MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Apply overrides once for the session."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await mock_redis.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def redis():
    return mock_redis


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def create_profile(db_session, profile_id: str, email: str, role: UserRole = UserRole.USER, **kwargs) -> Profile:
    kwargs.setdefault("is_active", True)
    profile = Profile(id=profile_id, email=email, role=role, **kwargs)
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    return profile


def auth_headers(profile_id: str, email: str = None, **token_kwargs) -> dict:
    token = create_access_token({"sub": profile_id, "email": email}, **token_kwargs)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_profile(db_session):
    return await create_profile(db_session, "admin-0001", "admin@example.com", UserRole.ADMIN, full_name="Ada Admin")


@pytest.fixture
async def user_profile(db_session):
    return await create_profile(db_session, "user-0001", "driver@example.com", full_name="Dana Driver")


@pytest.fixture
async def other_profile(db_session):
    return await create_profile(db_session, "user-0002", "other@example.com", full_name="Omar Other")


@pytest.fixture
def admin_headers(admin_profile):
    return auth_headers(admin_profile.id, admin_profile.email)


@pytest.fixture
def user_headers(user_profile):
    return auth_headers(user_profile.id, user_profile.email)


@pytest.fixture
def other_headers(other_profile):
    return auth_headers(other_profile.id, other_profile.email)


@pytest.fixture
def make_profile(db_session):
    async def _make(profile_id: str, email: str, role: UserRole = UserRole.USER, **kwargs):
        return await create_profile(db_session, profile_id, email, role, **kwargs)
    return _make


@pytest.fixture
def make_headers():
    return auth_headers
