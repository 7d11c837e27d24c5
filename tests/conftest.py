"""Shared pytest fixtures."""

import fnmatch
from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.cache import CacheKeys, CacheService, get_cache
from app.core.database.engine import build_engine, build_sessionmaker, get_db, init_db
from app.core.rate_limit import limiter
from app.features.users.auth import create_access_token
from scripts.seed_data import DEFAULT_PERMISSIONS, seed_data


ALL_PERMISSIONS = [name for name, _ in DEFAULT_PERMISSIONS]


class FakeRedis:
    """In-memory stand-in for the subset of redis.asyncio.Redis used by CacheService."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def scan_iter(self, match: str | None = None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self) -> None:
        pass


class FailingRedis:
    """Redis client whose every call fails as if the server were down."""

    def __init__(self):
        self.calls = 0

    def _fail(self):
        self.calls += 1
        raise RedisConnectionError("Connection refused")

    async def get(self, key: str) -> Any:
        self._fail()

    async def set(self, key: str, value: str, ex: int | None = None) -> Any:
        self._fail()

    async def delete(self, *keys: str) -> Any:
        self._fail()

    async def scan_iter(self, match: str | None = None):
        self._fail()
        yield  # pragma: no cover

    async def aclose(self) -> None:
        pass


@pytest_asyncio.fixture()
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """File-backed SQLite database with all tables created."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'rbac.sqlite'}")
    await init_db(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(engine)


@pytest_asyncio.fixture()
async def db(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def seeded(session_factory) -> None:
    """Load the sample dataset."""
    async with session_factory() as session:
        assert await seed_data(session)


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def cache(fake_redis: FakeRedis) -> CacheService:
    return CacheService(fake_redis)


@pytest.fixture()
def failing_redis() -> FailingRedis:
    return FailingRedis()


@pytest.fixture()
def failing_cache(failing_redis: FailingRedis) -> CacheService:
    return CacheService(failing_redis)


@pytest.fixture()
def keys() -> CacheKeys:
    return CacheKeys()


@pytest.fixture()
def app(session_factory, cache: CacheService) -> FastAPI:
    """The application wired to the test database and in-memory cache."""
    from app.main import app as fastapi_app

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_cache] = lambda: cache
    limiter.reset()
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


def auth_headers(*permissions: str, user_id: int = 1, username: str = "admin") -> dict[str, str]:
    token = create_access_token(user_id, username, permissions or ALL_PERMISSIONS)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_headers():
    """Build Authorization headers for a token carrying the given permissions (all when none given)."""
    return auth_headers


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """HTTPX client authorised with every seeded permission."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver", headers=auth_headers()) as http_client:
        yield http_client


@pytest_asyncio.fixture()
async def anonymous_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
