"""Pytest fixtures for the blog backend."""

import asyncio
from collections.abc import AsyncIterator, Iterator
from pathlib import Path
from typing import Any

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from api.deps import get_db
from app import create_app
from core import hash_password
from core.config import settings
from models import Post, User
from services.auth import RedisSessionStore, SessionIdentityIssuer


def _run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))

    original_database_url = settings.database_url
    try:
        settings.database_url = database_url
        command.upgrade(alembic_cfg, "head")
    finally:
        settings.database_url = original_database_url


@pytest.fixture(scope="session")
def event_loop() -> Iterator[asyncio.AbstractEventLoop]:
    """Provide a shared event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture(scope="session")
def test_database_url(tmp_path_factory) -> str:
    """Create and migrate a file-backed SQLite database for tests."""
    db_dir = tmp_path_factory.mktemp("sqlite")
    db_path = db_dir / "backend-test.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    _run_alembic_migrations(database_url)
    return database_url


@pytest_asyncio.fixture(scope="session")
async def test_engine(test_database_url: str) -> AsyncIterator:
    """Create an async engine bound to the migrated SQLite test database."""
    engine = create_async_engine(
        test_database_url,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    yield engine
    await engine.dispose()


@pytest.fixture(scope="session")
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


def _with_test_db(application: FastAPI, session_maker) -> FastAPI:
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture(scope="session")
def app(session_maker) -> Iterator[FastAPI]:
    """Create the FastAPI app (token strategy) with a test database override."""
    yield _with_test_db(create_app(), session_maker)


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


class InMemoryRedis:
    """Just enough of the redis.asyncio API for the session store."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self.ttls: dict[str, int | None] = {}

    async def get(self, key: str) -> Any:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def expire(self, key: str, ttl: int) -> bool:
        if key not in self.data:
            return False
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed


@pytest.fixture()
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture()
def session_issuer(fake_redis: InMemoryRedis) -> SessionIdentityIssuer:
    return SessionIdentityIssuer(RedisSessionStore(fake_redis), expires_minutes=10)


@pytest_asyncio.fixture()
async def session_client(session_maker, session_issuer) -> AsyncIterator[AsyncClient]:
    """Client for an app running the server-side session strategy."""
    application = _with_test_db(create_app(identity_issuer=session_issuer), session_maker)
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture(autouse=True)
async def clean_database(session_maker) -> AsyncIterator[None]:
    """Clear tables before each test to guarantee isolation."""
    async with session_maker() as session:
        for table in reversed(SQLModel.metadata.sorted_tables):
            await session.execute(table.delete())
        await session.commit()
    yield


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture()
async def make_user(db_session: AsyncSession):
    """Insert an account directly, bypassing the registration endpoint."""

    async def _make_user(username: str, password: str = "Sup3rSecret!") -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(password),
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest_asyncio.fixture()
async def make_post(db_session: AsyncSession):
    """Insert a post owned by ``author``."""

    async def _make_post(author: User, title: str = "Hello") -> Post:
        post = Post(user_id=author.id, title=title, content="First post")
        db_session.add(post)
        await db_session.commit()
        return post

    return _make_post
