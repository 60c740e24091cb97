"""Test fixtures for the Linkly application."""

import os
import tempfile

# Settings are read once at import time, so the environment goes first
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BASE_URL"] = "http://testserver"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["DB_CREATE_TABLES"] = "false"
os.environ["OTEL_ENABLED"] = "false"
os.environ["LOG_JSON"] = "false"
os.environ["TRUST_PROXY_HEADERS"] = "true"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="linkly-test-logs-")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from linkly.analytics.recorder import AnalyticsRecorder
from linkly.api.dependencies import get_analytics_recorder
from linkly.db.session import get_db
from linkly.main import app as main_app
# Import models to ensure they're registered with SQLModel metadata
from linkly.models import ClickEvent, ShortLink  # noqa: F401

TEST_SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        TEST_SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Database session for arranging and inspecting test data."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def recorder(session_factory) -> AnalyticsRecorder:
    """Analytics recorder writing to the test database."""
    return AnalyticsRecorder(session_factory=session_factory)


@pytest.fixture
def test_app(session_factory, recorder):
    """FastAPI app with the database and recorder pointed at the test engine."""
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    async def _override_get_analytics_recorder():
        return recorder

    main_app.dependency_overrides[get_db] = _override_get_db
    main_app.dependency_overrides[get_analytics_recorder] = _override_get_analytics_recorder
    yield main_app
    main_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that drives the app in-process.

    ASGITransport runs the app to completion, so background tasks have
    finished by the time a response is returned.
    """
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://testserver") as ac:
        yield ac
