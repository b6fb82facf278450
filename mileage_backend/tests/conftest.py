"""
Centralized Test Configuration.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool

from mileage_backend.app.main import app
from mileage_backend.app.db.session import Base, get_session_factory
from mileage_backend.app.api.v1.dependencies import get_diagnostic_sink, get_mileage_config
from mileage_backend.app.core.mileage_config import MileageConfig
from mileage_backend.app.domain.mileage.diagnostics import RecordingDiagnosticSink
from mileage_backend.app.domain.mileage.mileage_service import MileageService
from mileage_backend.tests.factories import T0, FixedClock, Seeder


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so concurrent reads get their own connections."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'mileage.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(session_factory):
    async with session_factory() as session:
        yield Seeder(session)


@pytest.fixture
def config():
    return MileageConfig()


@pytest.fixture
def sink():
    return RecordingDiagnosticSink()


@pytest.fixture
def clock():
    return FixedClock(T0 + timedelta(hours=10))


@pytest.fixture
def service(session_factory, config, sink, clock):
    return MileageService(session_factory, config=config, sink=sink, clock=clock)


@pytest.fixture
async def client(session_factory, sink, config):
    """Async client for testing, wired to the test database and sink."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_diagnostic_sink] = lambda: sink
    app.dependency_overrides[get_mileage_config] = lambda: config

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}
