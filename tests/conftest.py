import asyncio
import os
import tempfile

# Keep the module-level engine away from the real database directory
os.environ.setdefault("MYTIME_DATA_DIR", tempfile.mkdtemp(prefix="mytime-tests-"))

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from mytime_server.api_service.core import repository
from mytime_server.api_service.core.database import build_engine, get_db, init_db
from mytime_server.api_service.core.settings import settings


def _database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'mytime-test.db'}"


async def _prepare_database(engine, factory):
    await init_db(engine)
    async with factory() as session:
        await repository.seed_default_categories(session, settings.WAKE_CATEGORY_NAME)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """A seeded SQLite database in tmp_path."""
    engine = build_engine(_database_url(tmp_path), poolclass=NullPool)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await _prepare_database(engine, factory)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def client(tmp_path):
    """TestClient bound to a fresh seeded database. The app lifespan is not run."""
    from mytime_server.api_service.main import app

    engine = build_engine(_database_url(tmp_path), poolclass=NullPool)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(_prepare_database(engine, factory))

    async def override_get_db():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())
