from __future__ import annotations

import os

# Cheap hashing for tests; must be set before settings are first read
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_ENV", "test")

import asyncio
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from src.api.deps import get_db_session
from src.api.main import app
from src.infrastructure.db import models  # noqa: F401
from src.infrastructure.db.base import Base


def _engine(tmp_path: Path) -> AsyncEngine:
    return create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'capacity.db'}",
        poolclass=NullPool,
    )


async def _create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture()
def session_factory(tmp_path: Path) -> Iterator[async_sessionmaker[AsyncSession]]:
    """Fresh on-disk SQLite database per test, built from the ORM metadata."""
    engine = _engine(tmp_path)
    asyncio.run(_create_schema(engine))
    yield async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


def _override(factory: async_sessionmaker[AsyncSession]):
    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with factory() as session:
            yield session

    return override_db_session


@pytest.fixture()
def test_client(session_factory: async_sessionmaker[AsyncSession]) -> Iterator[TestClient]:
    app.dependency_overrides[get_db_session] = _override(session_factory)
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture()
async def async_client(tmp_path: Path) -> AsyncIterator[AsyncClient]:
    """Async HTTP client for testing async routes, on its own database."""
    engine = _engine(tmp_path)
    await _create_schema(engine)
    app.dependency_overrides[get_db_session] = _override(
        async_sessionmaker(engine, expire_on_commit=False)
    )
    transport = ASGITransport(app=app)  # type: ignore
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db_session, None)
    await engine.dispose()
