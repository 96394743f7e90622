"""
Integration test configuration with testcontainers.

Provides a session-scoped PostgreSQL 16 container and a per-test
SqlElectionStore over a freshly created schema.

Usage:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_example(sql_store: SqlElectionStore) -> None:
        ...

Note: Docker must be running; tests are skipped when it is not.
"""

from collections.abc import AsyncGenerator, Generator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from testcontainers.postgres import PostgresContainer

from electorate.infrastructure.adapters.persistence import SqlElectionStore
from electorate.infrastructure.adapters.persistence.schema import metadata


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Session-scoped PostgreSQL 16 container."""
    container = PostgresContainer("postgres:16-alpine")
    try:
        container.start()
    except Exception as e:  # docker daemon missing or unreachable
        pytest.skip(f"PostgreSQL container unavailable: {e}")
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def postgres_async_url(postgres_container: PostgresContainer) -> str:
    """asyncpg URL for the container (testcontainers returns a psycopg2 URL)."""
    sync_url = postgres_container.get_connection_url()
    async_url: str = sync_url.replace(
        "postgresql+psycopg2://", "postgresql+asyncpg://"
    ).replace("postgresql://", "postgresql+asyncpg://")
    return async_url


@pytest.fixture
async def session_factory(
    postgres_async_url: str,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a schema rebuilt for each test."""
    engine = create_async_engine(postgres_async_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def sql_store(session_factory: async_sessionmaker[AsyncSession]) -> SqlElectionStore:
    return SqlElectionStore(session_factory)
