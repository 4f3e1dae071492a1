"""
Integration test configuration with testcontainers.

Provides a session-scoped PostgreSQL 16 container and a per-test session
factory with the proposals schema in place. The proposals table is
truncated after every test.

Usage:
    @pytest.mark.integration
    async def test_example(session_factory: async_sessionmaker[AsyncSession]) -> None:
        store = PostgresProposalStore(session_factory)
        ...

Note: Docker must be running for these fixtures to work; without it the
integration tests are skipped.
"""

from collections.abc import AsyncGenerator, Generator

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from poolfund.infrastructure.adapters.persistence import PostgresProposalStore


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Session-scoped PostgreSQL 16 container, started once per run."""
    container = PostgresContainer("postgres:16-alpine")
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available: {e}")
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def postgres_async_url(postgres_container: PostgresContainer) -> str:
    """Get the container URL rewritten for asyncpg."""
    sync_url = postgres_container.get_connection_url()
    return sync_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://").replace(
        "postgresql://", "postgresql+asyncpg://"
    )


@pytest.fixture
async def session_factory(
    postgres_async_url: str,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Per-test session factory with the proposals schema created."""
    engine = create_async_engine(postgres_async_url, echo=False)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await PostgresProposalStore(factory).ensure_schema()

    yield factory

    async with factory() as session, session.begin():
        await session.execute(text("TRUNCATE TABLE proposals"))
    await engine.dispose()
