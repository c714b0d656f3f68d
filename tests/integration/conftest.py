"""
Shared fixtures for integration tests.

Requires PostgreSQL reachable at ``DATABASE_URL``; tests that need the
database are skipped when it is not.
"""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from membergate.adapters.repository.postgres import (
    PostgresRateStore,
    PostgresSignupStore,
    run_migrations,
)
from membergate.config.settings import get_settings


@pytest_asyncio.fixture
async def pool() -> AsyncIterator[AsyncConnectionPool]:
    """Open a connection pool on a migrated, empty database."""
    settings = get_settings()
    pool = AsyncConnectionPool(conninfo=settings.database_url, min_size=1, max_size=4, open=False)
    try:
        await pool.open(wait=True, timeout=5)
    except PoolTimeout:
        await pool.close()
        pytest.skip("PostgreSQL is not reachable")

    await run_migrations(pool)
    async with pool.connection() as conn:
        await conn.execute("DELETE FROM signups")
        await conn.execute("DELETE FROM signup_rate_limits")
        await conn.commit()

    yield pool
    await pool.close()


@pytest.fixture
def pg_signup_store(pool: AsyncConnectionPool) -> PostgresSignupStore:
    return PostgresSignupStore(pool)


@pytest.fixture
def pg_rate_store(pool: AsyncConnectionPool) -> PostgresRateStore:
    return PostgresRateStore(pool)
