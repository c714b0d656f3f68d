"""
PostgreSQL repository adapters - Implement SignupStore and RateStore.

This module provides the PostgreSQL implementations of the domain's
persistence ports using psycopg3 async connections with raw SQL.

Design notes:
-------------
1. **No atomic pending-email guard**: ``save`` is a plain INSERT. The
   duplicate check lives in the submission flow, so two concurrent
   submissions for the same email may both be stored.

2. **Transition updates by id only**: ``update`` writes the transition
   fields of the record it is given. State gating happens in the domain
   before the write.

3. **Fixed rate windows**: ``record_request`` upserts the bucket row
   ``(scope, identifier, window_start)`` and increments its counter.

4. **Error translation**: every ``psycopg.Error`` is logged and re-raised
   as the domain's PersistenceError so no driver detail leaks upward.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from membergate.domain.exceptions import PersistenceError
from membergate.domain.signup import SignupRecord
from membergate.domain.values import (
    AdminId,
    ApprovalToken,
    Email,
    RateScope,
    SignupId,
    SignupStatus,
)

logger = logging.getLogger(__name__)

_SIGNUP_COLUMNS = """
    id, email, name, surname, token, status, created_at,
    approved_at, approved_by, rejected_at, rejected_by,
    ip_address, user_agent, token_used_at
"""


@asynccontextmanager
async def _connection(pool: AsyncConnectionPool) -> AsyncIterator[psycopg.AsyncConnection]:
    """Borrow a pooled connection, translating driver errors to PersistenceError."""
    try:
        async with pool.connection() as conn:
            yield conn
    except psycopg.Error as e:
        logger.error("Database operation failed: %s", e)
        raise PersistenceError() from e


def _to_record(row: dict[str, Any]) -> SignupRecord:
    """Rebuild the aggregate from a stored row (values are already canonical)."""
    return SignupRecord(
        id=SignupId(str(row["id"])),
        email=Email(row["email"]),
        name=row["name"],
        surname=row["surname"],
        token=ApprovalToken(str(row["token"])),
        status=SignupStatus(row["status"]),
        created_at=row["created_at"],
        approved_at=row["approved_at"],
        approved_by=AdminId(str(row["approved_by"])) if row["approved_by"] else None,
        rejected_at=row["rejected_at"],
        rejected_by=AdminId(str(row["rejected_by"])) if row["rejected_by"] else None,
        ip_address=row["ip_address"],
        user_agent=row["user_agent"],
        token_used_at=row["token_used_at"],
    )


class PostgresSignupStore:
    """
    Implements SignupStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 AsyncConnectionPool for database connections
        """
        self._pool = pool

    async def save(self, record: SignupRecord) -> None:
        sql = f"""
            INSERT INTO signups ({_SIGNUP_COLUMNS})
            VALUES (%(id)s, %(email)s, %(name)s, %(surname)s, %(token)s, %(status)s,
                    %(created_at)s, %(approved_at)s, %(approved_by)s, %(rejected_at)s,
                    %(rejected_by)s, %(ip_address)s, %(user_agent)s, %(token_used_at)s)
        """
        async with _connection(self._pool) as conn:
            await conn.execute(sql, record.to_primitives())
            await conn.commit()

    async def update(self, record: SignupRecord) -> None:
        sql = """
            UPDATE signups
            SET status = %(status)s,
                approved_at = %(approved_at)s,
                approved_by = %(approved_by)s,
                rejected_at = %(rejected_at)s,
                rejected_by = %(rejected_by)s,
                token_used_at = COALESCE(token_used_at, %(token_used_at)s)
            WHERE id = %(id)s
        """
        async with _connection(self._pool) as conn:
            cursor = await conn.execute(sql, record.to_primitives())
            await conn.commit()
            if cursor.rowcount != 1:
                logger.error("Update matched no signup row for id %s", record.id)
                raise PersistenceError()

    async def find_by_id(self, signup_id: SignupId) -> SignupRecord | None:
        sql = f"SELECT {_SIGNUP_COLUMNS} FROM signups WHERE id = %s"
        return await self._fetch_one(sql, (signup_id.value,))

    async def find_by_email(self, email: Email) -> SignupRecord | None:
        sql = f"""
            SELECT {_SIGNUP_COLUMNS} FROM signups
            WHERE email = %s
            ORDER BY created_at DESC
            LIMIT 1
        """
        return await self._fetch_one(sql, (email.value,))

    async def find_by_token(self, token: ApprovalToken) -> SignupRecord | None:
        sql = f"SELECT {_SIGNUP_COLUMNS} FROM signups WHERE token = %s"
        return await self._fetch_one(sql, (token.value,))

    async def find_by_status(
        self, status: SignupStatus, limit: int, offset: int
    ) -> list[SignupRecord]:
        sql = f"""
            SELECT {_SIGNUP_COLUMNS} FROM signups
            WHERE status = %s
            ORDER BY created_at DESC
            LIMIT %s OFFSET %s
        """
        async with _connection(self._pool) as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(sql, (status.value, limit, offset))
                rows = await cursor.fetchall()
        return [_to_record(row) for row in rows]

    async def count_by_status(self, status: SignupStatus) -> int:
        sql = "SELECT COUNT(*) FROM signups WHERE status = %s"
        async with _connection(self._pool) as conn:
            cursor = await conn.execute(sql, (status.value,))
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def delete_older_than(self, days: int) -> int:
        sql = "DELETE FROM signups WHERE created_at < NOW() - (%s * INTERVAL '1 day')"
        async with _connection(self._pool) as conn:
            cursor = await conn.execute(sql, (days,))
            await conn.commit()
            return cursor.rowcount

    async def _fetch_one(self, sql: str, params: tuple[Any, ...]) -> SignupRecord | None:
        async with _connection(self._pool) as conn:
            async with conn.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(sql, params)
                row = await cursor.fetchone()
        return _to_record(row) if row is not None else None


class PostgresRateStore:
    """Implements RateStore protocol via psycopg3."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def sum_requests(self, scope: RateScope, identifier: str, since: datetime) -> int:
        sql = """
            SELECT COALESCE(SUM(request_count), 0)
            FROM signup_rate_limits
            WHERE scope = %s AND identifier = %s AND window_start >= %s
        """
        async with _connection(self._pool) as conn:
            cursor = await conn.execute(sql, (scope.value, identifier, since))
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def record_request(self, scope: RateScope, identifier: str, at: datetime) -> None:
        sql = """
            INSERT INTO signup_rate_limits
                (scope, identifier, window_start, request_count, last_request_at)
            VALUES (%s, %s, %s, 1, %s)
            ON CONFLICT (scope, identifier, window_start) DO UPDATE
            SET request_count = signup_rate_limits.request_count + 1,
                last_request_at = EXCLUDED.last_request_at
        """
        async with _connection(self._pool) as conn:
            await conn.execute(sql, (scope.value, identifier, scope.window_start(at), at))
            await conn.commit()


async def run_migrations(pool: AsyncConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 AsyncConnectionPool instance
    """
    # Structure: src/membergate/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parents[4] / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            async with pool.connection() as conn:
                await conn.execute(sql_content)
                await conn.commit()

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
