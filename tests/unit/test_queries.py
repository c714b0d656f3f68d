"""
Unit tests for QueryFlow and RetentionFlow.

Tests verify:
- Listing is newest first and paginated
- Status and page arguments are validated
- Lookup by id
- Age-based purge regardless of status
"""

from datetime import timedelta

import pytest

from membergate.adapters.repository.memory import InMemorySignupStore
from membergate.domain.exceptions import (
    InvalidSignupId,
    InvalidStatus,
    NotFoundError,
    ValidationError,
)
from membergate.domain.queries import QueryFlow, RetentionFlow
from membergate.domain.signup import SignupRecord
from membergate.domain.values import AdminId, Email, SignupId, SignupStatus

ADMIN = AdminId.parse("550e8400-e29b-41d4-a716-446655440000")


async def seed(store: InMemorySignupStore, clock, count: int) -> list[SignupRecord]:
    """Save ``count`` pending records one minute apart, oldest first."""
    records = []
    for i in range(count):
        record = SignupRecord.create(
            Email.parse(f"user{i}@example.com"), "Member", clock.now() + timedelta(minutes=i)
        )
        await store.save(record)
        records.append(record)
    return records


@pytest.mark.asyncio
class TestListByStatus:
    """Tests for list_by_status and page."""

    async def test_newest_first(
        self, query_flow: QueryFlow, signup_store: InMemorySignupStore, clock
    ) -> None:
        records = await seed(signup_store, clock, 3)

        listed = await query_flow.list_by_status("pending")

        assert [r.id for r in listed] == [r.id for r in reversed(records)]

    async def test_filters_by_status(
        self, query_flow: QueryFlow, signup_store: InMemorySignupStore, clock
    ) -> None:
        first, second = await seed(signup_store, clock, 2)
        await signup_store.update(first.approve(ADMIN, clock.now()))

        approved = await query_flow.list_by_status("APPROVED")
        pending = await query_flow.list_by_status("pending")

        assert [r.id for r in approved] == [first.id]
        assert [r.id for r in pending] == [second.id]

    async def test_limit_and_offset(
        self, query_flow: QueryFlow, signup_store: InMemorySignupStore, clock
    ) -> None:
        records = await seed(signup_store, clock, 5)

        listed = await query_flow.list_by_status("pending", limit=2, offset=1)

        assert [r.id for r in listed] == [records[3].id, records[2].id]

    async def test_page_carries_total(
        self, query_flow: QueryFlow, signup_store: InMemorySignupStore, clock
    ) -> None:
        await seed(signup_store, clock, 5)

        page = await query_flow.page("pending", limit=2)

        assert len(page.records) == 2
        assert page.total == 5
        assert (page.limit, page.offset) == (2, 0)

    async def test_invalid_status(self, query_flow: QueryFlow) -> None:
        with pytest.raises(InvalidStatus):
            await query_flow.list_by_status("expired")

    @pytest.mark.parametrize("limit,offset", [(0, 0), (101, 0), (10, -1)])
    async def test_invalid_page(self, query_flow: QueryFlow, limit: int, offset: int) -> None:
        with pytest.raises(ValidationError):
            await query_flow.list_by_status("pending", limit=limit, offset=offset)


@pytest.mark.asyncio
class TestCountAndGet:
    """Tests for count_by_status and get."""

    async def test_count_by_status(
        self, query_flow: QueryFlow, signup_store: InMemorySignupStore, clock
    ) -> None:
        records = await seed(signup_store, clock, 3)
        await signup_store.update(records[0].reject(ADMIN, clock.now()))

        assert await query_flow.count_by_status("pending") == 2
        assert await query_flow.count_by_status("rejected") == 1
        assert await query_flow.count_by_status("approved") == 0

    async def test_get_by_id(
        self, query_flow: QueryFlow, signup_store: InMemorySignupStore, clock
    ) -> None:
        (record,) = await seed(signup_store, clock, 1)

        assert await query_flow.get(record.id.value.upper()) == record

    async def test_get_unknown_id(self, query_flow: QueryFlow) -> None:
        with pytest.raises(NotFoundError):
            await query_flow.get(SignupId.generate().value)

    async def test_get_malformed_id(self, query_flow: QueryFlow) -> None:
        with pytest.raises(InvalidSignupId):
            await query_flow.get("42")


@pytest.mark.asyncio
class TestRetention:
    """Tests for RetentionFlow.purge."""

    async def test_purges_records_older_than_retention(
        self, retention_flow: RetentionFlow, signup_store: InMemorySignupStore, clock
    ) -> None:
        old = SignupRecord.create(
            Email.parse("old@example.com"), "Olivia", clock.now() - timedelta(days=91)
        )
        rejected_old = old.reject(ADMIN, clock.now() - timedelta(days=90, hours=1))
        await signup_store.save(rejected_old)
        (recent,) = await seed(signup_store, clock, 1)

        deleted = await retention_flow.purge()

        assert deleted == 1
        assert signup_store.all() == [recent]

    async def test_explicit_days_override(
        self, retention_flow: RetentionFlow, signup_store: InMemorySignupStore, clock
    ) -> None:
        record = SignupRecord.create(
            Email.parse("a@example.com"), "Ann", clock.now() - timedelta(days=3)
        )
        await signup_store.save(record)

        assert await retention_flow.purge(days=2) == 1

    @pytest.mark.parametrize("days", [0, -5])
    async def test_rejects_non_positive_days(
        self, retention_flow: RetentionFlow, days: int
    ) -> None:
        with pytest.raises(ValidationError):
            await retention_flow.purge(days=days)
