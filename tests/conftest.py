"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- In-memory stores and the rate guard
- Mocked identity issuer and notifier ports
- Fully wired domain flows
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from membergate.adapters.repository.memory import InMemoryRateStore, InMemorySignupStore
from membergate.domain.background import BackgroundTasks
from membergate.domain.queries import QueryFlow, RetentionFlow
from membergate.domain.rate_guard import RateGuard
from membergate.domain.review import ApprovalFlow, RejectionFlow
from membergate.domain.submission import ReviewLinks, SubmissionFlow

ADMIN_ID = "550e8400-e29b-41d4-a716-446655440000"
ACTIVATION_LINK = "https://id.example.com/auth/set-password/secret-abc"
APP_URL = "https://members.example.com"


class FixedClock:
    """Clock whose time only moves when a test moves it."""

    def __init__(self, now: datetime) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 15, 12, 30, tzinfo=timezone.utc))


@pytest.fixture
def signup_store(clock: FixedClock) -> InMemorySignupStore:
    return InMemorySignupStore(clock=clock)


@pytest.fixture
def rate_store() -> InMemoryRateStore:
    return InMemoryRateStore()


@pytest.fixture
def rate_guard(rate_store: InMemoryRateStore, clock: FixedClock) -> RateGuard:
    return RateGuard(store=rate_store, ip_limit_per_hour=5, email_limit_per_day=1, clock=clock)


@pytest.fixture
def issuer() -> AsyncMock:
    """IdentityIssuer mock: no existing accounts, issuance succeeds."""
    mock = AsyncMock()
    mock.account_exists.return_value = False
    mock.issue_activation_link.return_value = ACTIVATION_LINK
    return mock


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def tasks() -> BackgroundTasks:
    return BackgroundTasks()


@pytest.fixture
def submission_flow(
    signup_store: InMemorySignupStore,
    rate_guard: RateGuard,
    issuer: AsyncMock,
    notifier: AsyncMock,
    clock: FixedClock,
    tasks: BackgroundTasks,
) -> SubmissionFlow:
    return SubmissionFlow(
        store=signup_store,
        rate_guard=rate_guard,
        issuer=issuer,
        notifier=notifier,
        links=ReviewLinks(APP_URL),
        clock=clock,
        tasks=tasks,
    )


@pytest.fixture
def approval_flow(
    signup_store: InMemorySignupStore,
    issuer: AsyncMock,
    notifier: AsyncMock,
    clock: FixedClock,
    tasks: BackgroundTasks,
) -> ApprovalFlow:
    return ApprovalFlow(
        store=signup_store, issuer=issuer, notifier=notifier, clock=clock, tasks=tasks
    )


@pytest.fixture
def rejection_flow(
    signup_store: InMemorySignupStore,
    notifier: AsyncMock,
    clock: FixedClock,
    tasks: BackgroundTasks,
) -> RejectionFlow:
    return RejectionFlow(store=signup_store, notifier=notifier, clock=clock, tasks=tasks)


@pytest.fixture
def query_flow(signup_store: InMemorySignupStore) -> QueryFlow:
    return QueryFlow(store=signup_store)


@pytest.fixture
def retention_flow(signup_store: InMemorySignupStore) -> RetentionFlow:
    return RetentionFlow(store=signup_store, retention_days=90)
