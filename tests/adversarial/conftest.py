"""
Shared fixtures for adversarial tests.

Provides stores that yield to the event loop between reading and
returning, so concurrent flows interleave the way they would against a
networked database.
"""

import asyncio
from datetime import datetime

import pytest

from membergate.adapters.repository.memory import InMemoryRateStore, InMemorySignupStore
from membergate.domain.rate_guard import RateGuard
from membergate.domain.signup import SignupRecord
from membergate.domain.submission import ReviewLinks, SubmissionFlow
from membergate.domain.values import Email, RateScope

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


class YieldingSignupStore(InMemorySignupStore):
    """Signup store that suspends after each email lookup."""

    async def find_by_email(self, email: Email) -> SignupRecord | None:
        record = await super().find_by_email(email)
        await asyncio.sleep(0)
        return record


class YieldingRateStore(InMemoryRateStore):
    """Rate store that suspends after each window read."""

    async def sum_requests(self, scope: RateScope, identifier: str, since: datetime) -> int:
        total = await super().sum_requests(scope, identifier, since)
        await asyncio.sleep(0)
        return total


@pytest.fixture
def racy_signup_store(clock) -> YieldingSignupStore:
    return YieldingSignupStore(clock=clock)


@pytest.fixture
def racy_rate_store() -> YieldingRateStore:
    return YieldingRateStore()


@pytest.fixture
def racy_flow(
    racy_signup_store: YieldingSignupStore,
    racy_rate_store: YieldingRateStore,
    issuer,
    notifier,
    clock,
    tasks,
) -> SubmissionFlow:
    """Submission flow whose store calls interleave under asyncio.gather."""
    return SubmissionFlow(
        store=racy_signup_store,
        rate_guard=RateGuard(store=racy_rate_store, clock=clock),
        issuer=issuer,
        notifier=notifier,
        links=ReviewLinks("https://members.example.com"),
        clock=clock,
        tasks=tasks,
    )
