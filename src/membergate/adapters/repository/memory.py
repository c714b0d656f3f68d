"""
In-memory repository adapters - Implement SignupStore and RateStore.

Process-local stores for development and tests. They mirror the
PostgreSQL adapters' semantics, including the absence of any atomic
guard on pending emails. State belongs to the instance, never to the
module.
"""

from collections import defaultdict
from dataclasses import replace
from datetime import datetime, timedelta

from membergate.domain.exceptions import PersistenceError
from membergate.domain.ports import Clock, SystemClock
from membergate.domain.signup import SignupRecord
from membergate.domain.values import ApprovalToken, Email, RateScope, SignupId, SignupStatus


class InMemorySignupStore:
    """Implements SignupStore protocol over a dict keyed by record id."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._records: dict[str, SignupRecord] = {}
        self._clock = clock or SystemClock()

    async def save(self, record: SignupRecord) -> None:
        if record.id.value in self._records:
            raise PersistenceError("Duplicate signup id")
        if any(r.token == record.token for r in self._records.values()):
            raise PersistenceError("Duplicate approval token")
        self._records[record.id.value] = record

    async def update(self, record: SignupRecord) -> None:
        current = self._records.get(record.id.value)
        if current is None:
            raise PersistenceError("Signup record not found for update")
        # token_used_at is never cleared once stored.
        token_used_at = current.token_used_at or record.token_used_at
        self._records[record.id.value] = replace(record, token_used_at=token_used_at)

    async def find_by_id(self, signup_id: SignupId) -> SignupRecord | None:
        return self._records.get(signup_id.value)

    async def find_by_email(self, email: Email) -> SignupRecord | None:
        matches = [r for r in self._records.values() if r.email == email]
        return max(matches, key=lambda r: r.created_at, default=None)

    async def find_by_token(self, token: ApprovalToken) -> SignupRecord | None:
        return next((r for r in self._records.values() if r.token == token), None)

    async def find_by_status(
        self, status: SignupStatus, limit: int, offset: int
    ) -> list[SignupRecord]:
        matches = sorted(
            (r for r in self._records.values() if r.status is status),
            key=lambda r: r.created_at,
            reverse=True,
        )
        return matches[offset : offset + limit]

    async def count_by_status(self, status: SignupStatus) -> int:
        return sum(1 for r in self._records.values() if r.status is status)

    async def delete_older_than(self, days: int) -> int:
        cutoff = self._clock.now() - timedelta(days=days)
        stale = [key for key, r in self._records.items() if r.created_at < cutoff]
        for key in stale:
            del self._records[key]
        return len(stale)

    def all(self) -> list[SignupRecord]:
        """Snapshot of every stored record, for inspection."""
        return list(self._records.values())


class InMemoryRateStore:
    """Implements RateStore protocol with per-instance window counters."""

    def __init__(self) -> None:
        self._windows: dict[tuple[RateScope, str, datetime], int] = defaultdict(int)

    async def sum_requests(self, scope: RateScope, identifier: str, since: datetime) -> int:
        return sum(
            count
            for (s, ident, start), count in self._windows.items()
            if s is scope and ident == identifier and start >= since
        )

    async def record_request(self, scope: RateScope, identifier: str, at: datetime) -> None:
        self._windows[(scope, identifier, scope.window_start(at))] += 1

    def windows(self) -> dict[tuple[RateScope, str, datetime], int]:
        return dict(self._windows)
