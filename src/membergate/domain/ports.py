"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols through
structural subtyping. Every I/O port is asynchronous.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from .signup import SignupRecord
from .values import ApprovalToken, Email, RateScope, SignupId, SignupStatus


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate guard check."""

    allowed: bool
    retry_after: int | None = None
    message: str | None = None


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Return the current timezone-aware UTC time."""
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class SignupStore(Protocol):
    """Port interface for signup record persistence."""

    async def save(self, record: SignupRecord) -> None:
        """
        Insert a new record.

        Raises:
            PersistenceError: on any storage failure
        """
        ...

    async def update(self, record: SignupRecord) -> None:
        """
        Persist the transition fields of an existing record.

        Only status, approval, rejection and token_used_at fields are
        written; identity and provenance are immutable.

        Raises:
            PersistenceError: on any storage failure
        """
        ...

    async def find_by_id(self, signup_id: SignupId) -> SignupRecord | None:
        ...

    async def find_by_email(self, email: Email) -> SignupRecord | None:
        """Return the most recently created record for the email, if any."""
        ...

    async def find_by_token(self, token: ApprovalToken) -> SignupRecord | None:
        ...

    async def find_by_status(
        self, status: SignupStatus, limit: int, offset: int
    ) -> list[SignupRecord]:
        """Return a page of records with the status, newest first by created_at."""
        ...

    async def count_by_status(self, status: SignupStatus) -> int:
        ...

    async def delete_older_than(self, days: int) -> int:
        """Delete records created more than ``days`` ago. Returns the count."""
        ...


class RateStore(Protocol):
    """
    Port interface for rate window counters.

    Windows are keyed by (scope, identifier, window_start). The store
    owns bucketing: ``record_request`` increments the bucket given by
    ``scope.window_start(at)``.
    """

    async def sum_requests(self, scope: RateScope, identifier: str, since: datetime) -> int:
        """Sum request counts of windows whose start is at or after ``since``."""
        ...

    async def record_request(self, scope: RateScope, identifier: str, at: datetime) -> None:
        ...


class IdentityIssuer(Protocol):
    """Port interface for the credential-issuing identity provider."""

    async def issue_activation_link(self, email: Email) -> str:
        """
        Mint a one-time activation link for an approved email.

        Raises:
            UpstreamError: if the provider refuses or fails
        """
        ...

    async def account_exists(self, email: Email) -> bool:
        """Return True if an active account already uses this email."""
        ...


class Notifier(Protocol):
    """Port interface for best-effort email delivery."""

    async def notify_admins(
        self, record: SignupRecord, approve_url: str, reject_url: str
    ) -> None:
        """Alert administrators of a new request with review links."""
        ...

    async def send_approval(self, email: Email, activation_link: str) -> None:
        ...

    async def send_rejection(self, email: Email) -> None:
        """Send the generic rejection notice. No reason is disclosed."""
        ...
