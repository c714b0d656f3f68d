"""
Signup record aggregate - Membership request state and token lifecycle.

A SignupRecord is immutable. Each transition returns a new instance and
leaves the original untouched, so a flow can keep the pre-transition
state around until the store confirms the update.

Token Lifecycle
===============

- The approval token is generated with the record and is valid for
  ``token_ttl_hours`` (168 by default) counted from ``created_at``.
- Approval does NOT spend the token: it authorizes issuance of an
  activation link, and the token stays valid for the later redemption.
- Rejection spends the token immediately (``token_used_at`` = rejection
  instant), closing the request for good.
- ``token_used_at`` is never cleared once set.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from .exceptions import AlreadyUsed, ExpiredError
from .values import AdminId, ApprovalToken, Email, SignupId, SignupStatus

DEFAULT_TOKEN_TTL_HOURS = 168


@dataclass(frozen=True)
class SignupRecord:
    """Aggregate root tracking one membership request end-to-end."""

    id: SignupId
    email: Email
    name: str
    token: ApprovalToken
    created_at: datetime
    status: SignupStatus = SignupStatus.PENDING
    surname: str | None = None
    approved_at: datetime | None = None
    approved_by: AdminId | None = None
    rejected_at: datetime | None = None
    rejected_by: AdminId | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    token_used_at: datetime | None = None

    @classmethod
    def create(
        cls,
        email: Email,
        name: str,
        now: datetime,
        surname: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> "SignupRecord":
        """Build a fresh pending record with a new id and token."""
        surname = surname.strip() if surname else None
        return cls(
            id=SignupId.generate(),
            email=email,
            name=name.strip(),
            surname=surname or None,
            token=ApprovalToken.generate(),
            created_at=now,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    @property
    def is_token_used(self) -> bool:
        return self.token_used_at is not None

    def is_token_expired(self, now: datetime, ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS) -> bool:
        """True when ``now`` is strictly past ``created_at + ttl_hours``."""
        return now > self.created_at + timedelta(hours=ttl_hours)

    def is_token_valid(self, now: datetime, ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS) -> bool:
        return not self.is_token_used and not self.is_token_expired(now, ttl_hours)

    def ensure_approvable(self, now: datetime, ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS) -> None:
        """
        Check the token and status gates for approval, in order.

        Raises:
            AlreadyUsed: token already spent
            ExpiredError: token older than ``ttl_hours``
            AlreadyProcessed: record is no longer pending
        """
        if self.is_token_used:
            raise AlreadyUsed()
        if self.is_token_expired(now, ttl_hours):
            raise ExpiredError()
        self.status.transition_to(SignupStatus.APPROVED)

    def ensure_rejectable(self) -> None:
        """
        Check the token and status gates for rejection.

        Expiry is deliberately not checked: an expired request can still be
        rejected.
        """
        if self.is_token_used:
            raise AlreadyUsed()
        self.status.transition_to(SignupStatus.REJECTED)

    def approve(self, admin_id: AdminId, now: datetime) -> "SignupRecord":
        """Return the approved state. ``token_used_at`` is left untouched."""
        return replace(
            self,
            status=self.status.transition_to(SignupStatus.APPROVED),
            approved_at=now,
            approved_by=admin_id,
        )

    def reject(self, admin_id: AdminId, now: datetime) -> "SignupRecord":
        """Return the rejected state with the token spent at ``now``."""
        return replace(
            self,
            status=self.status.transition_to(SignupStatus.REJECTED),
            rejected_at=now,
            rejected_by=admin_id,
            token_used_at=self.token_used_at or now,
        )

    def to_primitives(self) -> dict[str, object]:
        """Flatten to the persisted field contract."""
        return {
            "id": self.id.value,
            "email": self.email.value,
            "name": self.name,
            "surname": self.surname,
            "token": self.token.value,
            "status": self.status.value,
            "created_at": self.created_at,
            "approved_at": self.approved_at,
            "approved_by": self.approved_by.value if self.approved_by else None,
            "rejected_at": self.rejected_at,
            "rejected_by": self.rejected_by.value if self.rejected_by else None,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "token_used_at": self.token_used_at,
        }
