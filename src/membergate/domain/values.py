"""
Value objects - Validated, canonical primitives of the signup domain.

Each value object is immutable and can only be built through its
``parse`` classmethod (or a generator), so any instance in hand is
already normalized. Parsing never performs I/O.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from .exceptions import (
    AlreadyProcessed,
    InvalidAdmin,
    InvalidFormat,
    InvalidSignupId,
    InvalidStatus,
    InvalidToken,
)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


@dataclass(frozen=True)
class Email:
    """Email address normalized to lowercase with surrounding whitespace removed."""

    value: str

    @classmethod
    def parse(cls, raw: object) -> "Email":
        if not isinstance(raw, str):
            raise InvalidFormat()
        normalized = raw.strip().lower()
        if not _EMAIL_PATTERN.match(normalized):
            raise InvalidFormat()
        return cls(normalized)

    def __str__(self) -> str:
        return self.value


def _parse_uuid(raw: object, *, strip: bool = True) -> str | None:
    if not isinstance(raw, str):
        return None
    candidate = raw.strip() if strip else raw
    if not _UUID_PATTERN.match(candidate):
        return None
    return candidate.lower()


@dataclass(frozen=True)
class ApprovalToken:
    """
    Single-use secret embedded in approve/reject links.

    Canonical form is a lowercase UUID, so comparison is case-insensitive
    once parsed.
    """

    value: str

    @classmethod
    def generate(cls) -> "ApprovalToken":
        return cls(str(uuid.uuid4()))

    @classmethod
    def parse(cls, raw: object) -> "ApprovalToken":
        value = _parse_uuid(raw)
        if value is None:
            raise InvalidToken()
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SignupId:
    """Opaque identity of a signup record."""

    value: str

    @classmethod
    def generate(cls) -> "SignupId":
        return cls(str(uuid.uuid4()))

    @classmethod
    def parse(cls, raw: object) -> "SignupId":
        value = _parse_uuid(raw)
        if value is None:
            raise InvalidSignupId()
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AdminId:
    """Identity of the administrator acting on a request. Must be a UUID."""

    value: str

    @classmethod
    def parse(cls, raw: object) -> "AdminId":
        # No stripping: surrounding whitespace makes the id malformed.
        value = _parse_uuid(raw, strip=False)
        if value is None:
            raise InvalidAdmin()
        return cls(value)

    def __str__(self) -> str:
        return self.value


class SignupStatus(str, Enum):
    """
    Lifecycle status of a signup record.

    State Transitions (forward-only):
    - PENDING -> APPROVED (approval flow)
    - PENDING -> REJECTED (rejection flow)

    Terminal States:
    - APPROVED: activation link issued, token left valid for redemption
    - REJECTED: token consumed, request permanently closed
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, raw: object) -> "SignupStatus":
        if not isinstance(raw, str):
            raise InvalidStatus()
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise InvalidStatus() from None

    @property
    def is_pending(self) -> bool:
        return self is SignupStatus.PENDING

    def can_transition_to(self, target: "SignupStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS.get(self, frozenset())

    def transition_to(self, target: "SignupStatus") -> "SignupStatus":
        """Return ``target`` if the move is allowed, else raise AlreadyProcessed."""
        if not self.can_transition_to(target):
            raise AlreadyProcessed()
        return target


_ALLOWED_TRANSITIONS: dict[SignupStatus, frozenset[SignupStatus]] = {
    SignupStatus.PENDING: frozenset({SignupStatus.APPROVED, SignupStatus.REJECTED}),
}


class RateScope(str, Enum):
    """
    Dimension a submission is counted under.

    Windows are fixed buckets: one hour for IP addresses, one UTC day
    for email addresses.
    """

    IP = "ip"
    EMAIL = "email"

    @property
    def lookback(self) -> timedelta:
        return timedelta(hours=1) if self is RateScope.IP else timedelta(hours=24)

    @property
    def retry_after_seconds(self) -> int:
        return int(self.lookback.total_seconds())

    def window_start(self, at: datetime) -> datetime:
        """Start of the bucket containing ``at``."""
        if self is RateScope.IP:
            return at.replace(minute=0, second=0, microsecond=0)
        return at.replace(hour=0, minute=0, second=0, microsecond=0)
