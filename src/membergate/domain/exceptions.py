"""
Domain exceptions - Semantic error types for signup approval.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Every exception carries a short message that is safe to show to
the caller.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .values import RateScope


class SignupError(Exception):
    """Base class for signup approval domain errors."""

    default_message = "Signup request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SignupError):
    """Input failed a format check. Always raised before any I/O."""

    default_message = "Invalid input"


class InvalidFormat(ValidationError):
    default_message = "Invalid email format"


class InvalidName(ValidationError):
    default_message = "Name must be at least 2 characters"


class InvalidToken(ValidationError):
    default_message = "Invalid approval token format"


class InvalidAdmin(ValidationError):
    default_message = "Invalid admin ID"


class InvalidStatus(ValidationError):
    default_message = "Invalid status filter"


class InvalidSignupId(ValidationError):
    default_message = "Invalid signup request ID"


class NotFoundError(SignupError):
    """No record for the given id or token."""

    default_message = "Signup request not found"


class ConflictError(SignupError):
    """Request conflicts with the current state of a record."""

    default_message = "Signup request conflict"


class DuplicateRequest(ConflictError):
    default_message = "A signup request with this email already exists"


class AccountExists(ConflictError):
    default_message = "An account with this email already exists"


class AlreadyProcessed(ConflictError):
    default_message = "Signup request already processed"


class AlreadyUsed(ConflictError):
    default_message = "This approval link has already been used"


class ExpiredError(SignupError):
    """Approval token is past its TTL."""

    default_message = "Approval token has expired"


class RateLimitedError(SignupError):
    """Submission denied by the rate guard."""

    default_message = "Too many signup requests"

    def __init__(
        self, scope: "RateScope", retry_after: int, message: str | None = None
    ) -> None:
        self.scope = scope
        self.retry_after = retry_after
        super().__init__(message)


class UpstreamError(SignupError):
    """Identity issuer or notifier failure."""

    default_message = "Upstream service failed"


class IssuanceFailed(UpstreamError):
    default_message = "Failed to issue activation link"


class PersistenceError(SignupError):
    """Store read or write failure."""

    default_message = "Storage failure"


class PersistenceFailed(PersistenceError):
    default_message = "Failed to save signup request"


class UpdateFailed(PersistenceError):
    default_message = "Failed to update signup status"
