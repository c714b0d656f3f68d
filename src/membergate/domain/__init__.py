"""
Domain layer - Pure business logic with zero framework imports.

This package contains the signup approval state machine, its token
lifecycle and the submission rate guard. It defines its own port
interfaces for infrastructure abstraction.
"""

from .background import BackgroundTasks
from .exceptions import (
    AccountExists,
    AlreadyProcessed,
    AlreadyUsed,
    ConflictError,
    DuplicateRequest,
    ExpiredError,
    InvalidAdmin,
    InvalidFormat,
    InvalidName,
    InvalidSignupId,
    InvalidStatus,
    InvalidToken,
    IssuanceFailed,
    NotFoundError,
    PersistenceError,
    PersistenceFailed,
    RateLimitedError,
    SignupError,
    UpdateFailed,
    UpstreamError,
    ValidationError,
)
from .ports import (
    Clock,
    IdentityIssuer,
    Notifier,
    RateLimitResult,
    RateStore,
    SignupStore,
    SystemClock,
)
from .queries import QueryFlow, RetentionFlow, SignupPage
from .rate_guard import RateGuard
from .review import ApprovalFlow, RejectionFlow
from .signup import SignupRecord
from .submission import ReviewLinks, SubmissionFlow
from .values import AdminId, ApprovalToken, Email, RateScope, SignupId, SignupStatus

__all__ = [
    "AccountExists",
    "AdminId",
    "AlreadyProcessed",
    "AlreadyUsed",
    "ApprovalFlow",
    "ApprovalToken",
    "BackgroundTasks",
    "Clock",
    "ConflictError",
    "DuplicateRequest",
    "Email",
    "ExpiredError",
    "IdentityIssuer",
    "InvalidAdmin",
    "InvalidFormat",
    "InvalidName",
    "InvalidSignupId",
    "InvalidStatus",
    "InvalidToken",
    "IssuanceFailed",
    "NotFoundError",
    "Notifier",
    "PersistenceError",
    "PersistenceFailed",
    "QueryFlow",
    "RateGuard",
    "RateLimitResult",
    "RateLimitedError",
    "RateScope",
    "RateStore",
    "RejectionFlow",
    "RetentionFlow",
    "ReviewLinks",
    "SignupError",
    "SignupId",
    "SignupPage",
    "SignupRecord",
    "SignupStatus",
    "SignupStore",
    "SubmissionFlow",
    "SystemClock",
    "UpdateFailed",
    "UpstreamError",
    "ValidationError",
]
