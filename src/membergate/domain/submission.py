"""
Submission flow - Intake of new membership requests.

Steps (first failure wins):
1. Email shape check and normalization       -> InvalidFormat
2. Name length check (>= 2 after trim)        -> InvalidName
3. Latest record for the email is pending     -> DuplicateRequest
4. Identity provider already has the account  -> AccountExists
5. IP rate limit (when an IP is known)        -> RateLimitedError(ip)
6. Email rate limit                           -> RateLimitedError(email)
7. New pending record with fresh id and token
8. Persist                                    -> PersistenceFailed
9. Record the submission in the rate windows
10. Detached admin notification with approve/reject links

Known race: the pending-email check (3) and the insert (8) are separate
store calls. Concurrent submissions for the same email can both pass
step 3 and both persist. The rate checks (5, 6) and the record (9) have
the same check-then-act shape. Neither is guarded by a lock.
"""

import logging
from dataclasses import dataclass, field

from .background import BackgroundTasks
from .exceptions import (
    AccountExists,
    DuplicateRequest,
    InvalidName,
    PersistenceError,
    PersistenceFailed,
    RateLimitedError,
)
from .ports import Clock, IdentityIssuer, Notifier, SignupStore, SystemClock
from .rate_guard import RateGuard
from .signup import SignupRecord
from .values import ApprovalToken, Email, RateScope, SignupId

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2


@dataclass(frozen=True)
class ReviewLinks:
    """Builds the admin approve/reject URLs that embed a record's token."""

    base_url: str

    def approve_url(self, token: ApprovalToken) -> str:
        return f"{self.base_url.rstrip('/')}/admin/signup-approval/approve/{token.value}"

    def reject_url(self, token: ApprovalToken) -> str:
        return f"{self.base_url.rstrip('/')}/admin/signup-approval/reject/{token.value}"


@dataclass
class SubmissionFlow:
    """
    Domain service for signup request submission.

    Orchestrates validation, duplicate and account checks, rate limiting,
    persistence and the admin alert.
    """

    store: SignupStore
    rate_guard: RateGuard
    issuer: IdentityIssuer
    notifier: Notifier
    links: ReviewLinks
    clock: Clock = field(default_factory=SystemClock)
    tasks: BackgroundTasks = field(default_factory=BackgroundTasks)

    async def submit(
        self,
        email: str,
        name: str,
        surname: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SignupId:
        """
        Submit a new membership request.

        Args:
            email: Requester's email address (will be normalized)
            name: Requester's name (trimmed, at least 2 characters)
            surname: Optional surname
            ip_address: Client IP, used for rate limiting and provenance
            user_agent: Client user agent, stored for provenance

        Returns:
            Id of the new pending record

        Raises:
            InvalidFormat, InvalidName: malformed input
            DuplicateRequest: a pending request already exists for the email
            AccountExists: the email already belongs to an account
            RateLimitedError: IP or email limit reached
            PersistenceFailed: the record could not be saved
        """
        parsed_email = Email.parse(email)
        if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
            raise InvalidName()

        existing = await self.store.find_by_email(parsed_email)
        if existing is not None and existing.status.is_pending:
            raise DuplicateRequest()

        if await self.issuer.account_exists(parsed_email):
            raise AccountExists()

        if ip_address:
            ip_limit = await self.rate_guard.check_ip_limit(ip_address)
            if not ip_limit.allowed:
                raise RateLimitedError(RateScope.IP, ip_limit.retry_after or 0, ip_limit.message)

        email_limit = await self.rate_guard.check_email_limit(parsed_email)
        if not email_limit.allowed:
            raise RateLimitedError(
                RateScope.EMAIL, email_limit.retry_after or 0, email_limit.message
            )

        record = SignupRecord.create(
            email=parsed_email,
            name=name,
            now=self.clock.now(),
            surname=surname,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        try:
            await self.store.save(record)
        except PersistenceError as exc:
            logger.error("Failed to save signup request %s: %s", record.id, exc)
            raise PersistenceFailed() from exc

        try:
            await self.rate_guard.record(ip_address, parsed_email)
        except Exception:
            logger.warning("Failed to record rate window for signup %s", record.id, exc_info=True)

        logger.info("Signup request %s submitted", record.id)
        self.tasks.spawn(
            self.notifier.notify_admins(
                record,
                self.links.approve_url(record.token),
                self.links.reject_url(record.token),
            ),
            name=f"notify-admins-{record.id}",
        )
        return record.id
