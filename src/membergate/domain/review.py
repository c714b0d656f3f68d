"""
Review flows - Administrator approval and rejection by token.

Approval and rejection are asymmetric:

    Approval   pending -> approved   token stays VALID (two-phase design:
                                      approval authorizes issuance, the user
                                      spends the token when redeeming the link)
    Rejection  pending -> rejected   token SPENT immediately

Approval also checks the token TTL; rejection does not, so an expired
request can still be closed.

Partial failure window: approval mints the activation link before the
store update. If the update fails, the link is already out while the
record still reads pending. This is surfaced as UpdateFailed and not
rolled back.
"""

import logging
from dataclasses import dataclass, field

from .background import BackgroundTasks
from .exceptions import (
    IssuanceFailed,
    NotFoundError,
    PersistenceError,
    UpdateFailed,
)
from .ports import Clock, IdentityIssuer, Notifier, SignupStore, SystemClock
from .signup import DEFAULT_TOKEN_TTL_HOURS, SignupRecord
from .values import AdminId, ApprovalToken

logger = logging.getLogger(__name__)


async def _find_by_token(store: SignupStore, raw_token: str) -> SignupRecord:
    token = ApprovalToken.parse(raw_token)
    record = await store.find_by_token(token)
    if record is None:
        raise NotFoundError()
    return record


async def _persist_transition(store: SignupStore, record: SignupRecord) -> None:
    try:
        await store.update(record)
    except PersistenceError as exc:
        logger.error("Failed to update signup %s to %s: %s", record.id, record.status.value, exc)
        raise UpdateFailed() from exc


@dataclass
class ApprovalFlow:
    """Approve a pending request and issue its activation link."""

    store: SignupStore
    issuer: IdentityIssuer
    notifier: Notifier
    token_ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS
    clock: Clock = field(default_factory=SystemClock)
    tasks: BackgroundTasks = field(default_factory=BackgroundTasks)

    async def approve(self, token: str, admin_id: str) -> str:
        """
        Approve the request identified by ``token``.

        Args:
            token: Approval token from the admin link (any case)
            admin_id: UUID of the approving administrator

        Returns:
            The activation link minted by the identity issuer

        Raises:
            InvalidToken: token is not a UUID
            NotFoundError: no record for the token
            AlreadyUsed: token already spent
            ExpiredError: token older than the TTL
            AlreadyProcessed: record is not pending
            InvalidAdmin: admin id is not a UUID
            IssuanceFailed: identity issuer failed, record untouched
            UpdateFailed: store update failed after the link was minted
        """
        record = await _find_by_token(self.store, token)
        record.ensure_approvable(self.clock.now(), self.token_ttl_hours)
        admin = AdminId.parse(admin_id)

        try:
            activation_link = await self.issuer.issue_activation_link(record.email)
        except Exception as exc:
            logger.error("Activation link issuance failed for signup %s: %s", record.id, exc)
            raise IssuanceFailed() from exc
        if not activation_link:
            logger.error("Identity issuer returned no link for signup %s", record.id)
            raise IssuanceFailed()

        approved = record.approve(admin, self.clock.now())
        await _persist_transition(self.store, approved)

        logger.info("Signup %s approved by %s", approved.id, admin)
        self.tasks.spawn(
            self.notifier.send_approval(approved.email, activation_link),
            name=f"send-approval-{approved.id}",
        )
        return activation_link


@dataclass
class RejectionFlow:
    """Reject a pending request and spend its token."""

    store: SignupStore
    notifier: Notifier
    clock: Clock = field(default_factory=SystemClock)
    tasks: BackgroundTasks = field(default_factory=BackgroundTasks)

    async def reject(self, token: str, admin_id: str) -> None:
        """
        Reject the request identified by ``token``.

        Raises:
            InvalidToken, NotFoundError, AlreadyUsed, AlreadyProcessed,
            InvalidAdmin, UpdateFailed
        """
        record = await _find_by_token(self.store, token)
        record.ensure_rejectable()
        admin = AdminId.parse(admin_id)

        rejected = record.reject(admin, self.clock.now())
        await _persist_transition(self.store, rejected)

        logger.info("Signup %s rejected by %s", rejected.id, admin)
        self.tasks.spawn(
            self.notifier.send_rejection(rejected.email),
            name=f"send-rejection-{rejected.id}",
        )
