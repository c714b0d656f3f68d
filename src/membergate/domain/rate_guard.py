"""
Rate guard - Submission throttling by IP address and email.

Counters live in an injected RateStore keyed by (scope, identifier,
window_start); the guard itself holds no counter state.

Policy:
- IP: at most ``ip_limit_per_hour`` accepted submissions in the last hour.
- Email: at most ``email_limit_per_day`` accepted submissions in the last 24h.
- A failing store read fails OPEN: the submission is allowed and a
  warning is logged.
- ``record`` is separate from the checks and not atomic with them.
"""

import logging
from dataclasses import dataclass, field

from .ports import Clock, RateLimitResult, RateStore, SystemClock
from .values import Email, RateScope

logger = logging.getLogger(__name__)

DEFAULT_IP_LIMIT_PER_HOUR = 5
DEFAULT_EMAIL_LIMIT_PER_DAY = 1


@dataclass
class RateGuard:
    """Stateless rate guard over a RateStore."""

    store: RateStore
    ip_limit_per_hour: int = DEFAULT_IP_LIMIT_PER_HOUR
    email_limit_per_day: int = DEFAULT_EMAIL_LIMIT_PER_DAY
    clock: Clock = field(default_factory=SystemClock)

    async def check_ip_limit(self, ip_address: str) -> RateLimitResult:
        return await self._check(
            RateScope.IP,
            ip_address,
            self.ip_limit_per_hour,
            "Too many signup requests from this IP. "
            f"Limit: {self.ip_limit_per_hour} per hour.",
        )

    async def check_email_limit(self, email: Email) -> RateLimitResult:
        return await self._check(
            RateScope.EMAIL,
            email.value,
            self.email_limit_per_day,
            "Too many signup requests for this email. "
            f"Limit: {self.email_limit_per_day} per day.",
        )

    async def record(self, ip_address: str | None, email: Email | None = None) -> None:
        """Count one accepted submission against each known identifier."""
        now = self.clock.now()
        if ip_address:
            await self.store.record_request(RateScope.IP, ip_address, now)
        if email is not None:
            await self.store.record_request(RateScope.EMAIL, email.value, now)

    async def _check(
        self, scope: RateScope, identifier: str, limit: int, message: str
    ) -> RateLimitResult:
        since = self.clock.now() - scope.lookback
        try:
            total = await self.store.sum_requests(scope, identifier, since)
        except Exception:
            logger.warning(
                "Rate store read failed for %s limit, allowing request", scope.value, exc_info=True
            )
            return RateLimitResult(allowed=True)

        if total >= limit:
            logger.info("Rate limit reached: scope=%s total=%d limit=%d", scope.value, total, limit)
            return RateLimitResult(
                allowed=False, retry_after=scope.retry_after_seconds, message=message
            )
        return RateLimitResult(allowed=True)
