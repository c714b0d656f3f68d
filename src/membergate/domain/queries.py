"""
Query and retention flows - Read access and age-based purge.

No authorization happens here; callers gate access to administrators.
"""

import logging
from dataclasses import dataclass

from .exceptions import NotFoundError, ValidationError
from .ports import SignupStore
from .signup import SignupRecord
from .values import SignupId, SignupStatus

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_RETENTION_DAYS = 90


@dataclass(frozen=True)
class SignupPage:
    """One page of records plus the total for the status."""

    records: list[SignupRecord]
    total: int
    limit: int
    offset: int


@dataclass
class QueryFlow:
    """Paginated listing and lookup of signup records."""

    store: SignupStore

    async def list_by_status(
        self, status: str, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0
    ) -> list[SignupRecord]:
        """
        List records with ``status``, newest first.

        Raises:
            InvalidStatus: status is not pending, approved or rejected
            ValidationError: limit outside 1..100 or negative offset
        """
        parsed = SignupStatus.parse(status)
        _check_page(limit, offset)
        return await self.store.find_by_status(parsed, limit, offset)

    async def count_by_status(self, status: str) -> int:
        return await self.store.count_by_status(SignupStatus.parse(status))

    async def page(
        self, status: str, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0
    ) -> SignupPage:
        records = await self.list_by_status(status, limit, offset)
        total = await self.count_by_status(status)
        return SignupPage(records=records, total=total, limit=limit, offset=offset)

    async def get(self, signup_id: str) -> SignupRecord:
        record = await self.store.find_by_id(SignupId.parse(signup_id))
        if record is None:
            raise NotFoundError()
        return record


def _check_page(limit: int, offset: int) -> None:
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    if offset < 0:
        raise ValidationError("offset must not be negative")


@dataclass
class RetentionFlow:
    """Age-based purge of signup records regardless of status."""

    store: SignupStore
    retention_days: int = DEFAULT_RETENTION_DAYS

    async def purge(self, days: int | None = None) -> int:
        days = self.retention_days if days is None else days
        if days < 1:
            raise ValidationError("Retention must be at least 1 day")
        deleted = await self.store.delete_older_than(days)
        logger.info("Purged %d signup record(s) older than %d days", deleted, days)
        return deleted
