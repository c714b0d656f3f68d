"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging the emails it would send for demo purposes.
"""

import logging

from membergate.domain.signup import SignupRecord
from membergate.domain.values import Email

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - logs each message at INFO level.
    """

    def __init__(self, admin_emails: list[str] | None = None) -> None:
        """
        Args:
            admin_emails: Recipients of new-request alerts
        """
        self._admin_emails = [e.strip() for e in admin_emails or [] if e.strip()]

    async def notify_admins(
        self, record: SignupRecord, approve_url: str, reject_url: str
    ) -> None:
        """Log one alert line per configured administrator."""
        if not self._admin_emails:
            logger.warning("[ADMIN ALERT] No admin emails configured for signup %s", record.id)
            return

        full_name = f"{record.name} {record.surname or ''}".strip()
        for admin_email in self._admin_emails:
            logger.info(
                "[ADMIN ALERT] To: %s Request: %s <%s> Approve: %s Reject: %s",
                admin_email,
                full_name,
                record.email,
                approve_url,
                reject_url,
            )

    async def send_approval(self, email: Email, activation_link: str) -> None:
        logger.info("[APPROVED] Email: %s Link: %s", email, activation_link)

    async def send_rejection(self, email: Email) -> None:
        # Generic notice only, the admin's reasoning is never included.
        logger.info("[REJECTED] Email: %s", email)
