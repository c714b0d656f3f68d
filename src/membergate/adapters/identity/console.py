"""
Console identity issuer adapter - Implements IdentityIssuer protocol.

Stands in for the external identity provider in development: it mints
activation links locally and treats every email it has issued a link
for as an existing account.
"""

import logging
import secrets

from membergate.domain.values import Email

logger = logging.getLogger(__name__)


class ConsoleIdentityIssuer:
    """
    Implements IdentityIssuer protocol with local link generation.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, app_url: str, existing_accounts: set[str] | None = None) -> None:
        """
        Args:
            app_url: Base URL the activation links point to
            existing_accounts: Normalized emails that already have accounts
        """
        self._app_url = app_url.rstrip("/")
        self._accounts: set[str] = set(existing_accounts or ())

    async def issue_activation_link(self, email: Email) -> str:
        secret = secrets.token_urlsafe(32)
        self._accounts.add(email.value)
        link = f"{self._app_url}/auth/set-password/{secret}"
        logger.info("[ACTIVATION] Email: %s Link: %s", email, link)
        return link

    async def account_exists(self, email: Email) -> bool:
        return email.value in self._accounts
