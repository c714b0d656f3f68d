"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain flows and infrastructure adapters into routes.
"""

import logging

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from psycopg_pool import AsyncConnectionPool

from membergate.adapters.identity.console import ConsoleIdentityIssuer
from membergate.adapters.repository.postgres import PostgresRateStore, PostgresSignupStore
from membergate.adapters.smtp.console import ConsoleNotifier
from membergate.config.settings import Settings, get_settings
from membergate.domain.background import BackgroundTasks
from membergate.domain.queries import QueryFlow, RetentionFlow
from membergate.domain.rate_guard import RateGuard
from membergate.domain.review import ApprovalFlow, RejectionFlow
from membergate.domain.submission import ReviewLinks, SubmissionFlow

logger = logging.getLogger(__name__)


def get_pool(request: Request) -> AsyncConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_tasks(request: Request) -> BackgroundTasks:
    """Get the app-wide background task spawner (joined on shutdown)."""
    return request.app.state.tasks


def get_signup_store(request: Request) -> PostgresSignupStore:
    """Create signup store with connection pool from app state."""
    return PostgresSignupStore(get_pool(request))


def get_rate_store(request: Request) -> PostgresRateStore:
    return PostgresRateStore(get_pool(request))


def get_identity_issuer(request: Request) -> ConsoleIdentityIssuer:
    """Get the identity issuer held in app state (it remembers issued accounts)."""
    return request.app.state.issuer


def get_notifier(settings: Settings = Depends(get_settings)) -> ConsoleNotifier:
    return ConsoleNotifier(settings.admin_emails)


def get_submission_flow(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> SubmissionFlow:
    """
    Create submission flow with injected dependencies.

    Wires together the stores, rate guard, identity issuer and notifier.
    """
    rate_guard = RateGuard(
        store=get_rate_store(request),
        ip_limit_per_hour=settings.rate_limit_signups_per_hour,
        email_limit_per_day=settings.rate_limit_signups_per_day,
    )
    return SubmissionFlow(
        store=get_signup_store(request),
        rate_guard=rate_guard,
        issuer=get_identity_issuer(request),
        notifier=get_notifier(settings),
        links=ReviewLinks(settings.app_url),
        tasks=get_tasks(request),
    )


def get_approval_flow(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> ApprovalFlow:
    return ApprovalFlow(
        store=get_signup_store(request),
        issuer=get_identity_issuer(request),
        notifier=get_notifier(settings),
        token_ttl_hours=settings.token_ttl_hours,
        tasks=get_tasks(request),
    )


def get_rejection_flow(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> RejectionFlow:
    return RejectionFlow(
        store=get_signup_store(request),
        notifier=get_notifier(settings),
        tasks=get_tasks(request),
    )


def get_query_flow(request: Request) -> QueryFlow:
    return QueryFlow(store=get_signup_store(request))


def get_retention_flow(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> RetentionFlow:
    return RetentionFlow(store=get_signup_store(request), retention_days=settings.retention_days)


# HTTP BASIC AUTH security scheme for OpenAPI documentation
http_basic = HTTPBasic()


def require_admin(
    credentials: HTTPBasicCredentials = Depends(http_basic),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Authenticate an administrator from the HTTP BASIC AUTH header.

    The username carries the admin's UUID (empty falls back to the
    configured system admin id). The password is checked with bcrypt
    against ``admin_password_hash``. The admin id itself is validated
    by the review flows.

    Returns:
        Admin id string as supplied (or the system admin id)
    """
    if not _password_matches(credentials.password, settings.admin_password_hash):
        logger.warning("Rejected admin credentials for %r", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username or settings.system_admin_id


def _password_matches(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        logger.error("admin_password_hash is not a valid bcrypt hash")
        return False
