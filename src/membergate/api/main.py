"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routes, logging, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import AsyncConnectionPool

from membergate.adapters.identity.console import ConsoleIdentityIssuer
from membergate.adapters.repository.postgres import run_migrations
from membergate.api.v1 import router as v1_router
from membergate.config.logging_config import setup_logging
from membergate.config.settings import get_settings
from membergate.domain.background import BackgroundTasks

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Signup Approval API v1 - Submit, review and list membership requests",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Configures logging
    - Opens the database connection pool and runs migrations
    - Creates the shared background task spawner and identity issuer
    - Waits for pending notifications, then closes the pool on shutdown
    """
    settings = get_settings()
    setup_logging()

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=False,
    )
    await pool.open()

    logger.info("Running database migrations...")
    await run_migrations(pool)

    # Store shared resources in app state for dependency injection
    app.state.pool = pool
    app.state.tasks = BackgroundTasks()
    app.state.issuer = ConsoleIdentityIssuer(settings.app_url)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await app.state.tasks.join()
    await pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="membergate",
    description="Signup Approval API - Admin-reviewed membership requests with single-use tokens",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    async with pool.connection() as conn:
        await conn.execute("SELECT 1")

    return {"status": "healthy"}
