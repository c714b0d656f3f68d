"""
Detached background tasks for fire-and-forget side effects.

Notifications must never block or fail the flow that triggers them.
BackgroundTasks spawns each one as its own asyncio task wrapped in an
error boundary that logs failures and drops them.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Spawner that keeps strong references to running tasks until they finish."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[None]:
        """Schedule ``coro`` without awaiting it. Must be called inside a running loop."""
        task = asyncio.create_task(self._guarded(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def join(self) -> None:
        """Wait for every task spawned so far. Used on shutdown and in tests."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @staticmethod
    async def _guarded(coro: Coroutine[Any, Any, Any], name: str) -> None:
        try:
            await coro
        except Exception:
            logger.exception("Background task failed: %s", name)
