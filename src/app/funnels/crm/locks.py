"""Per-funnel push lease.

An in-process asyncio.Lock serializes pushes for the same funnel inside one
worker. When Redis is configured a Redis lock extends the lease across
workers; if another worker holds it the push is rejected with
PushInProgressError instead of waiting.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
import structlog
from redis.exceptions import LockError

from src.app.funnels.errors import PushInProgressError

logger = structlog.get_logger(__name__)


class FunnelLockManager:
    """Hands out one lease per funnel id.

    Args:
        redis: Optional Redis client for the cross-worker lease.
        timeout_seconds: Redis lease expiry, bounds a crashed worker's hold.
    """

    def __init__(self, redis: aioredis.Redis | None = None, timeout_seconds: int = 600) -> None:
        self._redis = redis
        self._timeout = timeout_seconds
        self._locks: dict[str, asyncio.Lock] = {}
        # Tasks holding or waiting on each funnel lock; the lock is dropped at zero
        self._users: dict[str, int] = {}

    def _acquire_local(self, funnel_id: str) -> asyncio.Lock:
        lock = self._locks.get(funnel_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[funnel_id] = lock
        self._users[funnel_id] = self._users.get(funnel_id, 0) + 1
        return lock

    def _release_local(self, funnel_id: str) -> None:
        remaining = self._users[funnel_id] - 1
        if remaining:
            self._users[funnel_id] = remaining
        else:
            del self._users[funnel_id]
            del self._locks[funnel_id]

    def tracked_funnels(self) -> int:
        """Funnels with a push running or queued in this process."""
        return len(self._locks)

    def is_locked(self, funnel_id: str) -> bool:
        lock = self._locks.get(funnel_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, funnel_id: str) -> AsyncIterator[None]:
        lock = self._acquire_local(funnel_id)
        try:
            async with lock:
                if self._redis is None:
                    yield
                    return

                lease = self._redis.lock(
                    f"funnel_push:{funnel_id}",
                    timeout=self._timeout,
                    blocking=False,
                )
                if not await lease.acquire():
                    logger.warning("push.lease_contended", funnel_id=funnel_id)
                    raise PushInProgressError(funnel_id)
                try:
                    yield
                finally:
                    try:
                        await lease.release()
                    except LockError:
                        logger.warning("push.lease_expired", funnel_id=funnel_id)
        finally:
            self._release_local(funnel_id)
