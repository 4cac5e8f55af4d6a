"""Short-lived store bridging a web session to a chat session.

The web form stores its submission under a session key; the bot takes it
once when the user opens the chat. Entries expire after the configured TTL
and can be read at most once.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol

from redis.exceptions import RedisError

from app.core.clock import Clock, utc_now
from app.core.exceptions import TransientStoreError
from app.infrastructure.redis import RedisClient

logger = logging.getLogger(__name__)

HANDOFF_KEY_PREFIX = "handoff:"


class HandoffStore(Protocol):
    """One-time-use, TTL-bounded payload store."""

    async def put(self, key: str, payload: dict[str, Any]) -> None: ...

    async def take(self, key: str) -> dict[str, Any] | None: ...

    async def sweep(self) -> int: ...


@dataclass
class _Entry:
    payload: dict[str, Any]
    created_at: datetime


class InMemoryHandoffStore:
    """Process-local handoff store for single-instance deployments."""

    def __init__(self, ttl_seconds: int = 1800, clock: Clock = utc_now) -> None:
        """Initialize in-memory handoff store.

        Args:
            ttl_seconds: Lifetime of an entry
            clock: Time source
        """
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def _expired(self, entry: _Entry, now: datetime) -> bool:
        return now - entry.created_at > self._ttl

    async def put(self, key: str, payload: dict[str, Any]) -> None:
        with self._lock:
            self._entries[key] = _Entry(payload=payload, created_at=self._clock())

    async def take(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            logger.debug(f"Handoff {key} expired before it was taken")
            return None
        return entry.payload

    async def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info(f"Swept {len(expired)} expired handoffs")
        return len(expired)


class RedisHandoffStore:
    """Handoff store shared across instances through Redis.

    Redis key expiry replaces the sweep, and GETDEL makes take atomic.
    """

    def __init__(self, redis: RedisClient, ttl_seconds: int = 1800) -> None:
        """Initialize Redis handoff store."""
        self._redis = redis
        self._ttl = ttl_seconds

    async def put(self, key: str, payload: dict[str, Any]) -> None:
        try:
            await self._redis.set_json(f"{HANDOFF_KEY_PREFIX}{key}", payload, ttl=self._ttl)
        except RedisError as e:
            raise TransientStoreError("Handoff store unavailable") from e

    async def take(self, key: str) -> dict[str, Any] | None:
        try:
            return await self._redis.take_json(f"{HANDOFF_KEY_PREFIX}{key}")
        except RedisError as e:
            raise TransientStoreError("Handoff store unavailable") from e

    async def sweep(self) -> int:
        return 0
