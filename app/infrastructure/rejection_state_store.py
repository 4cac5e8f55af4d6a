"""Per-reviewer state for rejections awaiting a typed reason."""

import threading
from dataclasses import asdict, dataclass
from typing import Protocol

from redis.exceptions import RedisError

from app.core.exceptions import TransientStoreError
from app.infrastructure.redis import RedisClient

REJECTION_KEY_PREFIX = "rejection:"


@dataclass(frozen=True)
class PendingRejection:
    """A reviewer picked "other" and owes a free-text reason."""

    lead_id: str
    reviewer: str


class RejectionStateStore(Protocol):
    """Keyed by reviewer; a new entry replaces the previous one."""

    async def set(self, pending: PendingRejection) -> None: ...

    async def get(self, reviewer: str) -> PendingRejection | None: ...

    async def clear(self, reviewer: str) -> None: ...


class InMemoryRejectionStateStore:
    """Process-local rejection state."""

    def __init__(self) -> None:
        self._entries: dict[str, PendingRejection] = {}
        self._lock = threading.Lock()

    async def set(self, pending: PendingRejection) -> None:
        with self._lock:
            self._entries[pending.reviewer] = pending

    async def get(self, reviewer: str) -> PendingRejection | None:
        with self._lock:
            return self._entries.get(reviewer)

    async def clear(self, reviewer: str) -> None:
        with self._lock:
            self._entries.pop(reviewer, None)


class RedisRejectionStateStore:
    """Rejection state shared across instances through Redis."""

    def __init__(self, redis: RedisClient) -> None:
        self._redis = redis

    async def set(self, pending: PendingRejection) -> None:
        try:
            await self._redis.set_json(f"{REJECTION_KEY_PREFIX}{pending.reviewer}", asdict(pending))
        except RedisError as e:
            raise TransientStoreError("Rejection state store unavailable") from e

    async def get(self, reviewer: str) -> PendingRejection | None:
        try:
            data = await self._redis.get_json(f"{REJECTION_KEY_PREFIX}{reviewer}")
        except RedisError as e:
            raise TransientStoreError("Rejection state store unavailable") from e
        if data is None:
            return None
        return PendingRejection(lead_id=data["lead_id"], reviewer=data["reviewer"])

    async def clear(self, reviewer: str) -> None:
        try:
            await self._redis.delete(f"{REJECTION_KEY_PREFIX}{reviewer}")
        except RedisError as e:
            raise TransientStoreError("Rejection state store unavailable") from e
