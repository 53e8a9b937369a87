import logging
import uuid
from typing import Optional
from uuid import UUID

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

# Returned when Redis is unavailable and the lock degrades to a no-op
UNLOCKED_TOKEN = "unlocked"


class OrganizationLock:
    """Per-organization advisory lock backed by Redis.

    Two overlapping engine runs must not evaluate the same tenant at the
    same time.  The lock is a ``SET key token NX EX ttl`` entry; release
    only deletes the key when it still holds our token.

    If *redis_client* is ``None`` (Redis unavailable), ``acquire`` always
    succeeds with :data:`UNLOCKED_TOKEN` and ``release`` is a no-op.
    """

    KEY_PREFIX = "leadflow:transition-lock"

    def __init__(self, redis_client: Optional[Redis] = None, ttl: int = 300) -> None:
        self._redis: Optional[Redis] = redis_client
        self._ttl = ttl

    def _key(self, organization_id: UUID) -> str:
        return f"{self.KEY_PREFIX}:{organization_id}"

    async def acquire(self, organization_id: UUID) -> Optional[str]:
        """Return a lock token, or ``None`` if another run holds the lock."""
        if self._redis is None:
            return UNLOCKED_TOKEN
        token = uuid.uuid4().hex
        try:
            acquired = await self._redis.set(
                self._key(organization_id), token, nx=True, ex=self._ttl
            )
        except Exception:
            logger.warning(
                "Redis SET NX failed for organization %s, running unlocked",
                organization_id,
            )
            return UNLOCKED_TOKEN
        return token if acquired else None

    async def release(self, organization_id: UUID, token: str) -> None:
        """Drop the lock if *token* still owns it (best-effort)."""
        if self._redis is None or token == UNLOCKED_TOKEN:
            return
        key = self._key(organization_id)
        try:
            current = await self._redis.get(key)
            if current == token:
                await self._redis.delete(key)
        except Exception:
            logger.warning("Redis lock release failed for key %s", key)

    @property
    def is_available(self) -> bool:
        """Return ``True`` if a Redis client is configured."""
        return self._redis is not None
