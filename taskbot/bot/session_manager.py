"""
Conversation store - per-user dialog state.

Holds at most one ConversationState per user. Backends:
- MemoryBackend: process-local dict (single instance deployments, tests)
- RedisBackend: redis.asyncio, survives restarts and is shared between
  instances

The store is created once by the application and passed to the handlers
that need it.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, Optional, Any

import redis.asyncio as redis

from ..models.conversation import ConversationState

logger = logging.getLogger(__name__)


class MemoryBackend:
    """In-process key/value backend."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None):
        # Expiry is enforced by ConversationStore for this backend
        self._data[key] = value

    async def delete(self, key: str):
        self._data.pop(key, None)

    async def close(self):
        self._data.clear()


class RedisBackend:
    """Redis key/value backend using redis.asyncio."""

    def __init__(self, redis_client: Any):
        self.redis = redis_client

    @classmethod
    async def connect(cls, redis_url: str) -> "RedisBackend":
        client = redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        await client.ping()
        logger.info("Conversation store connected to Redis")
        return cls(client)

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None):
        if ttl:
            await self.redis.setex(key, ttl, value)
        else:
            await self.redis.set(key, value)

    async def delete(self, key: str):
        await self.redis.delete(key)

    async def close(self):
        await self.redis.close()


class ConversationStore:
    """
    get/set/delete of ConversationState keyed by user id.

    Args:
        backend: MemoryBackend or RedisBackend
        ttl_seconds: Optional expiry for abandoned dialogs (None = keep forever)
    """

    KEY_PREFIX = "conversation"

    def __init__(self, backend: Any = None, ttl_seconds: Optional[int] = None):
        self.backend = backend or MemoryBackend()
        self.ttl_seconds = ttl_seconds or None
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    def _key(self, user_id: str) -> str:
        return f"{self.KEY_PREFIX}:{user_id}"

    @asynccontextmanager
    async def lock(self, user_id: str) -> AsyncIterator[None]:
        """
        Serialize the events of one user within this process.

        Hold it across a whole read-step-write of the dialog. get/set/delete
        do not take it themselves. The lock is dropped once nobody waits on it.
        """
        key = self._key(user_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if not self._waiters[key]:
                del self._waiters[key]
                del self._locks[key]

    def _expired(self, state: ConversationState) -> bool:
        if not self.ttl_seconds:
            return False
        return (datetime.now() - state.updated_at).total_seconds() > self.ttl_seconds

    async def get(self, user_id: str) -> Optional[ConversationState]:
        """Current dialog of the user, or None."""
        key = self._key(user_id)
        raw = await self.backend.get(key)
        if raw is None:
            return None

        try:
            state = ConversationState.model_validate(json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.error(f"Dropping unreadable conversation state for {user_id}: {e}")
            await self.backend.delete(key)
            return None

        if self._expired(state):
            logger.info(f"Conversation {state.action.value} of {user_id} expired")
            await self.backend.delete(key)
            return None

        return state

    async def set(self, user_id: str, state: ConversationState):
        """Store the user's dialog, replacing any previous one."""
        await self.backend.set(self._key(user_id), state.model_dump_json(), ttl=self.ttl_seconds)
        logger.debug(f"Conversation {user_id}: {state.action.value}/{state.step}")

    async def delete(self, user_id: str):
        """Forget the user's dialog."""
        await self.backend.delete(self._key(user_id))

    async def close(self):
        await self.backend.close()


async def create_conversation_store(redis_url: str = "", ttl_seconds: int = 0) -> ConversationStore:
    """
    Build the store for the app: Redis when configured and reachable,
    process memory otherwise.
    """
    backend: Any = None
    if redis_url:
        try:
            backend = await RedisBackend.connect(redis_url)
        except Exception as e:
            logger.warning(f"Redis not available for conversations, using in-memory: {e}")

    return ConversationStore(backend or MemoryBackend(), ttl_seconds=ttl_seconds or None)
