"""Shared session store used by the stateful identity strategy."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

from redis.asyncio import Redis

from core import settings

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session"


@runtime_checkable
class SupportsSessionClient(Protocol):
    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: str, ex: int | None = None) -> Any: ...

    async def expire(self, key: str, ttl: int) -> Any: ...

    async def delete(self, *keys: str) -> Any: ...


class SessionStore(Protocol):
    async def get(self, key: str) -> dict[str, Any] | None: ...

    async def set(self, key: str, attributes: dict[str, Any], ttl: int) -> None: ...

    async def touch(self, key: str, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisSessionStore:
    """Session attributes stored as JSON strings under ``session:<key>``.

    Redis errors are not caught here; the identity issuer decides how a store
    outage surfaces to the client.
    """

    def __init__(self, redis_client: SupportsSessionClient, prefix: str = SESSION_KEY_PREFIX) -> None:
        self.redis = redis_client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> dict[str, Any] | None:
        raw = await self.redis.get(self._key(key))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            attributes = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding unreadable session record")
            return None
        if not isinstance(attributes, dict):
            return None
        return attributes

    async def set(self, key: str, attributes: dict[str, Any], ttl: int) -> None:
        await self.redis.set(self._key(key), json.dumps(attributes), ex=ttl)

    async def touch(self, key: str, ttl: int) -> None:
        await self.redis.expire(self._key(key), ttl)

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))


@lru_cache
def get_redis_client() -> SupportsSessionClient:
    """Return a cached async Redis client."""
    return Redis.from_url(settings.redis_url, decode_responses=True)


def get_session_store() -> RedisSessionStore:
    return RedisSessionStore(get_redis_client())
