"""
Key-value store adapter used by the cache-aside engine.
"""

from abc import ABC, abstractmethod
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.errors import StoreUnavailableError
from shared.logging import get_logger

from .expiration import StoreExpiration


class KeyValueStore(ABC):
    """Contract for the backing store: get, and put with an expiration."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key does not exist."""

    @abstractmethod
    async def put(self, key: str, value: str, expiration: StoreExpiration) -> None:
        """Write ``value`` under ``key`` with the given expiration."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed store. Errors surface as StoreUnavailableError, never as a miss."""

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.logger = get_logger("cache_proxy.kv_store")
        self._redis = client or redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._redis.get(key)
        except RedisError as exc:
            self.logger.error("Redis read failed", key=key, error=str(exc))
            raise StoreUnavailableError(details={"operation": "get", "key": key, "error": str(exc)}) from exc

    async def put(self, key: str, value: str, expiration: StoreExpiration) -> None:
        try:
            if expiration.ttl_seconds is not None:
                await self._redis.set(key, value, ex=expiration.ttl_seconds)
            else:
                await self._redis.set(key, value, exat=expiration.at_unix_seconds)
        except RedisError as exc:
            self.logger.error("Redis write failed", key=key, error=str(exc))
            raise StoreUnavailableError(details={"operation": "put", "key": key, "error": str(exc)}) from exc

        self.logger.debug(
            "Stored payload",
            key=key,
            ttl_seconds=expiration.ttl_seconds,
            expires_at=expiration.at_unix_seconds,
        )

    async def ping(self) -> bool:
        """Return True when Redis responds to a ping."""
        try:
            return bool(await self._redis.ping())
        except RedisError as exc:
            self.logger.error("Redis health check failed", error=str(exc))
            return False

    async def close(self) -> None:
        """Close Redis connections."""
        await self._redis.aclose()
