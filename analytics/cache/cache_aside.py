"""
Cache-aside reads over a redis.asyncio client.

 - key = "distinct:{dimension}", value = JSON list, SET with EX ttl
 - on hit: decode and return (value, True)
 - on miss: compute from the store, populate, return (value, False)

Cache errors degrade to a miss and are never raised. There is no locking, so
concurrent misses may each compute and write the same value.
"""
import json
from typing import Any, Awaitable, Callable, Optional, Tuple

from analytics.logger import get_logger

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = get_logger(__name__)

DISTINCT_KEY_PREFIX = "distinct"


def distinct_key(name: str) -> str:
    return f"{DISTINCT_KEY_PREFIX}:{name}"


def create_redis_client(redis_url: Optional[str]):
    """Lazy client; no connection is made until the first command."""
    if not redis_url:
        return None
    return aioredis.from_url(redis_url, decode_responses=True)


class CacheAsideReader:
    def __init__(self, client=None):
        # client: redis.asyncio.Redis or anything with async get/set(ex=); None disables caching
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def _read(self, key: str) -> Tuple[bool, Any]:
        if self._client is None:
            return False, None
        try:
            raw = await self._client.get(key)
        except (RedisError, OSError) as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return False, None
        if raw is None:
            return False, None
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Discarding undecodable cache entry %s: %s", key, e)
            return False, None
        if not isinstance(value, list):
            logger.warning("Discarding non-list cache entry %s", key)
            return False, None
        return True, value

    async def _write(self, key: str, ttl: int, value: Any) -> None:
        if self._client is None:
            return
        try:
            await self._client.set(key, json.dumps(value), ex=int(ttl))
        except (RedisError, OSError, TypeError) as e:
            logger.warning("Cache write failed for %s: %s", key, e)

    async def get_or_compute(
        self,
        key: str,
        ttl: int,
        compute: Callable[[], Awaitable[Any]],
    ) -> Tuple[Any, bool]:
        hit, value = await self._read(key)
        if hit:
            return value, True

        # store failures from compute propagate to the caller
        value = await compute()
        await self._write(key, ttl, value)
        return value, False

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            logger.warning("Cache ping failed: %s", e)
            return False

    async def close(self):
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except (RedisError, OSError) as e:
            logger.warning("Cache close failed: %s", e)
