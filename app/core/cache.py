"""
Redis-backed cache-aside helpers.

Cache invalidation occurs:
- Automatically when the TTL expires
- Explicitly when a service mutates an entity or an assignment edge
  (single key or SCAN pattern)

The cache is never authoritative. Every Redis failure is logged and treated as
a miss (reads) or a no-op (writes and deletes), so a cache outage degrades
latency, never correctness of the caller's primary operation.
"""
import json
from dataclasses import dataclass
from typing import Any, Optional

import redis.asyncio as redis
from pydantic import BaseModel
from redis.exceptions import RedisError

from app.core import config
from app.utils import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class CacheKeys:
    """Key prefixes and expiry used by the services, injected at construction."""

    user_prefix: str = config.USER_CACHE_PREFIX
    user_permissions_prefix: str = config.USER_PERMISSIONS_CACHE_PREFIX
    group_prefix: str = config.GROUP_CACHE_PREFIX
    role_prefix: str = config.ROLE_CACHE_PREFIX
    permission_prefix: str = config.PERMISSION_CACHE_PREFIX
    entity_ttl: int = config.ENTITY_CACHE_TTL_SECONDS
    permissions_ttl: int = config.PERMISSIONS_CACHE_TTL_SECONDS

    def user(self, user_id: int) -> str:
        return f"{self.user_prefix}{user_id}"

    def user_permissions(self, user_id: int) -> str:
        return f"{self.user_permissions_prefix}{user_id}"

    def group(self, group_id: int) -> str:
        return f"{self.group_prefix}{group_id}"

    def role(self, role_id: int) -> str:
        return f"{self.role_prefix}{role_id}"

    def permission(self, permission_id: int) -> str:
        return f"{self.permission_prefix}{permission_id}"

    @property
    def all_user_permissions(self) -> str:
        return f"{self.user_permissions_prefix}*"

    @property
    def all_roles(self) -> str:
        return f"{self.role_prefix}*"


class CacheService:
    """
    Thin JSON layer over an asyncio Redis client.

    Values are stored as JSON text; pydantic models are dumped in JSON mode
    before encoding, so callers re-validate the returned dict into their model.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self._client.get(key)
        except RedisError as e:
            log.warning("Error retrieving from cache with key %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            log.warning("Discarding undecodable cache entry %s: %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json")
        try:
            await self._client.set(key, json.dumps(value), ex=ttl_seconds)
        except (RedisError, TypeError) as e:
            log.warning("Error setting cache with key %s: %s", key, e)

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            log.warning("Error removing cache with key %s: %s", key, e)

    async def delete_by_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number of keys removed."""
        try:
            keys = [key async for key in self._client.scan_iter(match=pattern)]
            if not keys:
                return 0
            await self._client.delete(*keys)
        except RedisError as e:
            log.warning("Error removing cache by pattern %s: %s", pattern, e)
            return 0
        log.debug("Removed %d cache entries matching %s", len(keys), pattern)
        return len(keys)

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except RedisError as e:
            log.warning("Error closing cache connection: %s", e)


# Global cache instance (created lazily on first use)
_cache_instance: Optional[CacheService] = None


def get_cache() -> CacheService:
    """
    Dependency returning the application-wide CacheService.

    Usage in FastAPI routes:
        @router.get("/items/{item_id}")
        async def get_item(item_id: int, cache: CacheService = Depends(get_cache)):
            ...
    """
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = CacheService(redis.from_url(config.REDIS_URL, decode_responses=True))
    return _cache_instance


async def close_cache() -> None:
    global _cache_instance
    if _cache_instance is not None:
        await _cache_instance.close()
        _cache_instance = None


def get_cache_keys() -> CacheKeys:
    return CacheKeys()
