import redis.asyncio as aioredis
import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple
from .config import settings

logger = logging.getLogger(__name__)


class MemoryBackend:
    """Process-local key/value store with per-key expiry, mirroring the Redis calls we use."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: int = 256):
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._clock = clock
        self._sweep_every = sweep_every
        self._writes = 0

    def _after_write(self):
        # keys from past rate-limit windows are never read again, so reads alone cannot expire them
        self._writes += 1
        if self._writes % self._sweep_every == 0:
            self.sweep()

    def sweep(self) -> int:
        """Drop every expired key. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._data.items() if expires_at is not None and expires_at <= now]
        for key in expired:
            del self._data[key]
        return len(expired)

    def _alive(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            self._data.pop(key, None)
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._alive(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._data[key] = (value, self._clock() + ttl)
        self._after_write()
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._alive(key) is not None:
                removed += 1
            self._data.pop(key, None)
        return removed

    async def exists(self, key: str) -> int:
        return 1 if self._alive(key) is not None else 0

    async def incr(self, key: str) -> int:
        current = self._alive(key)
        expires_at = self._data[key][1] if current is not None else None
        value = int(current or 0) + 1
        self._data[key] = (str(value), expires_at)
        self._after_write()
        return value

    async def expire(self, key: str, ttl: int) -> bool:
        current = self._alive(key)
        if current is None:
            return False
        self._data[key] = (current, self._clock() + ttl)
        return True

    async def ping(self) -> bool:
        return True

    async def close(self):
        self._data.clear()


class CacheManager:
    """Async cache manager backed by Redis, or by process memory for single-instance runs"""

    def __init__(self, backend: Optional[str] = None, redis_url: Optional[str] = None, default_ttl: Optional[int] = None):
        self.backend = (backend or settings.cache_backend).lower()
        self.redis_url = redis_url or settings.redis_url
        self.default_ttl = default_ttl or settings.cache_default_ttl
        self._async_client = None

    async def get_async_client(self):
        if self._async_client is None:
            if self.backend == "memory":
                self._async_client = MemoryBackend()
                return self._async_client
            try:
                self._async_client = aioredis.from_url(
                    self.redis_url,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                    retry_on_timeout=True,
                    health_check_interval=30
                )
                await self._async_client.ping()
            except Exception as e:
                logger.error(f"Failed to create async Redis client: {e}")
                self._async_client = None
                raise
        return self._async_client

    def _serialize_value(self, value: Any) -> str:
        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache serialization error: {e}")
            return json.dumps(str(value))

    def _deserialize_value(self, value: Optional[str]) -> Any:
        if value is None:
            return None
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Cache deserialization error: {e}")
            return value

    def _drop_broken_client(self, error: Exception):
        if "connection" in str(error).lower() or "timeout" in str(error).lower():
            self._async_client = None

    async def aget(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            client = await self.get_async_client()
            value = await client.get(key)
            return self._deserialize_value(value) if value else None
        except Exception as e:
            logger.warning(f"Async cache get error for key '{key}': {e}")
            self._drop_broken_client(e)
            return None

    async def aset(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache"""
        try:
            client = await self.get_async_client()
            ttl = ttl or self.default_ttl
            result = await client.setex(key, ttl, self._serialize_value(value))
            return bool(result)
        except Exception as e:
            logger.warning(f"Async cache set error for key '{key}': {e}")
            self._drop_broken_client(e)
            return False

    async def adelete(self, key: str) -> bool:
        try:
            client = await self.get_async_client()
            return bool(await client.delete(key))
        except Exception as e:
            logger.warning(f"Async cache delete error for key '{key}': {e}")
            self._drop_broken_client(e)
            return False

    async def aexists(self, key: str) -> bool:
        try:
            client = await self.get_async_client()
            return bool(await client.exists(key))
        except Exception as e:
            logger.warning(f"Async cache exists error: {e}")
            return False

    async def aincr(self, key: str, ttl: int) -> Optional[int]:
        """Increment a counter, starting its expiry window on first hit. None when the cache is down."""
        try:
            client = await self.get_async_client()
            value = await client.incr(key)
            if value == 1:
                await client.expire(key, ttl)
            return int(value)
        except Exception as e:
            logger.warning(f"Async cache incr error for key '{key}': {e}")
            self._drop_broken_client(e)
            return None

    async def ahealth_check(self) -> bool:
        try:
            client = await self.get_async_client()
            return bool(await client.ping())
        except Exception as e:
            logger.warning(f"Cache health check failed: {e}")
            return False

    async def close(self):
        if self._async_client is not None:
            await self._async_client.close()
            self._async_client = None


cache = CacheManager()
