# src/cache/redis_store.py — v1
"""Redis-based result cache (CACHE_BACKEND=redis).

Requires 'redis' package. Each namespace is one Redis hash keyed by
fingerprint; HSET is atomic per field, so concurrent writers of different
fingerprints never overwrite each other.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from examextractor.cache.base_cache_store import BaseResultCache
from examextractor.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_KEY_PREFIX = "examextractor:cache:"


class RedisResultCache(BaseResultCache):
    """Redis-backed result cache."""

    def __init__(self, redis_url: str, namespace: str) -> None:
        super().__init__(namespace)
        try:
            import redis
        except ImportError as e:
            raise ImportError("redis package required: pip install redis") from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._hash_key = f"{_KEY_PREFIX}{namespace}"

    async def _load_all(self) -> dict[str, CacheEntry]:
        entries: dict[str, CacheEntry] = {}
        for fingerprint, data in self._client.hgetall(self._hash_key).items():
            try:
                entries[fingerprint] = CacheEntry.model_validate_json(data)
            except ValidationError as e:
                logger.warning("Skipping unreadable cache field %s: %s", fingerprint, e)
        return entries

    async def _write(self, entry: CacheEntry) -> None:
        self._client.hset(self._hash_key, entry.fingerprint, entry.model_dump_json())

    async def _erase(self, fingerprint: str) -> None:
        self._client.hdel(self._hash_key, fingerprint)

    async def close(self) -> None:
        await super().close()
        self._client.close()
