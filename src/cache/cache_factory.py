# src/cache/cache_factory.py — v1
"""Factory for result cache instantiation."""

from __future__ import annotations

from examextractor.cache.base_cache_store import BaseResultCache
from examextractor.config.settings import Settings


def create_result_cache(settings: Settings | None = None) -> BaseResultCache:
    """Instantiate the configured cache backend (not yet opened).

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseResultCache implementation.
    """
    settings = settings or Settings()
    backend = settings.cache_backend
    namespace = settings.cache_namespace

    if backend == "json":
        from examextractor.cache.json_store import JsonResultCache
        return JsonResultCache(cache_root=settings.cache_root, namespace=namespace)

    if backend == "sqlite":
        from examextractor.cache.sqlite_store import SqliteResultCache
        db_path = settings.cache_root.expanduser() / "examextractor_cache.db"
        return SqliteResultCache(db_path=db_path, namespace=namespace)

    if backend == "redis":
        from examextractor.cache.redis_store import RedisResultCache
        if not settings.cache_redis_url:
            raise ValueError("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")
        return RedisResultCache(redis_url=settings.cache_redis_url, namespace=namespace)

    raise ValueError(f"Unsupported cache backend: {backend!r}")
