# tests/unit/cache/test_redis_result_cache.py — v1
"""Tests for cache/redis_store.py — Redis client mocked."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from examextractor.cache.models import CacheEntry
from examextractor.cache.redis_store import RedisResultCache


@pytest.fixture
def fake_redis():
    store: dict[str, dict[str, str]] = {}
    client = MagicMock()
    client.hgetall.side_effect = lambda key: dict(store.get(key, {}))
    client.hset.side_effect = lambda key, field, value: store.setdefault(key, {}).__setitem__(field, value)
    client.hdel.side_effect = lambda key, field: store.get(key, {}).pop(field, None)
    client.store = store
    with patch("redis.Redis.from_url", return_value=client):
        yield client


class TestRedisResultCache:
    @pytest.mark.asyncio
    async def test_put_uses_namespace_hash(self, fake_redis, sample_record):
        cache = RedisResultCache("redis://localhost:6379/0", "ns")
        await cache.open()
        await cache.put("fp", sample_record)
        key, field, value = fake_redis.hset.call_args.args
        assert key == "examextractor:cache:ns"
        assert field == "fp"
        assert CacheEntry.model_validate_json(value).record == sample_record

    @pytest.mark.asyncio
    async def test_open_loads_snapshot(self, fake_redis, sample_record):
        writer = RedisResultCache("redis://localhost", "ns")
        await writer.put("fp", sample_record)

        reader = RedisResultCache("redis://localhost", "ns")
        await reader.open()
        assert await reader.get("fp") == sample_record

    @pytest.mark.asyncio
    async def test_unreadable_field_is_skipped(self, fake_redis):
        fake_redis.store["examextractor:cache:ns"] = {"bad": "not json"}
        cache = RedisResultCache("redis://localhost", "ns")
        await cache.open()
        assert await cache.get("bad") is None

    @pytest.mark.asyncio
    async def test_close_closes_client(self, fake_redis):
        cache = RedisResultCache("redis://localhost", "ns")
        await cache.close()
        fake_redis.close.assert_called_once()
