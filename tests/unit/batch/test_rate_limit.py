# tests/unit/batch/test_rate_limit.py — v1
"""Tests for batch/rate_limit.py."""

from __future__ import annotations

from examextractor.batch.rate_limit import RateLimitSignal


class TestRateLimitSignal:
    def test_initially_clear(self):
        s = RateLimitSignal()
        assert not s.is_set
        assert not s
        assert s.first_seen is None

    def test_set_is_sticky(self):
        s = RateLimitSignal()
        s.set()
        first = s.first_seen
        s.set()
        assert s.is_set
        assert s.hits == 2
        assert s.first_seen == first

    def test_reset(self):
        s = RateLimitSignal()
        s.set()
        s.reset()
        assert not s.is_set
        assert s.hits == 0
