# tests/unit/storage/test_history_log.py — v1
"""Tests for storage/history_log.py."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from examextractor.core.models import HistoryEntry
from examextractor.storage.history_log import HistoryLog


def _entry(i: int) -> HistoryEntry:
    return HistoryEntry(
        id=f"s{i}",
        timestamp=datetime(2026, 3, 1, tzinfo=timezone.utc) + timedelta(hours=i),
        label=f"Exam {i}",
        score=i,
        total=10,
        accuracy=i * 10,
    )


class TestHistoryLog:
    @pytest.mark.asyncio
    async def test_empty(self, tmp_path):
        assert await HistoryLog(tmp_path / "h.json").list_entries() == []

    @pytest.mark.asyncio
    async def test_newest_first(self, tmp_path):
        log = HistoryLog(tmp_path / "h.json")
        for i in range(3):
            await log.append(_entry(i))
        assert [e.id for e in await log.list_entries()] == ["s2", "s1", "s0"]

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "h.json"
        await HistoryLog(path).append(_entry(1))
        assert await HistoryLog(path).list_entries() == [_entry(1)]

    @pytest.mark.asyncio
    async def test_clear(self, tmp_path):
        log = HistoryLog(tmp_path / "h.json")
        await log.append(_entry(1))
        await log.append(_entry(2))
        assert await log.clear() == 2
        assert await log.list_entries() == []

    @pytest.mark.asyncio
    async def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "h.json"
        path.write_text("{oops", encoding="utf-8")
        log = HistoryLog(path)
        assert await log.list_entries() == []
        await log.append(_entry(1))
        assert len(json.loads(path.read_text(encoding="utf-8"))) == 1

    @pytest.mark.asyncio
    async def test_bad_entry_skipped(self, tmp_path):
        path = tmp_path / "h.json"
        path.write_text(json.dumps([{"id": "broken"}]), encoding="utf-8")
        log = HistoryLog(path)
        await log.append(_entry(1))
        assert [e.id for e in await log.list_entries()] == ["s1"]
