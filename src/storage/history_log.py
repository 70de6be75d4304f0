# src/storage/history_log.py — v1
"""Local history log of finalized exam sessions.

A single JSON array on disk, newest entry first. Entries are only ever
prepended or bulk-cleared; an individual entry is never rewritten.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from examextractor.core.models import HistoryEntry

logger = logging.getLogger(__name__)


class HistoryLog:
    """Append-only log of HistoryEntry records."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def append(self, entry: HistoryEntry) -> None:
        """Prepend one entry; durable before returning."""
        async with self._lock:
            raw = self._read_raw()
            raw.insert(0, entry.model_dump(mode="json"))
            self._replace(raw)
        logger.info(
            "History: %r scored %d/%d (%d%%)",
            entry.label, entry.score, entry.total, entry.accuracy,
        )

    async def list_entries(self) -> list[HistoryEntry]:
        """All readable entries, newest first."""
        entries: list[HistoryEntry] = []
        for item in self._read_raw():
            try:
                entries.append(HistoryEntry.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping unreadable history entry: %s", e)
        return entries

    async def clear(self) -> int:
        """Remove every entry; returns how many were removed."""
        async with self._lock:
            count = len(self._read_raw())
            self._replace([])
        logger.info("History cleared (%d entries)", count)
        return count

    def _read_raw(self) -> list[Any]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read history file %s: %s", self._path, e)
            return []
        if not isinstance(data, list):
            logger.warning("History file %s is not a JSON array, ignoring", self._path)
            return []
        return data

    def _replace(self, raw: list[Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.stem}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(raw, fh, ensure_ascii=False, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
