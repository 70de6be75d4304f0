# src/cache/base_cache_store.py — v1
"""Abstract result cache: fingerprint -> AnalysisRecord.

Lifecycle is ``open`` (snapshot read once per batch), ``put`` (durable
before it returns), ``close``. Lookups are served from the in-memory
snapshot plus everything written since. Backends only implement raw
load/write/erase against their store.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from examextractor.cache.models import CacheEntry
from examextractor.core.models import AnalysisRecord
from examextractor.version import __version__

logger = logging.getLogger(__name__)


class BaseResultCache(ABC):
    """Unified interface for result cache backends."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        self._entries: dict[str, CacheEntry] = {}
        self._opened = False
        self._write_lock = asyncio.Lock()

    async def open(self) -> None:
        """Load the persisted snapshot for this namespace."""
        self._entries = await self._load_all()
        self._opened = True
        logger.info(
            "Result cache %r opened with %d entries", self.namespace, len(self._entries)
        )

    async def close(self) -> None:
        """Release backend resources."""
        self._opened = False

    async def __aenter__(self) -> BaseResultCache:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def get(self, fingerprint: str) -> AnalysisRecord | None:
        """Return the cached record for a fingerprint, if any."""
        if not self._opened:
            await self.open()
        entry = self._entries.get(fingerprint)
        return entry.record if entry is not None else None

    async def put(self, fingerprint: str, record: AnalysisRecord) -> bool:
        """Persist a record; returns False when an identical record is already stored.

        Writes are serialized so two workers finishing at the same instant
        never drop each other's entry.
        """
        async with self._write_lock:
            existing = self._entries.get(fingerprint)
            if existing is not None and existing.record == record:
                return False
            entry = CacheEntry(
                fingerprint=fingerprint,
                record=record,
                created_at=datetime.now(timezone.utc),
                pipeline_version=__version__,
            )
            await self._write(entry)
            self._entries[fingerprint] = entry
            logger.debug("Cached %s in %r", fingerprint, self.namespace)
            return True

    async def delete(self, fingerprint: str) -> None:
        """Remove one entry."""
        async with self._write_lock:
            await self._erase(fingerprint)
            self._entries.pop(fingerprint, None)

    async def list_entries(self) -> list[CacheEntry]:
        """All entries currently known (snapshot plus writes since)."""
        if not self._opened:
            await self.open()
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

    # --- Backend hooks ---

    @abstractmethod
    async def _load_all(self) -> dict[str, CacheEntry]:
        """Read every persisted entry of the namespace."""

    @abstractmethod
    async def _write(self, entry: CacheEntry) -> None:
        """Durably persist one entry (upsert)."""

    @abstractmethod
    async def _erase(self, fingerprint: str) -> None:
        """Durably remove one entry."""
