# src/cache/json_store.py — v1
"""JSON file-based result cache (default CACHE_BACKEND=json).

One JSON document per namespace under CACHE_ROOT, mapping fingerprint to
entry. Each write re-reads the file, merges the new entry and atomically
replaces the file, so entries written by another process in the meantime
survive.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from examextractor.cache.base_cache_store import BaseResultCache
from examextractor.cache.models import CacheEntry

logger = logging.getLogger(__name__)


class JsonResultCache(BaseResultCache):
    """File-based result cache using a single JSON document per namespace."""

    def __init__(self, cache_root: Path | str, namespace: str) -> None:
        super().__init__(namespace)
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        safe_name = namespace.replace("/", "_").replace("\\", "_")
        self._path = self._root / f"{safe_name}.json"

    @property
    def path(self) -> Path:
        return self._path

    async def _load_all(self) -> dict[str, CacheEntry]:
        entries: dict[str, CacheEntry] = {}
        for key, data in self._read_raw().items():
            try:
                entries[key] = CacheEntry.model_validate(data)
            except ValidationError as e:
                logger.warning("Skipping unreadable cache entry %s: %s", key, e)
        return entries

    async def _write(self, entry: CacheEntry) -> None:
        raw = self._read_raw()
        raw[entry.fingerprint] = entry.model_dump(mode="json")
        self._replace(raw)

    async def _erase(self, fingerprint: str) -> None:
        raw = self._read_raw()
        if raw.pop(fingerprint, None) is not None:
            self._replace(raw)

    def _read_raw(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read cache file %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Cache file %s is not a JSON object, ignoring", self._path)
            return {}
        return data

    def _replace(self, raw: dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.stem}.", suffix=".tmp", dir=self._root
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(raw, fh, ensure_ascii=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
