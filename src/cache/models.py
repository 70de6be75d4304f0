# src/cache/models.py — v1
"""Cache domain model: one persisted analysis record per fingerprint."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from examextractor.core.models import AnalysisRecord


class CacheEntry(BaseModel):
    """Single cache entry linking a fingerprint to its analysis record."""

    fingerprint: str
    record: AnalysisRecord
    created_at: datetime
    pipeline_version: str
