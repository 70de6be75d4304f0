# src/batch/rate_limit.py — v1
"""Shared quota-exhaustion flag surfaced to the consumer.

Set whenever any analysis call is classified as quota exhaustion, even
if its retry later succeeds. It is informational: the pipeline keeps
running. Only a new batch resets it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class RateLimitSignal:
    """Monotonic boolean within a batch."""

    def __init__(self) -> None:
        self._set = False
        self._hits = 0
        self._first_seen: datetime | None = None

    @property
    def is_set(self) -> bool:
        return self._set

    @property
    def hits(self) -> int:
        """Quota classifications observed since the last reset."""
        return self._hits

    @property
    def first_seen(self) -> datetime | None:
        return self._first_seen

    def set(self) -> None:
        self._hits += 1
        if not self._set:
            self._set = True
            self._first_seen = datetime.now(timezone.utc)
            logger.warning("Quota exhausted on the analysis service; slowing down")

    def reset(self) -> None:
        self._set = False
        self._hits = 0
        self._first_seen = None

    def __bool__(self) -> bool:
        return self._set
