# src/llm/retry.py — v1
"""Error taxonomy and retry policy for remote analysis calls.

Only quota exhaustion and 5xx-style server errors are retried. The base
delay doubles after every attempt; quota waits are further scaled by
``attempt_index + 1.5`` since quota windows reset on a slower cadence
than transient server failures.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    """Classification of a failed analysis call."""

    QUOTA_EXCEEDED = "quota_exceeded"
    SERVER_ERROR = "server_error"
    MALFORMED = "malformed"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset({ErrorKind.QUOTA_EXCEEDED, ErrorKind.SERVER_ERROR})

# Status codes only count as whole words ("q500.png" is not a 500).
_QUOTA_RE = re.compile(r"\b429\b|resource_exhausted|resource has been exhausted|rate limit")
_SERVER_RE = re.compile(r"\b50[0234]\b|internal server error|unavailable")


class AnalysisError(Exception):
    """A classified failure of the analysis boundary."""

    def __init__(self, kind: ErrorKind, message: str = "", attempts: int = 1) -> None:
        self.kind = kind
        self.attempts = attempts
        super().__init__(message or kind.value)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


@dataclass(frozen=True)
class RetryPolicy:
    """Retry ceiling and backoff shape."""

    max_attempts: int = 5
    initial_delay_s: float = 3.0
    backoff_factor: float = 2.0
    quota_offset: float = 1.5

    def wait_time(self, kind: ErrorKind, attempt_index: int, base_delay: float) -> float:
        """Delay before the attempt following ``attempt_index`` (0-based)."""
        if kind is ErrorKind.QUOTA_EXCEEDED:
            return base_delay * (attempt_index + self.quota_offset)
        return base_delay


def _status_code(error: Exception) -> int | None:
    """Best-effort HTTP status from provider SDK exceptions."""
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def classify_error(error: Exception) -> ErrorKind:
    """Classify an exception raised by a provider call."""
    if isinstance(error, AnalysisError):
        return error.kind

    status = _status_code(error)
    msg = str(error).lower()
    name = type(error).__name__.lower()

    if status == 429 or "ratelimit" in name or "resourceexhausted" in name:
        return ErrorKind.QUOTA_EXCEEDED
    if status is not None and 500 <= status < 600:
        return ErrorKind.SERVER_ERROR
    if _QUOTA_RE.search(msg):
        return ErrorKind.QUOTA_EXCEEDED
    if "servererror" in name or _SERVER_RE.search(msg):
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    policy: RetryPolicy | None = None,
    on_quota: Callable[[], None] | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    label: str = "analysis",
    **kwargs: Any,
) -> Any:
    """Execute an async function under the retry policy.

    Args:
        fn: Coroutine function performing one remote call.
        policy: Attempt ceiling and delays. Defaults to 5 attempts from 3s.
        on_quota: Invoked on every quota classification, retried or not.
        sleep: Awaitable sleep (injected by tests).
        label: Name used in log lines.

    Raises:
        AnalysisError: On a non-retryable failure, or when the last
            permitted attempt fails.
    """
    policy = policy or RetryPolicy()
    delay = policy.initial_delay_s

    for attempt in range(policy.max_attempts):
        try:
            return await fn(*args, **kwargs)
        except Exception as exc:
            kind = classify_error(exc)
            if kind is ErrorKind.QUOTA_EXCEEDED and on_quota is not None:
                on_quota()

            last = attempt >= policy.max_attempts - 1
            if kind not in RETRYABLE_KINDS or last:
                if isinstance(exc, AnalysisError):
                    exc.attempts = attempt + 1
                    raise
                raise AnalysisError(kind, str(exc), attempts=attempt + 1) from exc

            wait = policy.wait_time(kind, attempt, delay)
            logger.warning(
                "%s: %s (attempt %d/%d), retrying in %.1fs",
                label, kind.value, attempt + 1, policy.max_attempts, wait,
            )
            await sleep(wait)
            delay *= policy.backoff_factor

    raise AnalysisError(ErrorKind.UNKNOWN, "retry loop exited without a result")
