# src/logging/context.py — v1
"""Contextual logging support: attach batch_id, job_id, worker to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging. Each worker task runs in its own
# copied context, so job/worker values never leak between workers.
_batch_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_id", default=None
)
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_worker: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "worker", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    batch_id: str | None = None
    job_id: str | None = None
    worker: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        batch_id=_batch_id.get(),
        job_id=_job_id.get(),
        worker=_worker.get(),
    )


def set_batch_context(batch_id: str) -> None:
    """Set batch-level context (called once per batch run)."""
    _batch_id.set(batch_id)


def set_worker_context(worker: str) -> None:
    """Set worker-level context (called at the top of each worker task)."""
    _worker.set(worker)


def set_job_context(job_id: str | None) -> None:
    """Set job-level context (called per dequeued job)."""
    _job_id.set(job_id)


def clear_context() -> None:
    """Reset all context variables."""
    _batch_id.set(None)
    _job_id.set(None)
    _worker.set(None)
