# src/batch/assembler.py — v1
"""Session assembler — merges job outcomes into the live exam session.

Outcomes are applied in arrival order. Failed jobs are dropped without
leaving a placeholder. Ingestion only ever appends questions and clears
``still_loading``; everything else on the session belongs to the consumer.
"""

from __future__ import annotations

import asyncio
import logging

from examextractor.batch.models import BatchProgress, JobOutcome
from examextractor.core.models import Question, Session

logger = logging.getLogger(__name__)


class SessionNotReadyError(RuntimeError):
    """Raised when an exam is started before any question is available."""


class SessionAssembler:
    """Owns the live Session and the batch progress counters."""

    def __init__(self, label: str, total: int = 0) -> None:
        self._session = Session(label=label)
        self._progress = BatchProgress(total=total)
        self._changed = asyncio.Event()
        self._started = False

    @property
    def session(self) -> Session:
        """The live session object (mutated in place)."""
        return self._session

    @property
    def progress(self) -> BatchProgress:
        return self._progress.model_copy()

    @property
    def started(self) -> bool:
        return self._started

    def apply(self, outcome: JobOutcome) -> Question | None:
        """Account for one outcome; returns the appended question on success."""
        self._progress.processed += 1
        if not outcome.from_cache:
            self._progress.remote_calls += 1

        question: Question | None = None
        if outcome.ok and outcome.record is not None:
            file = outcome.job.file
            question = Question(
                image=file.data_url,
                source_name=file.relative_path or file.name,
                fingerprint=outcome.job.fingerprint,
                record=outcome.record,
            )
            self._session.questions.append(question)
            self._progress.succeeded += 1
            if outcome.from_cache:
                self._progress.cache_hits += 1
        else:
            self._progress.failed += 1
            logger.debug("Dropped failed job %s", outcome.job.id)

        self._notify()
        return question

    def complete(self) -> bool:
        """Clear ``still_loading``. Only the first call has an effect."""
        if not self._session.still_loading:
            return False
        self._session.still_loading = False
        logger.info(
            "Session %r complete: %d question(s) from %d file(s)",
            self._session.label, self._session.total, self._progress.processed,
        )
        self._notify()
        return True

    def snapshot(self) -> Session:
        """Deep copy of the current session for observers."""
        return self._session.model_copy(deep=True)

    def start_exam(self, label: str | None = None) -> Session:
        """Hand the live session to the consumer, cursor at the first question.

        Raises:
            SessionNotReadyError: No question has been assembled yet.
        """
        if not self._session.questions:
            raise SessionNotReadyError("No question is available yet")
        if label:
            self._session.label = label
        if not self._started:
            self._session.cursor = 0
            self._started = True
            logger.info(
                "Exam %r started with %d question(s) (loading=%s)",
                self._session.label, self._session.total, self._session.still_loading,
            )
        return self._session

    async def wait_for_change(self, timeout: float | None = None) -> bool:
        """Block until the next applied outcome or completion.

        Returns False on timeout.
        """
        event = self._changed
        try:
            await asyncio.wait_for(event.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def _notify(self) -> None:
        event, self._changed = self._changed, asyncio.Event()
        event.set()
