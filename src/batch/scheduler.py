# src/batch/scheduler.py — v1
"""Job scheduler — bounded worker pool draining a shared FIFO of jobs.

Each worker pulls one job at a time, serves it from the result cache when
possible and otherwise calls the analysis client, persists the record,
emits the outcome and then waits ``spacing_s`` before its next pull.
Outcomes are yielded in arrival order. The run ends once every job is
accounted for; a failed job is an outcome like any other.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable

from examextractor.batch.models import Job, JobOutcome
from examextractor.llm.models import ImageInput
from examextractor.llm.retry import AnalysisError, ErrorKind
from examextractor.logging.context import set_job_context, set_worker_context

if TYPE_CHECKING:
    from examextractor.cache.base_cache_store import BaseResultCache
    from examextractor.extraction.question_analyzer import AnalysisClient

logger = logging.getLogger(__name__)

DEFAULT_CACHE_HIT_DELAY_S = 0.2
DEFAULT_SPACING_S = 5.0


class JobScheduler:
    """Run jobs through ``concurrency`` workers. One scheduler per batch.

    Args:
        client: Analysis client used on cache misses.
        cache: Opened result cache consulted before every remote call.
        cache_hit_delay_s: Pause after serving a cache hit (0 disables).
        sleep: Awaitable sleep (injected by tests).
    """

    def __init__(
        self,
        client: AnalysisClient,
        cache: BaseResultCache,
        cache_hit_delay_s: float = DEFAULT_CACHE_HIT_DELAY_S,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._cache = cache
        self._cache_hit_delay_s = cache_hit_delay_s
        self._sleep = sleep
        self._workers: list[asyncio.Task[None]] = []
        self._outcomes: asyncio.Queue[JobOutcome | None] | None = None
        self._cancelled = False
        self.remote_calls = 0
        self.cache_hits = 0
        self.in_flight = 0
        self.peak_in_flight = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def run(
        self,
        jobs: list[Job],
        concurrency: int = 1,
        spacing_s: float = DEFAULT_SPACING_S,
    ) -> AsyncIterator[JobOutcome]:
        """Yield one outcome per job, in the order jobs finish.

        Raises:
            ValueError: If concurrency < 1 or spacing_s < 0.
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if spacing_s < 0:
            raise ValueError(f"spacing_s must be >= 0, got {spacing_s}")

        total = len(jobs)
        if total == 0 or self._cancelled:
            return

        queue: asyncio.Queue[Job] = asyncio.Queue()
        for job in jobs:
            queue.put_nowait(job)
        outcomes: asyncio.Queue[JobOutcome | None] = asyncio.Queue()
        self._outcomes = outcomes

        n_workers = min(concurrency, total)
        self._workers = [
            asyncio.create_task(
                self._worker(f"worker-{i + 1}", queue, outcomes, spacing_s),
                name=f"examextractor-worker-{i + 1}",
            )
            for i in range(n_workers)
        ]
        logger.info(
            "Scheduling %d jobs on %d workers (spacing=%.1fs)",
            total, n_workers, spacing_s,
        )

        accounted = 0
        try:
            while accounted < total:
                outcome = await outcomes.get()
                if outcome is None or self._cancelled:
                    break
                accounted += 1
                yield outcome
        finally:
            await self._stop_workers()

    def cancel(self) -> None:
        """Stop new pulls and drop the outcomes of in-flight jobs."""
        if self._cancelled:
            return
        self._cancelled = True
        for task in self._workers:
            task.cancel()
        if self._outcomes is not None:
            self._outcomes.put_nowait(None)
        logger.info("Scheduler cancelled")

    async def _stop_workers(self) -> None:
        workers, self._workers = self._workers, []
        for task in workers:
            if not task.done():
                task.cancel()
        if workers:
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(
        self,
        name: str,
        queue: asyncio.Queue[Job],
        outcomes: asyncio.Queue[JobOutcome | None],
        spacing_s: float,
    ) -> None:
        set_worker_context(name)
        while not self._cancelled:
            try:
                job = queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            set_job_context(job.id)
            outcome, remote = await self._process(job)
            if self._cancelled:
                break
            outcomes.put_nowait(outcome)
            set_job_context(None)

            if remote:
                if spacing_s > 0:
                    await self._sleep(spacing_s)
            elif self._cache_hit_delay_s > 0:
                await self._sleep(self._cache_hit_delay_s)
        logger.debug("%s exiting", name)

    async def _process(self, job: Job) -> tuple[JobOutcome, bool]:
        """Resolve one job; returns the outcome and whether a remote call was made."""
        try:
            cached = await self._cache.get(job.fingerprint)
            if cached is not None:
                stale = cached.missing_fields(self._client.languages, self._client.option_labels)
                if not stale:
                    self.cache_hits += 1
                    logger.debug("Cache hit for %s", job.file.name)
                    return JobOutcome(job=job, record=cached, from_cache=True), False
                logger.info(
                    "Cached record for %s lacks %s, re-analyzing", job.file.name, ", ".join(stale)
                )
        except Exception as exc:
            logger.warning("Cache lookup failed for %s, treating as miss: %s", job.file.name, exc)

        self.remote_calls += 1
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            image = ImageInput(
                data=job.file.content,
                media_type=job.file.mime_type,
                source_id=job.file.name,
            )
            record = await self._client.analyze(image)
        except AnalysisError as exc:
            logger.warning(
                "Job %s (%s) failed: %s after %d attempt(s): %s",
                job.id, job.file.name, exc.kind.value, exc.attempts, exc,
            )
            return JobOutcome(job=job, error=exc), True
        except Exception as exc:
            logger.warning("Job %s (%s) failed unexpectedly: %s", job.id, job.file.name, exc)
            logger.debug("Unexpected failure detail", exc_info=True)
            return JobOutcome(job=job, error=AnalysisError(ErrorKind.UNKNOWN, str(exc))), True
        finally:
            self.in_flight -= 1

        try:
            await self._cache.put(job.fingerprint, record)
        except Exception as exc:
            logger.warning("Could not persist %s to cache: %s", job.fingerprint, exc)
        return JobOutcome(job=job, record=record), True
