# src/batch/pipeline.py — v1
"""Batch pipeline — control flow from selected files to a live session.

    files -> fingerprints -> jobs -> JobScheduler -> SessionAssembler

``start`` returns immediately; ingestion continues as a background task
while the consumer observes ``session``, ``progress`` and
``rate_limited``. Once every job is accounted for the session stops
loading, which is what allows an exam to be finalized.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from examextractor.batch.assembler import SessionAssembler
from examextractor.batch.models import BatchProgress, BatchResult, InputFile, Job, JobOutcome
from examextractor.batch.scheduler import JobScheduler
from examextractor.cache.fingerprint import fingerprint
from examextractor.config.settings import Settings
from examextractor.logging.context import set_batch_context

if TYPE_CHECKING:
    from examextractor.cache.base_cache_store import BaseResultCache
    from examextractor.core.models import Session
    from examextractor.extraction.question_analyzer import AnalysisClient

logger = logging.getLogger(__name__)


def default_label(files: list[InputFile], fallback: str) -> str:
    """First path segment of the first file, else ``fallback``."""
    if files and files[0].relative_path:
        head = files[0].relative_path.split("/", 1)[0]
        if head and head != files[0].relative_path:
            return head
    return fallback


class BatchPipeline:
    """Ingest one batch of files at a time.

    Args:
        client: Analysis client; its ``rate_limit`` signal is reset per batch.
        cache: Result cache. Opened at the start of every batch; the
            caller owns ``close``.
        settings: Concurrency, spacing and fingerprint options.
        sleep: Awaitable sleep handed to the scheduler (tests inject one).
    """

    def __init__(
        self,
        client: AnalysisClient,
        cache: BaseResultCache,
        settings: Settings | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings or Settings()
        self._sleep = sleep
        self._task: asyncio.Task[BatchResult] | None = None
        self._scheduler: JobScheduler | None = None
        self._assembler = SessionAssembler(label=self._settings.default_label)
        self._cancelled = False
        self.batch_id: str | None = None

    # --- Consumer-facing state ---

    @property
    def client(self) -> AnalysisClient:
        return self._client

    @property
    def cache(self) -> BaseResultCache:
        return self._cache

    @property
    def assembler(self) -> SessionAssembler:
        return self._assembler

    @property
    def session(self) -> Session:
        """Snapshot of the live session."""
        return self._assembler.snapshot()

    @property
    def progress(self) -> BatchProgress:
        return self._assembler.progress

    @property
    def rate_limited(self) -> bool:
        return self._client.rate_limit.is_set

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start_exam(self, label: str | None = None) -> Session:
        """Live session for the consumer; see ``SessionAssembler.start_exam``."""
        return self._assembler.start_exam(label)

    # --- Lifecycle ---

    def start(self, files: list[InputFile], label: str | None = None) -> SessionAssembler:
        """Begin ingesting ``files`` in the background.

        Must be called from a running event loop.

        Raises:
            RuntimeError: A batch is already running.
        """
        if self.running:
            raise RuntimeError("A batch is already running")

        settings = self._settings
        self._cancelled = False
        self.batch_id = uuid.uuid4().hex[:12]
        self._client.rate_limit.reset()

        jobs = [
            Job(
                id=f"job-{i + 1}",
                file=f,
                fingerprint=fingerprint(f, settings.fingerprint_use_content_hash),
            )
            for i, f in enumerate(files)
        ]
        label = label or default_label(files, settings.default_label)
        self._assembler = SessionAssembler(label=label, total=len(jobs))
        self._scheduler = JobScheduler(
            client=self._client,
            cache=self._cache,
            cache_hit_delay_s=settings.cache_hit_delay_s,
            sleep=self._sleep,
        )
        self._task = asyncio.create_task(
            self._run(jobs, label, self._scheduler),
            name=f"examextractor-batch-{self.batch_id}",
        )
        return self._assembler

    async def wait(self) -> BatchResult:
        """Wait for the running batch and return its summary."""
        if self._task is None:
            raise RuntimeError("No batch has been started")
        return await self._task

    async def run(self, files: list[InputFile], label: str | None = None) -> BatchResult:
        """Start a batch and wait for it."""
        self.start(files, label)
        return await self.wait()

    def cancel(self) -> None:
        """Stop the batch. The session keeps ``still_loading`` set."""
        self._cancelled = True
        if self._scheduler is not None:
            self._scheduler.cancel()

    async def _run(
        self, jobs: list[Job], label: str, scheduler: JobScheduler
    ) -> BatchResult:
        set_batch_context(self.batch_id or "")
        settings = self._settings
        t0 = time.perf_counter()
        logger.info("Batch %s started: %d file(s), label=%r", self.batch_id, len(jobs), label)

        try:
            await self._cache.open()
        except Exception as exc:
            logger.warning("Result cache unavailable, every job will be analyzed: %s", exc)

        try:
            if not self._cancelled:
                async for outcome in scheduler.run(
                    jobs,
                    concurrency=settings.max_concurrent_requests,
                    spacing_s=settings.request_spacing_s,
                ):
                    self._assembler.apply(outcome)
                    self._log_outcome(outcome)
        finally:
            if not self._cancelled:
                self._assembler.complete()

        progress = self._assembler.progress
        result = BatchResult(
            label=label,
            total_files=len(jobs),
            succeeded=progress.succeeded,
            failed=progress.failed,
            cache_hits=progress.cache_hits,
            remote_calls=progress.remote_calls,
            rate_limited=self.rate_limited,
            cancelled=self._cancelled,
            duration_seconds=round(time.perf_counter() - t0, 2),
        )
        logger.info(
            "Batch %s %s: %d ok, %d failed, %d cache hit(s), %d remote call(s), %.2fs",
            self.batch_id,
            "cancelled" if result.cancelled else "done",
            result.succeeded, result.failed, result.cache_hits,
            result.remote_calls, result.duration_seconds,
        )
        return result

    def _log_outcome(self, outcome: JobOutcome) -> None:
        progress = self._assembler.progress
        if outcome.ok:
            logger.info(
                "Processed %d/%d: %s", progress.processed, progress.total, outcome.job.file.name,
            )
        else:
            kind = outcome.error.kind.value if outcome.error else "unknown"
            logger.info(
                "Processed %d/%d: %s failed (%s)", progress.processed,
                progress.total, outcome.job.file.name, kind,
            )
