# src/api/facade.py — v1
"""Public API facade — wire settings, LLM client, cache and pipeline.

Usage:
    from examextractor.api.facade import ingest_directory
    outcome = await ingest_directory(Path("exams/2024"))
    print(outcome.session.total)
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from examextractor.api.models import IngestResult, QuestionExport
from examextractor.batch.pipeline import BatchPipeline
from examextractor.batch.scanner import BatchScanner, filter_images
from examextractor.cache.cache_factory import create_result_cache
from examextractor.config.settings import Settings
from examextractor.extraction.question_analyzer import AnalysisClient
from examextractor.llm.client_factory import create_client_from_settings

if TYPE_CHECKING:
    from examextractor.batch.models import InputFile
    from examextractor.cache.base_cache_store import BaseResultCache
    from examextractor.core.models import Session
    from examextractor.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)


def build_pipeline(
    settings: Settings | None = None,
    llm: BaseLLMClient | None = None,
    cache: BaseResultCache | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> BatchPipeline:
    """Assemble a BatchPipeline from settings.

    Args:
        settings: Global settings. Loaded from .env if None.
        llm: Vision LLM client. Built from ``llm_provider`` if None.
        cache: Result cache. Built from ``cache_backend`` if None.
        sleep: Awaitable sleep used for spacing and backoff.
    """
    settings = settings or Settings()
    if llm is None:
        llm = create_client_from_settings(settings)
    if cache is None:
        cache = create_result_cache(settings)
    client = AnalysisClient.from_settings(llm, settings, sleep=sleep)
    return BatchPipeline(client=client, cache=cache, settings=settings, sleep=sleep)


async def ingest_files(
    files: list[InputFile],
    label: str | None = None,
    settings: Settings | None = None,
    llm: BaseLLMClient | None = None,
    cache: BaseResultCache | None = None,
) -> IngestResult:
    """Run one batch to completion and return the summary and session.

    Files with a non-accepted MIME type are dropped before scheduling.
    """
    settings = settings or Settings()
    accepted = filter_images(files, settings.accepted_mime_types_list)
    if len(accepted) < len(files):
        logger.info("Ignoring %d non-image file(s)", len(files) - len(accepted))

    owns_cache = cache is None
    pipeline = build_pipeline(settings, llm=llm, cache=cache)
    try:
        result = await pipeline.run(accepted, label)
    finally:
        if owns_cache:
            await pipeline.cache.close()
    return IngestResult(result=result, session=pipeline.session)


async def ingest_directory(
    directory: Path,
    recursive: bool = True,
    label: str | None = None,
    settings: Settings | None = None,
    llm: BaseLLMClient | None = None,
    cache: BaseResultCache | None = None,
) -> IngestResult:
    """Scan ``directory`` for question images and ingest them."""
    settings = settings or Settings()
    files = BatchScanner(settings=settings).load(directory, recursive=recursive)
    return await ingest_files(files, label=label, settings=settings, llm=llm, cache=cache)


def export_questions(session: Session, path: Path) -> int:
    """Write the session's questions as a JSON array; returns the count."""
    items = [
        QuestionExport(
            id=q.id,
            source_name=q.source_name,
            fingerprint=q.fingerprint,
            question=q.record.question,
            options=q.record.options,
            correct_answer=q.record.correct_answer,
            explanations=q.record.explanations,
        ).model_dump(mode="json")
        for q in session.questions
    ]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(items, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Wrote %d question(s) to %s", len(items), path)
    return len(items)
