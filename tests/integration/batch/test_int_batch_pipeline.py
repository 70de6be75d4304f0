# tests/integration/batch/test_int_batch_pipeline.py — v1
"""End-to-end batch: directory scan, partial cache, concurrent analysis, exam."""

from __future__ import annotations

import pytest

from examextractor.api.facade import build_pipeline
from examextractor.batch.scanner import BatchScanner
from examextractor.cache.fingerprint import fingerprint
from examextractor.cache.json_store import JsonResultCache
from examextractor.core.models import AnalysisRecord
from examextractor.exam.controller import ExamController
from examextractor.storage.history_log import HistoryLog


@pytest.mark.asyncio
async def test_mixed_cache_batch_to_history(
    tmp_path, fast_settings, mock_llm_client, make_record_payload
):
    exam_dir = tmp_path / "Final Exam"
    exam_dir.mkdir()
    for i in range(1, 5):
        (exam_dir / f"q{i}.png").write_bytes(f"\x89PNG-question-{i}".encode())

    settings = fast_settings.model_copy(update={"max_concurrent_requests": 2})
    files = BatchScanner(settings=settings).load(exam_dir)
    assert len(files) == 4

    cache = JsonResultCache(settings.cache_root, settings.cache_namespace)
    async with cache:
        for f in files[:2]:
            record = AnalysisRecord.model_validate(make_record_payload(f.name, answer="C"))
            await cache.put(fingerprint(f), record)

        pipeline = build_pipeline(settings, llm=mock_llm_client, cache=cache)
        result = await pipeline.run(files)

    assert result.label == "Final Exam"
    assert result.total_files == 4
    assert result.cache_hits == 2
    assert result.remote_calls == 2
    assert result.succeeded == 4
    assert mock_llm_client.complete_with_vision.await_count == 2
    assert pipeline.progress.processed == 4

    session = pipeline.start_exam()
    assert session.total == 4
    assert session.still_loading is False

    history = HistoryLog(settings.history_path)
    exam = ExamController(session, history, settings.option_labels_list)
    for _ in range(session.total):
        exam.select_answer("B")
        entry = await exam.advance()

    assert entry is not None
    assert entry.total == 4
    assert entry.score == 2
    assert entry.accuracy == 50
    assert [e.id for e in await history.list_entries()] == [session.id]
