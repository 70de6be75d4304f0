# tests/unit/core/test_core_models.py — v1
"""Tests for core/models.py."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from examextractor.core.models import (
    AnalysisRecord,
    HistoryEntry,
    Question,
    Session,
    compute_accuracy,
)

LANGS = ["pt", "en", "es"]
LABELS = ["A", "B", "C", "D", "E"]


class TestAnalysisRecord:
    def test_answer_normalized(self, sample_record_payload):
        payload = dict(sample_record_payload, correct_answer=" c ")
        assert AnalysisRecord.model_validate(payload).correct_answer == "C"

    def test_null_and_blank_options_dropped(self, sample_record_payload):
        payload = dict(sample_record_payload)
        payload["options"] = {"en": {"a": "Lyon", "B": "Paris", "E": None, "D": "  "}}
        record = AnalysisRecord.model_validate(payload)
        assert record.options["en"] == {"A": "Lyon", "B": "Paris"}

    def test_frozen(self, sample_record):
        with pytest.raises(ValidationError):
            sample_record.correct_answer = "A"  # type: ignore[misc]

    def test_complete_record_has_no_missing_fields(self, sample_record):
        assert sample_record.missing_fields(LANGS, LABELS) == []

    def test_missing_fields_reported(self, sample_record_payload):
        payload = dict(sample_record_payload)
        payload["question"] = {"pt": "x", "en": ""}
        payload["options"] = {"pt": {"A": "1"}, "en": {"A": "1"}, "es": {"Q": "1"}}
        record = AnalysisRecord.model_validate(payload)
        problems = record.missing_fields(LANGS, LABELS)
        assert "question.en" in problems
        assert "question.es" in problems
        assert any(p.startswith("options.es labels") for p in problems)


class TestSession:
    def _question(self, record, answer=None):
        rec = record if answer is None else record.model_copy(update={"correct_answer": answer})
        return Question(image="data:image/png;base64,AA==", source_name="q.png", fingerprint="q.png_1", record=rec)

    def test_defaults(self):
        s = Session(label="x")
        assert s.still_loading is True
        assert s.is_finished is False
        assert not s.is_startable

    def test_compute_score(self, sample_record):
        q1, q2 = self._question(sample_record), self._question(sample_record, "A")
        s = Session(label="x", questions=[q1, q2], answers={q1.id: "B", q2.id: "B"})
        assert s.compute_score() == 1


class TestAccuracy:
    @pytest.mark.parametrize(
        "score,total,expected",
        [(7, 9, 78), (1, 2, 50), (1, 8, 13), (2, 3, 67), (0, 5, 0), (5, 5, 100), (0, 0, 0)],
    )
    def test_rounding(self, score, total, expected):
        assert compute_accuracy(score, total) == expected

    def test_history_entry_from_session(self, sample_record):
        q = Question(image="data:,", source_name="q", fingerprint="f", record=sample_record)
        s = Session(label="Exam", questions=[q], score=1)
        ts = datetime(2026, 1, 1, tzinfo=timezone.utc)
        entry = HistoryEntry.from_session(s, timestamp=ts)
        assert entry.id == s.id
        assert entry.total == 1
        assert entry.accuracy == 100
        assert entry.timestamp == ts
