# src/api/models.py — v1
"""API-level models: IngestResult, QuestionExport."""

from __future__ import annotations

from pydantic import BaseModel

from examextractor.batch.models import BatchResult
from examextractor.core.models import Session


class IngestResult(BaseModel):
    """Outcome of a blocking ingest: the run summary and the finished session."""

    result: BatchResult
    session: Session


class QuestionExport(BaseModel):
    """One question as written by ``--output`` (image payload left out)."""

    id: str
    source_name: str
    fingerprint: str
    question: dict[str, str]
    options: dict[str, dict[str, str]]
    correct_answer: str
    explanations: dict[str, str]
