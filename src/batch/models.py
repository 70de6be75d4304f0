# src/batch/models.py — v1
"""Batch processing models: InputFile, Job, JobOutcome, BatchProgress, BatchResult."""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from examextractor.core.models import AnalysisRecord
from examextractor.llm.retry import AnalysisError


class InputFile(BaseModel):
    """One selected file as handed over by the file-selection surface."""

    model_config = ConfigDict(frozen=True)

    name: str
    size_bytes: int
    mime_type: str
    content: bytes
    relative_path: str = ""

    @classmethod
    def from_path(cls, path: Path, root: Path | None = None) -> InputFile:
        """Read a local file into an InputFile."""
        data = path.read_bytes()
        mime, _ = mimetypes.guess_type(path.name)
        relative = ""
        if root is not None:
            relative = path.relative_to(root.parent).as_posix()
        return cls(
            name=path.name,
            size_bytes=len(data),
            mime_type=mime or "application/octet-stream",
            content=data,
            relative_path=relative,
        )

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


class Job(BaseModel):
    """One unit of pipeline work; never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    file: InputFile
    fingerprint: str


@dataclass(frozen=True)
class JobOutcome:
    """Terminal result of a job: a record on success, a classified error otherwise."""

    job: Job
    record: AnalysisRecord | None = None
    error: AnalysisError | None = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.record is not None


class BatchProgress(BaseModel):
    """Counters surfaced to the consumer while a batch runs."""

    total: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    cache_hits: int = 0
    remote_calls: int = 0

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.processed / self.total * 100)

    @property
    def done(self) -> bool:
        return self.processed >= self.total


class BatchResult(BaseModel):
    """Summary of a finished batch run."""

    label: str
    total_files: int
    succeeded: int
    failed: int
    cache_hits: int
    remote_calls: int
    rate_limited: bool
    cancelled: bool = False
    duration_seconds: float
