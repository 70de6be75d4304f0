# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# === EXTRACTION OUTPUT ===


class AnalysisRecord(BaseModel):
    """Structured output of one successful question-image analysis.

    Every text field maps a language code to its text. ``options`` maps a
    language code to a label -> option text mapping; labels missing from
    the image are simply absent.
    """

    model_config = ConfigDict(frozen=True)

    question: dict[str, str]
    options: dict[str, dict[str, str]]
    correct_answer: str = Field(
        validation_alias=AliasChoices("correct_answer", "correctAnswer")
    )
    explanations: dict[str, str]

    @field_validator("correct_answer")
    @classmethod
    def normalize_answer(cls, v: str) -> str:  # noqa: N805
        return v.strip().upper()

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v: Any) -> Any:  # noqa: N805
        """Upper-case labels and drop null or blank option texts."""
        if not isinstance(v, dict):
            return v
        return {
            lang: {
                str(label).strip().upper(): text
                for label, text in by_label.items()
                if not (text is None or (isinstance(text, str) and not text.strip()))
            }
            if isinstance(by_label, dict)
            else by_label
            for lang, by_label in v.items()
        }

    def missing_fields(
        self, languages: list[str], option_labels: list[str]
    ) -> list[str]:
        """List shape problems against the required languages and label alphabet.

        An empty list means the record is complete.
        """
        problems: list[str] = []
        for lang in languages:
            if not self.question.get(lang, "").strip():
                problems.append(f"question.{lang}")
            if not self.explanations.get(lang, "").strip():
                problems.append(f"explanations.{lang}")
            lang_options = self.options.get(lang)
            if not lang_options:
                problems.append(f"options.{lang}")
                continue
            unknown = sorted(set(lang_options) - set(option_labels))
            if unknown:
                problems.append(f"options.{lang} labels {unknown}")
        if self.correct_answer not in option_labels:
            problems.append(f"correct_answer {self.correct_answer!r}")
        return problems


# === EXAM SESSION ===


def _question_id() -> str:
    return f"q-{uuid.uuid4().hex[:9]}"


class Question(BaseModel):
    """One analyzed exam question, owned by the Session it was appended to."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_question_id)
    image: str  # data URL (data:<mime>;base64,...)
    source_name: str
    fingerprint: str
    record: AnalysisRecord

    @property
    def correct_answer(self) -> str:
        return self.record.correct_answer


class Session(BaseModel):
    """Live exam session: grows while loading, then mutated by the consumer."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    label: str
    questions: list[Question] = Field(default_factory=list)
    cursor: int = 0
    score: int = 0
    answers: dict[str, str] = Field(default_factory=dict)
    still_loading: bool = True
    is_finished: bool = False

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def is_startable(self) -> bool:
        return bool(self.questions)

    def compute_score(self) -> int:
        """Count answers that match their question's correct answer."""
        correct = {q.id: q.correct_answer for q in self.questions}
        return sum(
            1 for qid, label in self.answers.items() if correct.get(qid) == label
        )


def compute_accuracy(score: int, total: int) -> int:
    """Percentage of correct answers, rounded half up (7/9 -> 78)."""
    if total <= 0:
        return 0
    return int(math.floor(100 * score / total + 0.5))


class HistoryEntry(BaseModel):
    """Finalized, read-only summary of a completed session."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    label: str
    score: int
    total: int
    accuracy: int

    @classmethod
    def from_session(
        cls, session: Session, timestamp: datetime | None = None
    ) -> HistoryEntry:
        total = len(session.questions)
        return cls(
            id=session.id,
            timestamp=timestamp or datetime.now(timezone.utc),
            label=session.label,
            score=session.score,
            total=total,
            accuracy=compute_accuracy(session.score, total),
        )
