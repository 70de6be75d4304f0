# src/exam/controller.py — v1
"""Exam controller — the consumer side of a live session.

The controller only mutates ``cursor``, ``answers``, ``score`` and
``is_finished``. Questions may still be appended by ingestion while the
exam is running; the last question cannot be finalized until loading has
finished.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from examextractor.core.models import HistoryEntry, Question, Session

if TYPE_CHECKING:
    from examextractor.storage.history_log import HistoryLog

logger = logging.getLogger(__name__)

DEFAULT_OPTION_LABELS = ("A", "B", "C", "D", "E")


class ExamStateError(RuntimeError):
    """Raised on an action the current exam state does not allow."""


class ExamController:
    """Drive one session from its first question to its history entry.

    Args:
        session: Live session, usually from ``BatchPipeline.start_exam``.
        history: Log that receives the entry at finalization.
        option_labels: Accepted answer labels.
    """

    def __init__(
        self,
        session: Session,
        history: HistoryLog,
        option_labels: list[str] | tuple[str, ...] = DEFAULT_OPTION_LABELS,
    ) -> None:
        self._session = session
        self._history = history
        self._labels = tuple(label.upper() for label in option_labels)
        self._result: HistoryEntry | None = None

    @property
    def session(self) -> Session:
        return self._session

    @property
    def result(self) -> HistoryEntry | None:
        """History entry written at finalization, if any."""
        return self._result

    @property
    def current_question(self) -> Question | None:
        s = self._session
        if s.is_finished or s.cursor >= len(s.questions):
            return None
        return s.questions[s.cursor]

    @property
    def at_last_question(self) -> bool:
        return self._session.cursor + 1 >= len(self._session.questions)

    def select_answer(self, label: str) -> bool:
        """Record the answer to the current question; returns whether it is correct.

        Raises:
            ExamStateError: Exam finished, no current question, label outside
                the alphabet, or the question was already answered.
        """
        question = self._require_question()
        choice = label.strip().upper()
        if choice not in self._labels:
            raise ExamStateError(f"Invalid option label: {label!r}")
        if question.id in self._session.answers:
            raise ExamStateError(f"Question {question.id} already answered")

        self._session.answers[question.id] = choice
        self._session.score = self._session.compute_score()
        correct = choice == question.correct_answer
        logger.debug(
            "Answered %s with %s (%s)", question.id, choice, "correct" if correct else "wrong"
        )
        return correct

    async def advance(self) -> HistoryEntry | None:
        """Move to the next question, or finalize at the last one.

        At the last question nothing happens while the session is still
        loading. Otherwise the session is finished and its HistoryEntry is
        appended to the log and returned.

        Raises:
            ExamStateError: The exam is already finished.
        """
        s = self._session
        if s.is_finished:
            raise ExamStateError("Exam already finished")
        if not s.questions:
            raise ExamStateError("Session has no questions")

        if not self.at_last_question:
            s.cursor += 1
            return None
        if s.still_loading:
            logger.debug("Last question reached while loading; waiting for more")
            return None

        s.score = s.compute_score()
        entry = HistoryEntry.from_session(s)
        await self._history.append(entry)
        s.is_finished = True
        self._result = entry
        logger.info(
            "Exam %r finished: %d/%d (%d%%)", s.label, entry.score, entry.total, entry.accuracy
        )
        return entry

    def _require_question(self) -> Question:
        if self._session.is_finished:
            raise ExamStateError("Exam already finished")
        question = self.current_question
        if question is None:
            raise ExamStateError("No current question")
        return question
