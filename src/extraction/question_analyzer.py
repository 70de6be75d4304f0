# src/extraction/question_analyzer.py — v1
"""Exam-question extraction from an image via LLM Vision.

One call per image: the model returns the question, options, correct
answer key and explanations in every required language as JSON. The
response is validated at this boundary; anything that does not match
the AnalysisRecord shape is a MALFORMED error and is never retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import ValidationError

from examextractor.batch.rate_limit import RateLimitSignal
from examextractor.core.models import AnalysisRecord
from examextractor.llm.models import ImageInput, Message
from examextractor.llm.retry import AnalysisError, ErrorKind, RetryPolicy, with_retry

if TYPE_CHECKING:
    from examextractor.config.settings import Settings
    from examextractor.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

LANGUAGE_NAMES: dict[str, str] = {
    "pt": "Portuguese",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
}

_SYSTEM_PROMPT = "You are an exam question extractor. Return only valid JSON."

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def build_prompt(languages: list[str], option_labels: list[str]) -> str:
    """Extraction instruction for the given languages and label alphabet."""
    names = ", ".join(LANGUAGE_NAMES.get(code, code) for code in languages)
    labels = ", ".join(option_labels)
    codes = ", ".join(f'"{code}"' for code in languages)
    return f"""Analyze this exam question image and answer in every one of these languages: {names}.
1. Extract the question text and translate it to every language.
2. Extract all answer options ({labels}) and translate each one to every language. Leave out labels that do not appear in the image.
3. Identify the letter of the correct answer.
4. Write a detailed pedagogical explanation in every language.

Translate technical terms accurately, following professional exam standards.
Use the language codes {codes} as keys in every per-language object."""


def build_response_schema(languages: list[str], option_labels: list[str]) -> dict[str, Any]:
    """JSON schema of the expected response."""
    per_language_text = {
        "type": "object",
        "properties": {code: {"type": "string"} for code in languages},
        "required": list(languages),
    }
    option_set = {
        "type": "object",
        "properties": {label: {"type": "string"} for label in option_labels},
    }
    return {
        "type": "object",
        "properties": {
            "question": per_language_text,
            "options": {
                "type": "object",
                "properties": {code: option_set for code in languages},
                "required": list(languages),
            },
            "correct_answer": {"type": "string", "enum": list(option_labels)},
            "explanations": per_language_text,
        },
        "required": ["question", "options", "correct_answer", "explanations"],
    }


def parse_record(
    raw: str, languages: list[str], option_labels: list[str]
) -> AnalysisRecord:
    """Parse and validate a raw model response.

    Raises:
        AnalysisError: MALFORMED if the payload is empty, not JSON, or
            does not carry every required field in every language.
    """
    text = (raw or "").strip()
    if not text:
        raise AnalysisError(ErrorKind.MALFORMED, "Empty response")
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AnalysisError(ErrorKind.MALFORMED, f"Invalid AI response format: {e}") from e
    if not isinstance(data, dict):
        raise AnalysisError(ErrorKind.MALFORMED, "Response is not a JSON object")

    try:
        record = AnalysisRecord.model_validate(data)
    except ValidationError as e:
        raise AnalysisError(
            ErrorKind.MALFORMED, f"Response shape mismatch: {e.error_count()} error(s)"
        ) from e

    problems = record.missing_fields(languages, option_labels)
    if problems:
        raise AnalysisError(
            ErrorKind.MALFORMED, f"Incomplete response: {', '.join(problems)}"
        )
    return record


class AnalysisClient:
    """The single external call: image in, AnalysisRecord out.

    Quota exhaustion and server errors are retried under ``policy``;
    every quota classification also sets ``rate_limit``.
    """

    def __init__(
        self,
        llm: BaseLLMClient,
        languages: list[str],
        option_labels: list[str],
        policy: RetryPolicy | None = None,
        rate_limit: RateLimitSignal | None = None,
        max_tokens: int = 4096,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if not languages:
            raise ValueError("at least one language is required")
        self._llm = llm
        self.languages = list(languages)
        self.option_labels = list(option_labels)
        self.policy = policy or RetryPolicy()
        self.rate_limit = rate_limit if rate_limit is not None else RateLimitSignal()
        self._max_tokens = max_tokens
        self._sleep = sleep
        self._prompt = build_prompt(self.languages, self.option_labels)
        self._schema = build_response_schema(self.languages, self.option_labels)
        self.calls = 0

    @classmethod
    def from_settings(
        cls,
        llm: BaseLLMClient,
        settings: Settings,
        rate_limit: RateLimitSignal | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> AnalysisClient:
        return cls(
            llm=llm,
            languages=settings.languages_list,
            option_labels=settings.option_labels_list,
            policy=RetryPolicy(
                max_attempts=settings.retry_max_attempts,
                initial_delay_s=settings.retry_initial_delay_s,
            ),
            rate_limit=rate_limit,
            max_tokens=settings.llm_max_tokens,
            sleep=sleep,
        )

    async def analyze(self, image: ImageInput) -> AnalysisRecord:
        """Analyze one question image.

        Raises:
            AnalysisError: classified failure after the retry policy ran out.
        """
        return await with_retry(
            self._analyze_once,
            image,
            policy=self.policy,
            on_quota=self.rate_limit.set,
            sleep=self._sleep,
            label=f"analyze {image.source_id or 'image'}",
        )

    async def _analyze_once(self, image: ImageInput) -> AnalysisRecord:
        self.calls += 1
        response = await self._llm.complete_with_vision(
            messages=[Message(role="user", content=self._prompt)],
            images=[image],
            system=_SYSTEM_PROMPT,
            max_tokens=self._max_tokens,
            response_schema=self._schema,
        )
        record = parse_record(response.content, self.languages, self.option_labels)
        logger.debug(
            "Analyzed %s in %dms (answer=%s)",
            image.source_id, response.latency_ms, record.correct_answer,
        )
        return record
