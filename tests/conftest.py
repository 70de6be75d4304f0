# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides sample analysis payloads, mock LLM clients, input file factories,
an instant sleep recorder and isolated settings. No network: all remote
calls are mocked and every delay is injected.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from examextractor.batch.models import InputFile, Job
from examextractor.cache.fingerprint import fingerprint
from examextractor.config.settings import Settings
from examextractor.core.models import AnalysisRecord
from examextractor.llm.models import LLMResponse


def _record_payload(tag: str = "1", answer: str = "B") -> dict[str, Any]:
    return {
        "question": {
            "pt": f"Qual é a capital da França? ({tag})",
            "en": f"What is the capital of France? ({tag})",
            "es": f"¿Cuál es la capital de Francia? ({tag})",
        },
        "options": {
            "pt": {"A": "Lyon", "B": "Paris", "C": "Marselha", "D": "Nice"},
            "en": {"A": "Lyon", "B": "Paris", "C": "Marseille", "D": "Nice"},
            "es": {"A": "Lyon", "B": "París", "C": "Marsella", "D": "Niza"},
        },
        "correct_answer": answer,
        "explanations": {
            "pt": "Paris é a capital da França.",
            "en": "Paris is the capital of France.",
            "es": "París es la capital de Francia.",
        },
    }


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep: records delays, yields once."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


# === FIXTURES: Sample data ===


@pytest.fixture
def make_record_payload() -> Callable[..., dict[str, Any]]:
    """Factory for trilingual analysis payloads (distinct per tag)."""
    return _record_payload


@pytest.fixture
def sample_record_payload() -> dict[str, Any]:
    """Complete pt/en/es payload with answer B."""
    return _record_payload()


@pytest.fixture
def sample_record(sample_record_payload: dict[str, Any]) -> AnalysisRecord:
    return AnalysisRecord.model_validate(sample_record_payload)


@pytest.fixture
def make_input_file() -> Callable[..., InputFile]:
    """Factory for in-memory PNG input files."""

    def _make(
        name: str = "q1.png",
        content: bytes | None = None,
        mime_type: str = "image/png",
        relative_path: str = "",
    ) -> InputFile:
        data = content if content is not None else f"\x89PNG-{name}".encode()
        return InputFile(
            name=name,
            size_bytes=len(data),
            mime_type=mime_type,
            content=data,
            relative_path=relative_path,
        )

    return _make


@pytest.fixture
def make_job(make_input_file: Callable[..., InputFile]) -> Callable[..., Job]:
    def _make(index: int = 1, name: str | None = None) -> Job:
        f = make_input_file(name or f"q{index}.png")
        return Job(id=f"job-{index}", file=f, fingerprint=fingerprint(f))

    return _make


# === FIXTURES: Mock LLM ===


@pytest.fixture
def make_llm_response() -> Callable[..., LLMResponse]:
    def _make(content: str | dict[str, Any]) -> LLMResponse:
        if not isinstance(content, str):
            content = json.dumps(content, ensure_ascii=False)
        return LLMResponse(
            content=content,
            input_tokens=800,
            output_tokens=400,
            model="gemini-2.0-flash",
            provider="google",
            latency_ms=900,
        )

    return _make


@pytest.fixture
def mock_llm_response(
    make_llm_response: Callable[..., LLMResponse], sample_record_payload: dict[str, Any]
) -> LLMResponse:
    """Standard valid analysis response."""
    return make_llm_response(sample_record_payload)


@pytest.fixture
def mock_llm_client(mock_llm_response: LLMResponse) -> AsyncMock:
    """Mock BaseLLMClient with default response."""
    client = AsyncMock()
    client.complete_with_vision = AsyncMock(return_value=mock_llm_response)
    client.provider_name = "mock"
    return client


# === FIXTURES: Timing and config ===


@pytest.fixture
def recorded_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary cache directory."""
    cache = tmp_path / "cache"
    cache.mkdir()
    return cache


@pytest.fixture
def fast_settings(tmp_path: Path, tmp_cache_dir: Path) -> Settings:
    """Settings isolated from .env, with spacing and hit delay disabled."""
    return Settings(
        _env_file=None,
        request_spacing_s=0.0,
        cache_hit_delay_s=0.0,
        cache_root=tmp_cache_dir,
        history_path=tmp_path / "history.json",
    )
