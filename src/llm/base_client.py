# src/llm/base_client.py — v1
"""Abstract multimodal LLM client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from examextractor.llm.models import ImageInput, LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all vision-capable providers."""

    @abstractmethod
    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 4096,
        response_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Vision-enabled completion (images + text).

        When ``response_schema`` is given the provider is asked for JSON
        output matching it; providers without native schema support fall
        back to plain JSON mode.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (google, anthropic, openai)."""
