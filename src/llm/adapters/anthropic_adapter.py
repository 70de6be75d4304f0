# src/llm/adapters/anthropic_adapter.py — v1
"""Anthropic Claude adapter implementing BaseLLMClient.

Structured output is obtained by forcing a single tool whose input
schema is the requested response schema.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from examextractor.llm.base_client import BaseLLMClient
from examextractor.llm.models import ImageInput, LLMResponse, Message

logger = logging.getLogger(__name__)

_TOOL_NAME = "structured_output"


class AnthropicAdapter(BaseLLMClient):
    """Adapter for Anthropic Claude models."""

    def __init__(
        self,
        model: str = "claude-sonnet-4-20250514",
        api_key: str | None = None,
        **kwargs: Any,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self.__client = None  # Lazy initialization

    @property
    def _client(self):
        """Lazy-init Anthropic client (only on first API call)."""
        if self.__client is None:
            try:
                import anthropic
            except ImportError as e:
                raise ImportError(
                    "anthropic package required: pip install anthropic"
                ) from e
            self.__client = anthropic.AsyncAnthropic(api_key=self._api_key or "")
        return self.__client

    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 4096,
        response_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Vision-enabled completion with images."""
        content_blocks: list[dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": img.media_type,
                    "data": img.base64_data,
                },
            }
            for img in images
        ]
        user_text = "\n\n".join(m.content for m in messages if m.role == "user")
        content_blocks.append({"type": "text", "text": user_text})

        params: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": content_blocks}],
        }
        if system:
            params["system"] = system
        if response_schema is not None:
            params["tools"] = [
                {
                    "name": _TOOL_NAME,
                    "description": "Return structured data matching the schema",
                    "input_schema": response_schema,
                }
            ]
            params["tool_choice"] = {"type": "tool", "name": _TOOL_NAME}

        start = time.monotonic()
        response = await self._client.messages.create(**params)
        latency_ms = int((time.monotonic() - start) * 1000)

        return LLMResponse(
            content=self._extract_content(response, response_schema is not None),
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=response.model,
            provider="anthropic",
            latency_ms=latency_ms,
            raw_response=response,
        )

    @property
    def provider_name(self) -> str:
        return "anthropic"

    @staticmethod
    def _extract_content(response: Any, structured: bool) -> str:
        """Extract text (or forced tool input) from response content blocks."""
        for block in response.content:
            block_type = getattr(block, "type", None)
            if structured and block_type == "tool_use":
                return json.dumps(block.input, ensure_ascii=False)
            if block_type == "text":
                return block.text
        return ""
