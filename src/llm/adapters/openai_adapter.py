# src/llm/adapters/openai_adapter.py — v1
"""OpenAI GPT adapter implementing BaseLLMClient."""

from __future__ import annotations

import time
from typing import Any

from examextractor.llm.base_client import BaseLLMClient
from examextractor.llm.models import ImageInput, LLMResponse, Message


class OpenAIAdapter(BaseLLMClient):
    """OpenAI GPT adapter."""

    def __init__(self, model: str = "gpt-4o-mini", api_key: str = "", **kwargs: Any):
        self._model = model
        self._api_key = api_key

    async def complete_with_vision(
        self,
        messages: list[Message],
        images: list[ImageInput],
        system: str | None = None,
        max_tokens: int = 4096,
        response_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        import openai

        client = openai.AsyncOpenAI(api_key=self._api_key)
        oai_messages: list[dict[str, Any]] = []
        if system:
            oai_messages.append({"role": "system", "content": system})

        content_parts: list[dict[str, Any]] = [
            {
                "type": "image_url",
                "image_url": {"url": f"data:{img.media_type};base64,{img.base64_data}"},
            }
            for img in images
        ]
        for m in messages:
            content_parts.append({"type": "text", "text": m.content})
        oai_messages.append({"role": "user", "content": content_parts})

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": oai_messages,
            "max_tokens": max_tokens,
        }
        if response_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "exam_question", "schema": response_schema},
            }

        t0 = time.monotonic()
        resp = await client.chat.completions.create(**kwargs)
        latency = int((time.monotonic() - t0) * 1000)

        choice = resp.choices[0]
        usage = resp.usage
        return LLMResponse(
            content=choice.message.content or "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self._model,
            provider="openai",
            latency_ms=latency,
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "openai"
