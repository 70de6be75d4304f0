# src/llm/adapters/google_adapter.py — v1
"""Google Gemini adapter implementing BaseLLMClient.

Uses the google-generativeai SDK. Structured output goes through
``response_mime_type=application/json`` plus a response schema.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from examextractor.llm.base_client import BaseLLMClient
from examextractor.llm.models import ImageInput, LLMResponse, Message

logger = logging.getLogger(__name__)


def to_gemini_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Convert a JSON-schema subset to Gemini's OpenAPI flavour (upper-case types)."""
    out: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "type" and isinstance(value, str):
            out[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            out[key] = {name: to_gemini_schema(sub) for name, sub in value.items()}
        elif key == "items" and isinstance(value, dict):
            out[key] = to_gemini_schema(value)
        elif key in ("required", "description", "enum"):
            out[key] = value
    return out


class GoogleAdapter(BaseLLMClient):
    """Google Gemini adapter."""

    def __init__(self, model: str = "gemini-2.0-flash", api_key: str = "", **kwargs: Any):
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
        import google.generativeai as genai

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model, system_instruction=system)

        # Image first, instruction after
        parts: list[dict[str, Any]] = []
        for img in images:
            parts.append({"inline_data": {"mime_type": img.media_type, "data": img.data}})
        for m in messages:
            parts.append({"text": m.content})

        gen_config: dict[str, Any] = {"max_output_tokens": max_tokens}
        if response_schema is not None:
            gen_config["response_mime_type"] = "application/json"
            gen_config["response_schema"] = to_gemini_schema(response_schema)

        t0 = time.monotonic()
        resp = await model.generate_content_async(parts, generation_config=gen_config)
        latency = int((time.monotonic() - t0) * 1000)

        try:
            text = resp.text or ""
        except ValueError:
            # Blocked or candidate-less responses have no text accessor
            logger.warning("Gemini returned no text candidates (model=%s)", self._model)
            text = ""

        usage = getattr(resp, "usage_metadata", None)
        return LLMResponse(
            content=text,
            input_tokens=getattr(usage, "prompt_token_count", 0) if usage else 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) if usage else 0,
            model=self._model,
            provider="google",
            latency_ms=latency,
            raw_response=resp,
        )

    @property
    def provider_name(self) -> str:
        return "google"
