# src/llm/models.py — v1
"""LLM-specific types: Message, ImageInput, LLMResponse."""

from __future__ import annotations

import base64
import binascii
from typing import Any, Literal

from pydantic import BaseModel


class Message(BaseModel):
    """Single message in a conversation."""

    role: Literal["user", "assistant", "system"]
    content: str


class ImageInput(BaseModel):
    """Image payload for vision-enabled completions."""

    data: bytes
    media_type: str
    source_id: str | None = None

    @classmethod
    def from_data_url(cls, data_url: str, source_id: str | None = None) -> ImageInput:
        """Decode ``data:<mime>;base64,<payload>`` (bare base64 is treated as PNG)."""
        media_type = "image/png"
        payload = data_url
        if data_url.startswith("data:") and "," in data_url:
            header, payload = data_url.split(",", 1)
            media_type = header[5:].split(";", 1)[0] or media_type
        try:
            data = base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 image payload: {e}") from e
        return cls(data=data, media_type=media_type, source_id=source_id)

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class LLMResponse(BaseModel):
    """Normalized response from any LLM provider."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str
    provider: str
    latency_ms: int = 0
    raw_response: Any = None
