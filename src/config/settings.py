# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for provider credentials, pipeline pacing,
cache/history locations and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDER ===
    llm_provider: str = "google"
    llm_model: str = "gemini-2.0-flash"
    llm_max_tokens: int = 4096

    # Provider API keys
    google_api_key: str = ""
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # === Extraction output shape ===
    languages: str = "pt,en,es"
    option_labels: str = "A,B,C,D,E"

    # === Pipeline pacing ===
    # Free tiers commonly allow ~15 RPM; one worker with 5s spacing stays under it.
    max_concurrent_requests: int = 1
    request_spacing_s: float = 5.0
    cache_hit_delay_s: float = 0.2
    retry_max_attempts: int = 5
    retry_initial_delay_s: float = 3.0

    # === Input ===
    accepted_mime_types: str = "image/png,image/jpeg"
    fingerprint_use_content_hash: bool = False
    default_label: str = "Trilingual Exam"

    # === Cache ===
    cache_backend: Literal["json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("~/.examextractor/cache")
    cache_namespace: str = "exam_ai_cache_trilingual_v1"
    cache_redis_url: str = ""

    # === History ===
    history_path: Path = Path("~/.examextractor/exam_history_v1.json")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("request_spacing_s", "cache_hit_delay_s", "retry_initial_delay_s")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:  # noqa: N805
        if v < 0:
            raise ValueError("delays must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.max_concurrent_requests < 1:
            errors.append("MAX_CONCURRENT_REQUESTS must be >= 1")

        if self.retry_max_attempts < 1:
            errors.append("RETRY_MAX_ATTEMPTS must be >= 1")

        if not self.languages_list:
            errors.append("LANGUAGES must name at least one language code")

        labels = self.option_labels_list
        if not labels:
            errors.append("OPTION_LABELS must name at least one label")
        elif any(len(label) != 1 for label in labels) or len(set(labels)) != len(labels):
            errors.append("OPTION_LABELS must be unique single characters")

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def languages_list(self) -> list[str]:
        """Parse comma-separated language codes."""
        return [lang.strip() for lang in self.languages.split(",") if lang.strip()]

    @property
    def option_labels_list(self) -> list[str]:
        """Parse comma-separated option labels (upper-cased)."""
        return [
            label.strip().upper()
            for label in self.option_labels.split(",")
            if label.strip()
        ]

    @property
    def accepted_mime_types_list(self) -> list[str]:
        """Parse comma-separated accepted MIME types."""
        return [
            m.strip().lower() for m in self.accepted_mime_types.split(",") if m.strip()
        ]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-batch config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
