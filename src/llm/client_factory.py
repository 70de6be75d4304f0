# src/llm/client_factory.py — v1
"""Factory: instantiate a vision LLM client from a provider name."""

from __future__ import annotations

import importlib
import logging

from examextractor.config.settings import Settings
from examextractor.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

# Registry of provider name -> adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "google": "examextractor.llm.adapters.google_adapter.GoogleAdapter",
    "anthropic": "examextractor.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "openai": "examextractor.llm.adapters.openai_adapter.OpenAIAdapter",
}

_API_KEY_FIELDS: dict[str, str] = {
    "google": "google_api_key",
    "anthropic": "anthropic_api_key",
    "openai": "openai_api_key",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the correct adapter from provider name.

    Args:
        provider: Provider identifier (google, anthropic, openai).
        model: Model name (e.g. gemini-2.0-flash).
        settings: Application settings (for API keys).
        **kwargs: Additional provider-specific arguments.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model
    key_field = _API_KEY_FIELDS.get(provider)
    if settings is not None and key_field is not None:
        init_kwargs.setdefault("api_key", getattr(settings, key_field))

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def create_client_from_settings(settings: Settings) -> BaseLLMClient:
    """Instantiate the client configured by LLM_PROVIDER / LLM_MODEL."""
    return create_llm_client(settings.llm_provider, settings.llm_model, settings)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter (fully qualified class path)."""
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s -> %s", name, class_path)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
