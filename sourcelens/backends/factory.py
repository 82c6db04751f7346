"""Factory for building one backend per provider from settings."""

from __future__ import annotations

import logging

import httpx

from sourcelens.backends.anthropic import AnthropicBackend
from sourcelens.backends.base import ProviderBackend
from sourcelens.backends.gemini import GeminiBackend
from sourcelens.backends.openai import OpenAIBackend
from sourcelens.config import Settings
from sourcelens.models.descriptor import Provider

logger = logging.getLogger(__name__)


def create_backend(
    provider: Provider,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProviderBackend:
    """Create the backend for *provider* using keys and endpoints from *settings*."""
    if provider is Provider.OPENAI:
        return OpenAIBackend(
            settings.openai_api_key, settings.openai_base_url, settings.request_timeout, transport
        )
    if provider is Provider.ANTHROPIC:
        return AnthropicBackend(
            settings.anthropic_api_key,
            settings.anthropic_base_url,
            settings.request_timeout,
            transport,
        )
    if provider is Provider.GOOGLE:
        return GeminiBackend(
            settings.google_api_key, settings.google_base_url, settings.request_timeout, transport
        )
    raise ValueError(f"Unknown provider: {provider!r}")


def create_backends(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> dict[Provider, ProviderBackend]:
    """Build every provider backend; unconfigured ones are kept but logged."""
    backends = {p: create_backend(p, settings, transport) for p in Provider}
    missing = [p.value for p, b in backends.items() if not b.configured]
    if missing:
        logger.warning("No API key configured for: %s", ", ".join(missing))
    return backends
