"""Shared test fixtures for sourcelens."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from sourcelens.models.descriptor import Provider
from sourcelens.models.task import (
    GenerationTask,
    SpanHighlightParams,
)
from sourcelens.orchestrator.registry import ModelRegistry
from sourcelens.retry import RetryPolicy

FALLBACKS = {
    "sectioned_analysis": ["claude-haiku", "gpt-4o-mini"],
    "span_highlight": ["gpt-4o-mini", "claude-haiku"],
    "topic_distribution": ["gpt-4o-mini", "claude-haiku"],
}


@pytest.fixture()
def registry():
    """Registry with the shipped model table and the default fallback chains."""
    return ModelRegistry(default_id="gemini-flash-lite", fallbacks=FALLBACKS)


@pytest.fixture()
def make_backend():
    """Factory for mock provider backends with an AsyncMock ``generate``."""

    def _make(provider: Provider, *, result: str = "ok", side_effect=None, configured=True):
        backend = MagicMock()
        backend.provider = provider
        backend.configured = configured
        backend.generate = AsyncMock(return_value=result, side_effect=side_effect)
        return backend

    return _make


@pytest.fixture()
def no_retry():
    return RetryPolicy(max_attempts=1, base_delay=0.0, max_delay=0.0)


@pytest.fixture()
def highlight_task():
    return GenerationTask(
        source_text="hello world, goodbye",
        params=SpanHighlightParams(query="greeting", num_segments=3),
        model_id="gemini-flash",
    )
