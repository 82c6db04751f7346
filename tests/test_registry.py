"""Tests for the model registry."""

from __future__ import annotations

import logging

import pytest

from sourcelens.models.descriptor import Provider
from sourcelens.models.task import TaskKind
from sourcelens.orchestrator.registry import MODELS, ModelRegistry


class TestResolve:
    def test_known_id(self, registry):
        d = registry.resolve("claude-sonnet")
        assert d.id == "claude-sonnet"
        assert d.provider is Provider.ANTHROPIC

    def test_legacy_alias(self, registry):
        assert registry.resolve("claude").id == "claude-haiku"
        assert registry.resolve("gpt").id == "gpt-4o-mini"

    def test_api_model_name(self, registry):
        assert registry.resolve("gemini-2.0-flash").id == "gemini-flash"

    def test_unknown_falls_back_to_default_with_warning(self, registry, caplog):
        with caplog.at_level(logging.WARNING, logger="sourcelens.orchestrator.registry"):
            d = registry.resolve("no-such-model")
        assert d.id == "gemini-flash-lite"
        assert "no-such-model" in caplog.text

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_resolves_to_default(self, registry, value):
        assert registry.resolve(value) is registry.default

    def test_every_shipped_model_resolves_to_itself(self, registry):
        for d in MODELS:
            assert registry.resolve(d.id) is registry.descriptors[d.id]


class TestConstruction:
    def test_unknown_default_rejected(self):
        with pytest.raises(ValueError, match="not in the registry"):
            ModelRegistry(default_id="nope")

    def test_tables_are_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.descriptors["x"] = registry.default

    def test_unknown_fallback_ids_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            reg = ModelRegistry(fallbacks={"span_highlight": ["ghost", "claude-haiku"]})
        candidates = reg.fallback_candidates(TaskKind.SPAN_HIGHLIGHT, reg.resolve("gemini-flash"))
        assert [c.id for c in candidates] == ["claude-haiku"]
        assert "ghost" in caplog.text


class TestTaskDefaults:
    def test_highlight_default(self, registry):
        assert registry.resolve_for(TaskKind.SPAN_HIGHLIGHT, None).id == "gemini-flash"

    def test_topic_default(self, registry):
        assert registry.resolve_for(TaskKind.TOPIC_DISTRIBUTION, "").id == "gemini-flash-lite"

    def test_sectioned_uses_registry_default(self):
        reg = ModelRegistry(default_id="claude-sonnet")
        assert reg.resolve_for(TaskKind.SECTIONED_ANALYSIS, None).id == "claude-sonnet"

    def test_explicit_id_wins(self, registry):
        assert registry.resolve_for(TaskKind.SPAN_HIGHLIGHT, "o3-mini").id == "o3-mini"


class TestFallbackCandidates:
    def test_ordered(self, registry):
        primary = registry.resolve("gemini-flash")
        ids = [d.id for d in registry.fallback_candidates(TaskKind.SPAN_HIGHLIGHT, primary)]
        assert ids == ["gpt-4o-mini", "claude-haiku"]

    def test_primary_excluded(self, registry):
        primary = registry.resolve("gpt-4o-mini")
        ids = [d.id for d in registry.fallback_candidates(TaskKind.SPAN_HIGHLIGHT, primary)]
        assert ids == ["claude-haiku"]

    def test_no_chain_configured(self):
        reg = ModelRegistry()
        assert reg.fallback_candidates(TaskKind.SPAN_HIGHLIGHT, reg.default) == []
