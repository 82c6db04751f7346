"""Tests for prompt compilation and source truncation."""

from __future__ import annotations

import pytest

from sourcelens.errors import InvalidTask
from sourcelens.models.descriptor import ContextSizeClass, ModelDescriptor, Provider
from sourcelens.models.task import (
    GenerationTask,
    SectionedAnalysisParams,
    SourceMetadata,
    SpanHighlightParams,
    TaskKind,
    TopicDistributionParams,
)
from sourcelens.prompts import templates
from sourcelens.prompts.compiler import (
    TRUNCATION_MARKER,
    compile_prompt,
    source_budget,
    truncate_source,
)

COMPACT = ModelDescriptor(
    id="small", name="Small", provider=Provider.OPENAI, api_model="small",
    context_size_class=ContextSizeClass.COMPACT,
)
EXTENDED = ModelDescriptor(
    id="big", name="Big", provider=Provider.GOOGLE, api_model="big",
    context_size_class=ContextSizeClass.EXTENDED,
)


class TestTruncation:
    def test_short_text_untouched(self):
        assert truncate_source("abc", 10) == ("abc", False)

    def test_head_kept_and_marked(self):
        text, truncated = truncate_source("abcdefghij", 4)
        assert truncated
        assert text == "abcd" + TRUNCATION_MARKER

    def test_topic_cap_applies_on_large_models(self):
        assert source_budget(TaskKind.TOPIC_DISTRIBUTION, EXTENDED) == 15_000
        assert source_budget(TaskKind.SPAN_HIGHLIGHT, EXTENDED) == 2_000_000

    def test_context_class_budget(self):
        assert source_budget(TaskKind.SECTIONED_ANALYSIS, COMPACT) == 60_000


class TestCompilePrompt:
    def test_sectioned_has_all_delimiters(self):
        task = GenerationTask(
            "Dear sir,", SectionedAnalysisParams(SourceMetadata(author="Lincoln", date="1862"))
        )
        compiled = compile_prompt(task, COMPACT)
        for label in ("CONTEXT", "PERSPECTIVE", "THEMES", "EVIDENCE", "SIGNIFICANCE", "REFERENCES"):
            assert f"###{label}:" in compiled.prompt
        assert "SOURCE AUTHOR: Lincoln" in compiled.prompt
        assert "RESEARCH GOALS: Not specified" in compiled.prompt
        assert compiled.system_prompt == ""
        assert not compiled.truncated

    def test_perspective_line_only_when_given(self):
        plain = compile_prompt(GenerationTask("x", SectionedAnalysisParams()), COMPACT)
        with_lens = compile_prompt(
            GenerationTask("x", SectionedAnalysisParams(perspective="Marxist")), COMPACT
        )
        assert "ANALYTICAL PERSPECTIVE" not in plain.prompt
        assert "ANALYTICAL PERSPECTIVE: Marxist" in with_lens.prompt

    def test_highlight_is_json_task(self):
        task = GenerationTask("some text", SpanHighlightParams(query="war", num_segments=7))
        compiled = compile_prompt(task, COMPACT)
        assert compiled.system_prompt == templates.JSON_ONLY_SYSTEM
        assert "top 7 text segments" in compiled.prompt
        assert '"war"' in compiled.prompt
        assert '"segments": [' in compiled.prompt

    def test_topic_lists_topics_and_last_index(self):
        task = GenerationTask("0123456789", TopicDistributionParams(["Economy", "War"], query="1860s"))
        compiled = compile_prompt(task, EXTENDED)
        assert "Economy\nWar" in compiled.prompt
        assert "9 is the end" in compiled.prompt
        assert "CONTEXT: 1860s" in compiled.prompt
        assert compiled.system_prompt == templates.TOPIC_SYSTEM

    def test_long_topic_source_is_truncated(self):
        task = GenerationTask("a" * 20_000, TopicDistributionParams(["Economy"]))
        compiled = compile_prompt(task, EXTENDED)
        assert compiled.truncated
        assert "a" * 15_000 + TRUNCATION_MARKER in compiled.prompt
        assert "a" * 15_001 not in compiled.prompt

    def test_pure(self):
        task = GenerationTask("text", SpanHighlightParams(query="q"))
        assert compile_prompt(task, COMPACT) == compile_prompt(task, COMPACT)


class TestTaskParams:
    def test_too_many_topics_rejected_before_dispatch(self):
        with pytest.raises(InvalidTask, match="at most 6"):
            TopicDistributionParams(topics=[f"t{i}" for i in range(7)])

    def test_empty_topics_rejected(self):
        with pytest.raises(InvalidTask):
            TopicDistributionParams(topics=[])

    def test_blank_query_rejected(self):
        with pytest.raises(InvalidTask):
            SpanHighlightParams(query="  ")

    def test_kind_follows_params(self):
        task = GenerationTask("x", TopicDistributionParams(["A"]))
        assert task.kind is TaskKind.TOPIC_DISTRIBUTION
