"""Prompt compiler: renders a task into the final prompt string.

Pure functions only; nothing here performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from sourcelens.models.descriptor import ModelDescriptor
from sourcelens.models.task import (
    GenerationTask,
    SectionedAnalysisParams,
    SpanHighlightParams,
    TaskKind,
    TopicDistributionParams,
)
from sourcelens.prompts import templates

TRUNCATION_MARKER = "... [content truncated]"

# Per-kind caps applied on top of the model's context budget
TASK_SOURCE_CAPS: dict[TaskKind, int] = {
    TaskKind.TOPIC_DISTRIBUTION: 15_000,
}


@dataclass(frozen=True)
class CompiledPrompt:
    prompt: str
    system_prompt: str = ""
    truncated: bool = False


def source_budget(kind: TaskKind, descriptor: ModelDescriptor) -> int:
    """Maximum number of source characters that go into the prompt."""
    budget = descriptor.context_size_class.char_budget
    cap = TASK_SOURCE_CAPS.get(kind)
    return min(budget, cap) if cap else budget


def truncate_source(text: str, budget: int) -> tuple[str, bool]:
    """Keep the head of *text* within *budget* characters."""
    if len(text) <= budget:
        return text, False
    return text[:budget] + TRUNCATION_MARKER, True


def compile_prompt(task: GenerationTask, descriptor: ModelDescriptor) -> CompiledPrompt:
    """Render *task* for *descriptor*, truncating the source if it is over budget."""
    source, truncated = truncate_source(task.source_text, source_budget(task.kind, descriptor))
    params = task.params

    if isinstance(params, SectionedAnalysisParams):
        return CompiledPrompt(_sectioned(params, source), "", truncated)
    if isinstance(params, SpanHighlightParams):
        prompt = templates.SPAN_HIGHLIGHT.format(
            num_segments=params.num_segments,
            query=params.query,
            source=source,
        )
        return CompiledPrompt(prompt, templates.JSON_ONLY_SYSTEM, truncated)
    if isinstance(params, TopicDistributionParams):
        prompt = templates.TOPIC_DISTRIBUTION.format(
            source=source,
            topic_lines="\n".join(params.topics),
            query_line=f"\nCONTEXT: {params.query}\n" if params.query else "",
            last_index=max(len(task.source_text) - 1, 0),
        )
        return CompiledPrompt(prompt, templates.TOPIC_SYSTEM, truncated)
    raise TypeError(f"Unsupported task parameters: {type(params).__name__}")


def _sectioned(params: SectionedAnalysisParams, source: str) -> str:
    meta = params.metadata
    return templates.SECTIONED_ANALYSIS.format(
        date=meta.date or "Unknown",
        author=meta.author or "Unknown",
        research_goals=meta.research_goals or "Not specified",
        additional_context=(
            f"ADDITIONAL CONTEXT: {meta.additional_info}\n" if meta.additional_info else ""
        ),
        perspective_line=(
            f"ANALYTICAL PERSPECTIVE: {params.perspective}\n" if params.perspective else ""
        ),
        source=source,
    )
