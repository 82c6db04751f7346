"""Analysis pipeline from task to structured result.

The facade the HTTP layer talks to. One ``run`` call turns a
``GenerationTask`` into a structured result plus the raw prompt/response
pair it was derived from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from sourcelens.backends.factory import create_backends
from sourcelens.config import Settings
from sourcelens.errors import MalformedStructuredResponse
from sourcelens.extraction.citations import build_citation_index, link_citations
from sourcelens.extraction.distribution import extract_distribution
from sourcelens.extraction.sections import parse_sections
from sourcelens.extraction.segments import extract_segments
from sourcelens.models.result import (
    GenerationResult,
    SectionedAnalysis,
    SegmentExtraction,
    TopicDistribution,
)
from sourcelens.models.task import (
    GenerationTask,
    SectionedAnalysisParams,
    SpanHighlightParams,
    TopicDistributionParams,
)
from sourcelens.orchestrator.cache import build_cache
from sourcelens.orchestrator.generator import GenerationOrchestrator
from sourcelens.orchestrator.registry import ModelRegistry
from sourcelens.prompts.compiler import compile_prompt
from sourcelens.retry import RetryPolicy

logger = logging.getLogger(__name__)

StructuredResult = Union[SectionedAnalysis, SegmentExtraction, TopicDistribution]


@dataclass
class PipelineOutcome:
    structured_result: StructuredResult
    generation: GenerationResult
    truncated: bool = False


def build_sectioned_analysis(raw_text: str) -> SectionedAnalysis:
    """Parse sections and link their citation markers to the references."""
    analysis = SectionedAnalysis(sections=parse_sections(raw_text))
    references = analysis.section("references")
    if references.degraded:
        for section in analysis.sections:
            section.linked_text = section.body_text
        return analysis

    index = build_citation_index(references.body_text)
    analysis.references = index.references
    analysis.citation_keys = dict(index.keys)
    for section in analysis.sections:
        section.linked_text = link_citations(section.body_text, index)
    return analysis


class AnalysisPipeline:
    def __init__(self, orchestrator: GenerationOrchestrator) -> None:
        self.orchestrator = orchestrator

    @property
    def registry(self) -> ModelRegistry:
        return self.orchestrator.registry

    async def run(self, task: GenerationTask, *, timeout: float | None = None) -> PipelineOutcome:
        """Run *task* end to end.

        A malformed primary response counts as a failure and triggers the
        fallback hop, so the extractor runs on the primary's text before it
        is accepted.

        Raises:
            ProviderUnavailable: If no provider produced a response.
            MalformedStructuredResponse: If a JSON task's final response
                cannot be turned into its structured result.
        """
        descriptor = self.orchestrator.resolve(task)
        compiled = compile_prompt(task, descriptor)
        if compiled.truncated:
            logger.info(
                "Source truncated for %s on %s (%d chars)",
                task.kind.value, descriptor.id, len(task.source_text),
            )

        extracted: dict[str, StructuredResult] = {}

        def validate(raw_text: str) -> None:
            extracted[raw_text] = self._extract(task, raw_text)

        generation = await self.orchestrator.generate(
            task, compiled, timeout=timeout, validate=validate
        )
        raw_text = generation.raw_response_text
        if raw_text in extracted:
            return PipelineOutcome(extracted[raw_text], generation, compiled.truncated)
        try:
            result = self._extract(task, raw_text)
        except MalformedStructuredResponse as exc:
            logger.warning(
                "Malformed %s response from %s: %s", task.kind.value, generation.model_used, exc
            )
            exc.raw_prompt = generation.raw_prompt
            exc.raw_response = generation.raw_response_text
            raise
        return PipelineOutcome(result, generation, compiled.truncated)

    def _extract(self, task: GenerationTask, raw_text: str) -> StructuredResult:
        params = task.params
        if isinstance(params, SectionedAnalysisParams):
            return build_sectioned_analysis(raw_text)
        if isinstance(params, SpanHighlightParams):
            return extract_segments(raw_text, task.source_text, params.num_segments)
        if isinstance(params, TopicDistributionParams):
            return extract_distribution(raw_text, params.topics, len(task.source_text))
        raise TypeError(f"Unsupported task parameters: {type(params).__name__}")


def build_pipeline(settings: Settings, transport=None) -> AnalysisPipeline:
    """Wire registry, backends, cache and retry policy from *settings*."""
    registry = ModelRegistry(
        default_id=settings.default_model_id, fallbacks=settings.fallback_models
    )
    orchestrator = GenerationOrchestrator(
        registry,
        create_backends(settings, transport),
        cache=build_cache(settings.cache_capacity),
        retry_policy=RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
        ),
    )
    return AnalysisPipeline(orchestrator)
