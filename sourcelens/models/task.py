"""Generation task data model.

Task parameters are a tagged union: one dataclass per task kind. A
``GenerationTask`` derives its kind from the parameter type, so a task can
never carry parameters for a different kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from sourcelens.errors import InvalidTask

MAX_TOPICS = 6


class TaskKind(Enum):
    SECTIONED_ANALYSIS = "sectioned_analysis"
    SPAN_HIGHLIGHT = "span_highlight"
    TOPIC_DISTRIBUTION = "topic_distribution"


@dataclass(frozen=True)
class SourceMetadata:
    """Bibliographic context supplied alongside a source."""

    author: str = ""
    date: str = ""
    research_goals: str = ""
    additional_info: str = ""


@dataclass(frozen=True)
class SectionedAnalysisParams:
    kind: ClassVar[TaskKind] = TaskKind.SECTIONED_ANALYSIS

    metadata: SourceMetadata = field(default_factory=SourceMetadata)
    perspective: str = ""


@dataclass(frozen=True)
class SpanHighlightParams:
    kind: ClassVar[TaskKind] = TaskKind.SPAN_HIGHLIGHT

    query: str
    num_segments: int = 5

    def __post_init__(self) -> None:
        if not self.query.strip():
            raise InvalidTask("query must not be empty")
        if self.num_segments < 1:
            raise InvalidTask("num_segments must be at least 1")


@dataclass(frozen=True)
class TopicDistributionParams:
    kind: ClassVar[TaskKind] = TaskKind.TOPIC_DISTRIBUTION

    topics: tuple[str, ...]
    query: str = ""

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, "topics", tuple(self.topics))
        if not self.topics:
            raise InvalidTask("at least one topic is required")
        if len(self.topics) > MAX_TOPICS:
            raise InvalidTask(f"at most {MAX_TOPICS} topics are allowed")
        if any(not t.strip() for t in self.topics):
            raise InvalidTask("topics must be non-empty strings")


TaskParams = Union[SectionedAnalysisParams, SpanHighlightParams, TopicDistributionParams]


@dataclass(frozen=True)
class GenerationTask:
    """A single request to generate and extract structured output."""

    source_text: str
    params: TaskParams
    model_id: str | None = None

    @property
    def kind(self) -> TaskKind:
        return self.params.kind
