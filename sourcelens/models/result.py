"""Generation and extraction result data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from sourcelens.errors import FailedAttempt


@dataclass(frozen=True)
class GenerationResult:
    """Raw prompt/response pair plus provenance for one generation."""

    raw_prompt: str
    raw_response_text: str
    provider_used: str
    model_used: str
    fell_back: bool = False
    attempts: tuple[FailedAttempt, ...] = ()


@dataclass
class AnalysisSection:
    """One of the six fixed sections of a sectioned analysis."""

    key: str
    title: str
    body_text: str
    degraded: bool = False
    linked_text: str = ""


@dataclass(frozen=True)
class HighlightSegment:
    """A scored excerpt of the source text."""

    id: int
    text: str
    start_index: int
    end_index: int
    score: float
    explanation: str = ""


@dataclass
class SegmentExtraction:
    """Validated segments plus how many were discarded on the way."""

    segments: list[HighlightSegment] = field(default_factory=list)
    dropped: int = 0
    dropped_overlapping: int = 0

    @property
    def returned(self) -> int:
        return len(self.segments)

    def to_dict(self) -> dict:
        return {
            "segments": [asdict(s) for s in self.segments],
            "returned": self.returned,
            "dropped": self.dropped,
            "dropped_overlapping": self.dropped_overlapping,
        }


@dataclass
class TopicSeries:
    """Where a single topic occurs in the document."""

    positions: list[int] = field(default_factory=list)
    examples: dict[int, str] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.positions)


@dataclass
class TopicDistribution:
    """Per-topic position series for a whole document."""

    topics: list[str]
    per_topic: dict[str, TopicSeries]
    document_length: int

    @property
    def total_counts(self) -> dict[str, int]:
        return {topic: self.per_topic[topic].count for topic in self.topics}

    def to_dict(self) -> dict:
        return {
            "topics": list(self.topics),
            "per_topic": {
                topic: {
                    "positions": list(series.positions),
                    "examples": {str(k): v for k, v in series.examples.items()},
                    "count": series.count,
                }
                for topic, series in self.per_topic.items()
            },
            "document_length": self.document_length,
            "total_counts": self.total_counts,
        }


@dataclass
class Reference:
    """A bibliography entry parsed out of a references section."""

    id: int
    text: str
    citation_key: str | None = None
    in_library: bool = False


@dataclass
class SectionedAnalysis:
    """Six analysis sections plus the references they cite."""

    sections: list[AnalysisSection]
    references: list[Reference] = field(default_factory=list)
    citation_keys: dict[str, int] = field(default_factory=dict)

    def section(self, key: str) -> AnalysisSection:
        for s in self.sections:
            if s.key == key:
                return s
        raise KeyError(key)

    def to_dict(self) -> dict:
        return {
            "sections": [asdict(s) for s in self.sections],
            "references": [asdict(r) for r in self.references],
            "citation_keys": dict(self.citation_keys),
        }
